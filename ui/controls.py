"""
controls.py — UI Control Panels
=================================
Every UI panel is a pure function that takes state and returns HTML.

Panels:
  • playback_controls   – rewind/prev/next/end + scrubber bound to seek
  • algorithm_selector  – registry dropdown for one family
  • input_form          – per-family fields (array / graphData / treeData …)
  • explanation_panel   – current step's description
  • analytics_panel     – steps, sorted count, path, cost, MST weight
  • error_banner        – the one user-visible message of a failed run

Design:
  - All panels are stateless render functions.
  - State is passed in as arguments.
  - Output is raw HTML strings (no templating engine).
  - The main app stitches them together.
"""

from typing import Optional

from markupsafe import escape

from algorithms import AlgorithmFamily, AlgorithmRole, list_algorithms
from engine.analytics import RunMetrics
from engine.builder import (
    ARRAY_FIELD,
    END_FIELD,
    GRAPH_FIELD,
    START_FIELD,
    TARGET_FIELD,
    TREE_FIELD,
)
from engine.stepper import PlaybackSnapshot

SAMPLE_ARRAY = "5, 2, 8, 1, 9, 4"
SAMPLE_GRAPH = (
    '{"nodes": [{"id": "A"}, {"id": "B"}, {"id": "C"}, {"id": "E"}, {"id": "F"}],\n'
    ' "edges": [{"source": "A", "target": "B", "weight": 4},\n'
    '           {"source": "A", "target": "C", "weight": 9},\n'
    '           {"source": "B", "target": "E", "weight": 30},\n'
    '           {"source": "C", "target": "F", "weight": 2},\n'
    '           {"source": "F", "target": "E", "weight": 9}]}'
)
SAMPLE_TREE = (
    '{"value": 10,\n'
    ' "left": {"value": 5, "left": {"value": 2}, "right": {"value": 7}},\n'
    ' "right": {"value": 15, "right": {"value": 20}}}'
)


# ---------------------------------------------------------------------------
# Playback Controls
# ---------------------------------------------------------------------------
def playback_controls(snapshot: Optional[PlaybackSnapshot] = None) -> str:
    if snapshot is None:
        return """
    <div class="panel playback-controls">
      <h3>⏯ Playback</h3>
      <p class="placeholder">Run a simulation first.</p>
    </div>
    """

    back = "disabled" if snapshot.at_start else ""
    fwd = "disabled" if snapshot.at_end else ""
    return f"""
    <div class="panel playback-controls">
      <h3>⏯ Playback</h3>
      <div class="button-row">
        <button id="btn-rewind" title="Rewind to start" {back}>⏮</button>
        <button id="btn-prev" title="Previous step" {back}>◀</button>
        <button id="btn-next" title="Next step" {fwd}>▶</button>
        <button id="btn-end" title="Jump to end" {fwd}>⏭</button>
      </div>
      <input id="scrubber" type="range" min="0" max="{snapshot.total - 1}" value="{snapshot.index}">
      <div class="step-info">
        Step <span id="current-step">{snapshot.index + 1}</span> / <span id="total-steps">{snapshot.total}</span>
        {' <span class="finished-badge">FINISHED</span>' if snapshot.at_end else ''}
      </div>
    </div>
    """


# ---------------------------------------------------------------------------
# Algorithm Selector
# ---------------------------------------------------------------------------
def algorithm_selector(family: AlgorithmFamily, selected_name: Optional[str] = None) -> str:
    options = []
    for algo in list_algorithms(family):
        sel = 'selected' if algo.name == selected_name else ''
        needs = ",".join(flag for flag, on in (
            ("start", algo.requires_start),
            # shortest paths take an optional end node
            ("end", algo.requires_end or algo.role is AlgorithmRole.SHORTEST_PATH),
            ("target", algo.requires_target),
        ) if on)
        options.append(
            f'<option value="{escape(algo.name)}" data-needs="{needs}" {sel}>'
            f'{escape(algo.display_label)} — {escape(algo.complexity_time)}</option>'
        )

    return f"""
    <div class="panel algorithm-selector">
      <h3>🧠 Algorithm</h3>
      <select id="algo-selector" name="algorithm">
        {''.join(options)}
      </select>
    </div>
    """


# ---------------------------------------------------------------------------
# Input Form
# ---------------------------------------------------------------------------
def input_form(family: AlgorithmFamily) -> str:
    if family is AlgorithmFamily.ARRAY:
        fields = f"""
        <label>Array (comma-separated)</label>
        <input name="{ARRAY_FIELD}" value="{SAMPLE_ARRAY}">
        <label class="needs-target">Target</label>
        <input class="needs-target" name="{TARGET_FIELD}" placeholder="e.g. 8">
        """
    elif family is AlgorithmFamily.GRAPH:
        fields = f"""
        <label>Graph data (JSON)</label>
        <textarea name="{GRAPH_FIELD}" rows="8">{escape(SAMPLE_GRAPH)}</textarea>
        <label class="needs-start">Start node</label>
        <input class="needs-start" name="{START_FIELD}" value="A">
        <label class="needs-end">End node</label>
        <input class="needs-end" name="{END_FIELD}" value="E">
        """
    else:
        fields = f"""
        <label>Tree data (JSON)</label>
        <textarea name="{TREE_FIELD}" rows="8">{escape(SAMPLE_TREE)}</textarea>
        <label class="needs-target">Target</label>
        <input class="needs-target" name="{TARGET_FIELD}" placeholder="e.g. 7">
        """

    return f"""
    <form class="panel input-form" id="sim-form" data-family="{family.value}">
      <h3>📥 Input</h3>
      {fields}
      <button id="btn-run" class="btn-primary" type="submit">▶ Run Simulation</button>
    </form>
    """


# ---------------------------------------------------------------------------
# Explanation Panel
# ---------------------------------------------------------------------------
def explanation_panel(explanation: str = "", overview: str = "") -> str:
    if not explanation and not overview:
        return ('<div class="explanation-text">▶ Click <strong>Run Simulation</strong> '
                'to see a step-by-step explanation of what is happening at each stage.</div>')
    summary = f'<p class="overview">{escape(overview)}</p>' if overview else ""
    return f'<div class="explanation-text">{summary}<p class="step-text">{escape(explanation)}</p></div>'


# ---------------------------------------------------------------------------
# Analytics Panel
# ---------------------------------------------------------------------------
def analytics_panel(metrics: Optional[RunMetrics] = None) -> str:
    if not metrics:
        return """
        <div class="panel analytics-panel">
          <h3>📊 Analytics</h3>
          <p class="placeholder">Run a simulation to see metrics.</p>
        </div>
        """

    rows = [("Total Steps", metrics.total_steps)]
    if metrics.final_array:
        rows.append(("Final Array", ", ".join(str(v) for v in metrics.final_array)))
        rows.append(("Sorted", f"{metrics.sorted_count} / {len(metrics.final_array)}"))
    if metrics.traversal_order:
        rows.append(("Traversal Order", " → ".join(str(v) for v in metrics.traversal_order)))
    if metrics.nodes_visited:
        rows.append(("Nodes Visited", metrics.nodes_visited))
    if metrics.path_found:
        rows.append(("Path", " → ".join(metrics.path)))
        rows.append(("Path Cost", metrics.path_cost))
    if metrics.mst_edges:
        rows.append(("MST Edges", metrics.mst_edges))
        rows.append(("MST Weight", metrics.mst_weight))
    if metrics.found_at is not None:
        rows.append(("Found At", metrics.found_at))

    body = "".join(
        f"<tr><td>{escape(label)}:</td><td><strong>{escape(str(value))}</strong></td></tr>"
        for label, value in rows
    )
    return f"""
    <div class="panel analytics-panel">
      <h3>📊 Analytics</h3>
      <table>{body}</table>
    </div>
    """


# ---------------------------------------------------------------------------
# Error Banner
# ---------------------------------------------------------------------------
def error_banner(message: Optional[str] = None) -> str:
    if not message:
        return ""
    return f'<div class="error-banner" role="alert">⚠️ {escape(message)}</div>'


__all__ = [
    "playback_controls",
    "algorithm_selector",
    "input_form",
    "explanation_panel",
    "analytics_panel",
    "error_banner",
]

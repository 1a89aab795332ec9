"""
canvas.py — SVG Step Renderer
==============================
Pure rendering functions: step snapshot → SVG string.

    render_step(step)              # any variant, dispatches on step.variant
    render_graph_preview(graph)    # the submitted graph, before a run
    render_tree_preview(tree)      # the submitted tree, before a run

Design decisions:
  - NO mutation.  Every function is stateless: the caller passes in
    everything it needs and gets back a string.
  - Colouring is a dict lookup on the colour names the model uses
    ('active', 'visited', 'path', …); unknown names fall back to default.
  - Positions come from the step itself (the model lays out graphs and
    trees); previews use the input's own layout helpers.
  - Every piece of model-supplied text is escaped.
"""

import math
from typing import Dict, Optional, Sequence, Tuple

from markupsafe import escape

from algorithms.step import (
    ArrayStep,
    GraphStep,
    MatrixStep,
    StepVariant,
    TreeStep,
    VisualizationStep,
)
from structures import Graph, TreeNode


# ---------------------------------------------------------------------------
# Visual config: palette, sizes, fonts
# ---------------------------------------------------------------------------
class CanvasConfig:
    # canvas
    width:  int = 500
    height: int = 550
    bg:     str = "#0d1117"

    # node fill by model colour name
    node_colors: Dict[str, str] = {
        "default":   "#1c2128",
        "active":    "#06b6d4",
        "visited":   "#10b981",
        "path":      "#a855f7",
        "accent":    "#ec4899",
    }

    # edge stroke by model colour name
    edge_colors: Dict[str, str] = {
        "default":   "#30363d",
        "active":    "#06b6d4",
        "traversed": "#10b981",
        "path":      "#a855f7",
        "included":  "#a855f7",
        "discarded": "#21262d",
    }

    # array cells
    cell_colors: Dict[str, str] = {
        "default":     "#1c2128",
        "highlighted": "#06b6d4",
        "sorted":      "#10b981",
        "found":       "#ec4899",
    }
    cell_size:  int = 44
    cell_gap:   int = 6

    # node
    node_radius:        int = 20
    node_stroke:        str = "#30363d"
    node_stroke_width:  int = 2
    node_label_color:   str = "#e6edf3"
    node_label_size:    int = 13
    font:               str = "'DM Sans', sans-serif"

    # edge
    edge_width:         int = 2
    edge_width_path:    int = 4
    edge_weight_color:  str = "#7d8590"
    edge_weight_size:   int = 12
    edge_weight_bg:     str = "#161b22"

    # matrix
    matrix_cell:        int = 44
    matrix_k_fill:      str = "#1e293b"
    matrix_hl_fill:     str = "#a855f7"
    text_muted:         str = "#7d8590"


CONFIG = CanvasConfig()


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def render_step(step: VisualizationStep, config: CanvasConfig = CONFIG) -> str:
    """Returns an SVG string for any step variant."""
    renderers = {
        StepVariant.ARRAY:  render_array_step,
        StepVariant.GRAPH:  render_graph_step,
        StepVariant.MATRIX: render_matrix_step,
        StepVariant.TREE:   render_tree_step,
    }
    return renderers[step.variant](step, config)


def _open_svg(width: float, height: float, config: CanvasConfig) -> str:
    return (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        f'xmlns="http://www.w3.org/2000/svg" style="background: {config.bg};">'
    )


def _fmt(value) -> str:
    if isinstance(value, float):
        if math.isinf(value):
            return "∞" if value > 0 else "-∞"
        if value.is_integer():
            return str(int(value))
    return str(escape(str(value)))


# ---------------------------------------------------------------------------
# Array
# ---------------------------------------------------------------------------
def render_array_step(step: ArrayStep, config: CanvasConfig = CONFIG) -> str:
    n = len(step.array)
    pitch = config.cell_size + config.cell_gap
    width = max(pitch * n + config.cell_gap, 120)
    height = config.cell_size + 40
    sorted_set = set(step.sorted_indices or ())
    highlighted = set(step.highlighted)

    parts = [_open_svg(width, height, config)]
    for i, value in enumerate(step.array):
        if step.found_at == i:
            state = "found"
        elif i in highlighted:
            state = "highlighted"
        elif i in sorted_set:
            state = "sorted"
        else:
            state = "default"
        x = config.cell_gap + i * pitch
        parts.append(
            f'<g class="cell {state}" data-index="{i}">'
            f'<rect x="{x}" y="8" width="{config.cell_size}" height="{config.cell_size}" rx="6" '
            f'fill="{config.cell_colors[state]}" stroke="{config.node_stroke}"/>'
            f'<text x="{x + config.cell_size / 2}" y="{8 + config.cell_size / 2 + 5}" text-anchor="middle" '
            f'font-size="{config.node_label_size}" font-family="{config.font}" '
            f'fill="{config.node_label_color}">{_fmt(value)}</text>'
            f'<text x="{x + config.cell_size / 2}" y="{config.cell_size + 26}" text-anchor="middle" '
            f'font-size="10" fill="{config.text_muted}">{i}</text>'
            f'</g>'
        )
    parts.append("</svg>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Node / edge drawing shared by graphs and trees
# ---------------------------------------------------------------------------
def _node(nid: str, x: float, y: float, label: str, color: str, config: CanvasConfig,
          caption: Optional[str] = None) -> str:
    fill = config.node_colors.get(color, config.node_colors["default"])
    r = config.node_radius
    parts = [
        f'<g class="node {escape(color)}" data-id="{escape(nid)}">',
        f'  <circle cx="{x}" cy="{y}" r="{r}" fill="{fill}" '
        f'stroke="{config.node_stroke}" stroke-width="{config.node_stroke_width}"/>',
        f'  <text x="{x}" y="{y + 5}" text-anchor="middle" font-size="{config.node_label_size}" '
        f'font-family="{config.font}" fill="{config.node_label_color}" font-weight="600">{label}</text>',
    ]
    if caption is not None:
        parts.append(
            f'  <text x="{x}" y="{y - r - 6}" text-anchor="middle" font-size="11" '
            f'fill="{config.text_muted}">{caption}</text>'
        )
    parts.append("</g>")
    return "\n".join(parts)


def _edge(p1: Tuple[float, float], p2: Tuple[float, float], color: Optional[str],
          weight, config: CanvasConfig) -> str:
    (x1, y1), (x2, y2) = p1, p2
    dx, dy = x2 - x1, y2 - y1
    dist = math.hypot(dx, dy)
    if dist < 0.001:
        return ""
    ux, uy = dx / dist, dy / dist
    r = config.node_radius

    key = color or "default"
    stroke = config.edge_colors.get(key, config.edge_colors["default"])
    width = config.edge_width_path if key in ("path", "included") else config.edge_width
    parts = [
        f'<g class="edge {escape(key)}">',
        f'  <line x1="{x1 + ux * r}" y1="{y1 + uy * r}" x2="{x2 - ux * r}" y2="{y2 - uy * r}" '
        f'stroke="{stroke}" stroke-width="{width}"/>',
    ]
    if weight is not None:
        mx, my = (x1 + x2) / 2 - uy * 12, (y1 + y2) / 2 + ux * 12
        parts.append(f'  <circle cx="{mx}" cy="{my}" r="12" fill="{config.edge_weight_bg}" opacity="0.9"/>')
        parts.append(
            f'  <text x="{mx}" y="{my + 4}" text-anchor="middle" font-size="{config.edge_weight_size}" '
            f'fill="{config.edge_weight_color}" font-weight="600">{_fmt(weight)}</text>'
        )
    parts.append("</g>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------
def render_graph_step(step: GraphStep, config: CanvasConfig = CONFIG) -> str:
    pos = {n.id: (n.x, n.y) for n in step.nodes}
    parts = [_open_svg(config.width, config.height, config)]
    # edges first so nodes sit on top
    for e in step.edges:
        if e.source in pos and e.target in pos:
            parts.append(_edge(pos[e.source], pos[e.target], e.color, e.weight, config))
    for n in step.nodes:
        color = "accent" if step.found_at == n.id else n.color
        caption = None if n.distance is None else f"d={_fmt(n.distance)}"
        parts.append(_node(n.id, n.x, n.y, str(escape(n.id)), color, config, caption))
    parts.append("</svg>")
    return "\n".join(parts)


def render_graph_preview(graph: Graph, config: CanvasConfig = CONFIG) -> str:
    pos = graph.circular_layout(config.width, config.height)
    parts = [_open_svg(config.width, config.height, config)]
    for e in graph.edges:
        parts.append(_edge(pos[e.source], pos[e.target], None, e.weight, config))
    for n in graph.nodes:
        x, y = pos[n.id]
        parts.append(_node(n.id, x, y, str(escape(n.display)), "default", config))
    parts.append("</svg>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Matrix (Floyd–Warshall)
# ---------------------------------------------------------------------------
def render_matrix_step(step: MatrixStep, config: CanvasConfig = CONFIG) -> str:
    n = step.size
    labels: Sequence[str] = step.labels or tuple(str(i) for i in range(n))
    cell = config.matrix_cell
    width = height = cell * (n + 1) + 10

    def index_of(ref) -> Optional[int]:
        if str(ref) in labels:
            return list(labels).index(str(ref))
        if isinstance(ref, int) and 0 <= ref < n:
            return ref
        return None

    hl = step.highlight
    k = i_hl = j_hl = None
    if hl is not None:
        k, i_hl, j_hl = index_of(hl.k), index_of(hl.i), index_of(hl.j)

    parts = [_open_svg(width, height, config)]
    for c, label in enumerate(labels):
        parts.append(
            f'<text x="{cell * (c + 1) + cell / 2}" y="{cell / 2 + 5}" text-anchor="middle" '
            f'font-size="12" fill="{config.text_muted}">{escape(label)}</text>'
        )
        parts.append(
            f'<text x="{cell / 2}" y="{cell * (c + 1) + cell / 2 + 5}" text-anchor="middle" '
            f'font-size="12" fill="{config.text_muted}">{escape(label)}</text>'
        )
    for r, row in enumerate(step.matrix):
        for c, value in enumerate(row):
            if (r, c) == (i_hl, j_hl):
                fill = config.matrix_hl_fill
            elif k is not None and (r == k or c == k):
                fill = config.matrix_k_fill
            else:
                fill = config.node_colors["default"]
            x, y = cell * (c + 1), cell * (r + 1)
            parts.append(
                f'<rect x="{x}" y="{y}" width="{cell}" height="{cell}" fill="{fill}" '
                f'stroke="{config.node_stroke}"/>'
                f'<text x="{x + cell / 2}" y="{y + cell / 2 + 4}" text-anchor="middle" font-size="11" '
                f'fill="{config.node_label_color}">{_fmt(value)}</text>'
            )
    parts.append("</svg>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------
def render_tree_step(step: TreeStep, config: CanvasConfig = CONFIG) -> str:
    pos = {n.id: (n.x, n.y) for n in step.nodes}
    parts = [_open_svg(config.width, config.height, config)]
    for e in step.edges:
        if e.source in pos and e.target in pos:
            parts.append(_edge(pos[e.source], pos[e.target], None, None, config))
    for n in step.nodes:
        color = "accent" if step.found_at == n.id else n.color
        parts.append(_node(n.id, n.x, n.y, _fmt(n.value), color, config))
    parts.append("</svg>")
    return "\n".join(parts)


def render_tree_preview(tree: TreeNode, config: CanvasConfig = CONFIG) -> str:
    pos = tree.layout(config.width)
    parts = [_open_svg(config.width, config.height, config)]
    for src, tgt in tree.edges():
        parts.append(_edge(pos[src], pos[tgt], None, None, config))
    for node in tree.iter_nodes():
        x, y = pos[node.id]
        parts.append(_node(node.id, x, y, _fmt(node.value), "default", config))
    parts.append("</svg>")
    return "\n".join(parts)


__all__ = [
    "CanvasConfig",
    "render_step",
    "render_array_step",
    "render_graph_step",
    "render_matrix_step",
    "render_tree_step",
    "render_graph_preview",
    "render_tree_preview",
]

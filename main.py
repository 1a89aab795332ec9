"""
main.py — AlgoViz Tutor Flask App
==================================
The web server that powers the tutor.

Routes:
  GET  /                              – landing page + tutor
  GET  /simulations/<family>          – visualization panel (array / graph / tree)
  GET  /api/algorithms[?family=]      – registry listing
  POST /api/<family>/simulate         – build → model → parse → load
  POST /api/<family>/step/next        – advance one step
  POST /api/<family>/step/prev        – back one step
  POST /api/<family>/step/goto        – jump to step N (clamped)
  POST /api/<family>/step/rewind      – jump to step 0
  POST /api/<family>/step/end         – jump to the last step
  POST /api/<family>/reset            – clear the panel
  GET  /api/<family>/state            – current panel state
  POST /api/tutor                     – step-by-step explanation (Markdown)

State management:
  Flask's cookie session only carries an opaque id.  Runs live in an
  in-memory SessionStore keyed by (id, family), one SimulationSession
  (and so one Stepper) per panel.

Status codes:
  400 – input errors (shown next to the field)
  409 – navigation with nothing loaded, or a superseded submission
  502 – the model call failed or its answer was rejected
"""

import logging
import secrets
import threading

from flask import Flask, abort, jsonify, render_template_string, request, session

from algorithms import AlgorithmFamily, list_algorithms
from config import Settings
from engine import (
    OutcomeStatus,
    SessionStore,
    SimulationSession,
    TransportError,
    user_message,
)
from engine.errors import PLAYBACK_MESSAGE
from llm import GeminiClient
from structures import Graph, TreeNode
from ui import (
    algorithm_selector,
    analytics_panel,
    error_banner,
    explanation_panel,
    input_form,
    playback_controls,
    render_graph_preview,
    render_step,
    render_tree_preview,
)

settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = settings.secret_key
# tests (or an embedding app) may put any object with generate_simulation / explain here
app.config.setdefault("SIMULATION_BACKEND", None)

_backend_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Backend + session helpers
# ---------------------------------------------------------------------------
def get_backend():
    """The configured backend, building the Gemini client on first use."""
    backend = app.config.get("SIMULATION_BACKEND")
    if backend is None:
        with _backend_lock:
            backend = app.config.get("SIMULATION_BACKEND")
            if backend is None:
                backend = GeminiClient(settings)
                app.config["SIMULATION_BACKEND"] = backend
    return backend


class _AppBackend:
    """Resolves the backend per call, so it can be swapped after panels exist."""

    def generate_simulation(self, req):
        return get_backend().generate_simulation(req)


store = SessionStore(
    lambda family: SimulationSession(family, _AppBackend(), response_log_path=settings.response_log_path),
    max_sessions=settings.max_sessions,
)


def session_id() -> str:
    if "sid" not in session:
        session["sid"] = secrets.token_hex(16)
    return session["sid"]


def get_family(name: str) -> AlgorithmFamily:
    try:
        return AlgorithmFamily.parse(name)
    except LookupError:
        abort(404)


def get_panel(family_name: str) -> SimulationSession:
    return store.get(session_id(), get_family(family_name))


def panel_state(panel: SimulationSession) -> dict:
    """JSON view of a panel; caller holds panel.lock."""
    stepper = panel.stepper
    out = {"family": panel.family.value, "state": stepper.state.value, "ready": stepper.is_ready}
    if not stepper.is_ready:
        out.update(
            controls=playback_controls(None),
            explanation=explanation_panel(),
            analytics=analytics_panel(None),
        )
        return out

    snap = stepper.snapshot()
    out.update(
        algorithm=panel.request.algorithm.name if panel.request else None,
        index=snap.index,
        total=snap.total,
        at_start=snap.at_start,
        at_end=snap.at_end,
        description=snap.description,
        step=snap.step.to_dict(),
        svg=render_step(snap.step),
        controls=playback_controls(snap),
        explanation=explanation_panel(snap.step.description, snap.description),
        analytics=analytics_panel(panel.metrics),
        metrics=panel.metrics.to_dict() if panel.metrics else None,
    )
    return out


def request_data() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------
@app.route("/")
def index():
    return render_template_string(INDEX_TEMPLATE, families=list(AlgorithmFamily))


@app.route("/simulations/<family>")
def simulation_page(family):
    fam = get_family(family)
    panel = store.get(session_id(), fam)
    with panel.lock:
        state = panel_state(panel)
    return render_template_string(
        PANEL_TEMPLATE,
        family=fam,
        selector_html=algorithm_selector(fam),
        form_html=input_form(fam),
        state=state,
    )


# ---------------------------------------------------------------------------
# API: Registry
# ---------------------------------------------------------------------------
@app.route("/api/algorithms")
def api_algorithms():
    fam_name = request.args.get("family")
    family = get_family(fam_name) if fam_name else None
    return jsonify([
        {
            "name": d.name,
            "key": d.key,
            "family": d.family.value,
            "role": d.role.value,
            "label": d.display_label,
            "complexity": d.complexity_time,
            "description": d.description,
            "requires_start": d.requires_start,
            "requires_end": d.requires_end,
            "requires_target": d.requires_target,
        }
        for d in list_algorithms(family)
    ])


# ---------------------------------------------------------------------------
# API: Run Simulation
# ---------------------------------------------------------------------------
@app.route("/api/<family>/simulate", methods=["POST"])
def api_simulate(family):
    panel = get_panel(family)
    data = request_data()
    algorithm = data.get("algorithm") or data.get("algorithmName") or ""

    outcome = panel.submit(algorithm, data)
    if outcome.status is OutcomeStatus.INPUT_ERROR:
        return jsonify({"error": outcome.message, "field": outcome.field}), 400
    if outcome.status is OutcomeStatus.SUPERSEDED:
        return jsonify({"error": "A newer simulation replaced this one."}), 409
    if not outcome.ok:
        with panel.lock:
            state = panel_state(panel)
        state.update(error=outcome.message, banner=error_banner(outcome.message))
        return jsonify(state), 502

    with panel.lock:
        state = panel_state(panel)
        payload = panel.request.payload if panel.request else None
    if isinstance(payload, Graph):
        state["preview"] = render_graph_preview(payload)
    elif isinstance(payload, TreeNode):
        state["preview"] = render_tree_preview(payload)
    return jsonify(state)


# ---------------------------------------------------------------------------
# API: Step Navigation
# ---------------------------------------------------------------------------
def _navigate(family: str, move):
    panel = get_panel(family)
    with panel.lock:
        if not panel.stepper.is_ready:
            return jsonify({"error": PLAYBACK_MESSAGE}), 409
        move(panel.stepper)
        return jsonify(panel_state(panel))


@app.route("/api/<family>/step/next", methods=["POST"])
def api_step_next(family):
    return _navigate(family, lambda s: s.next_step())


@app.route("/api/<family>/step/prev", methods=["POST"])
def api_step_prev(family):
    return _navigate(family, lambda s: s.prev_step())


@app.route("/api/<family>/step/goto", methods=["POST"])
def api_step_goto(family):
    raw = request_data().get("index")
    try:
        idx = int(raw)
    except (TypeError, ValueError):
        return jsonify({"error": "index must be an integer"}), 400
    return _navigate(family, lambda s: s.seek(idx))


@app.route("/api/<family>/step/rewind", methods=["POST"])
def api_step_rewind(family):
    return _navigate(family, lambda s: s.rewind())


@app.route("/api/<family>/step/end", methods=["POST"])
def api_step_end(family):
    return _navigate(family, lambda s: s.jump_to_end())


@app.route("/api/<family>/reset", methods=["POST"])
def api_reset(family):
    panel = get_panel(family)
    panel.reset()
    with panel.lock:
        return jsonify(panel_state(panel))


@app.route("/api/<family>/state")
def api_state(family):
    panel = get_panel(family)
    with panel.lock:
        return jsonify(panel_state(panel))


# ---------------------------------------------------------------------------
# API: Tutor
# ---------------------------------------------------------------------------
@app.route("/api/tutor", methods=["POST"])
def api_tutor():
    data = request_data()
    subject = str(data.get("subject") or "").strip()
    question = str(data.get("question") or "").strip()
    if not subject or not question:
        return jsonify({"error": "Please enter both a subject and a question."}), 400

    try:
        explanation = get_backend().explain(subject, question)
    except (TransportError, RuntimeError) as exc:
        logger.warning("Tutor request failed: %s", exc)
        return jsonify({"error": user_message(TransportError(str(exc)))}), 502
    return jsonify({"explanation": explanation})


# ---------------------------------------------------------------------------
# HTML Templates
# ---------------------------------------------------------------------------
_STYLE = """
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    :root {
      --bg-dark: #0d1117; --bg-darker: #010409; --bg-panel: #161b22;
      --border: #30363d; --text-primary: #e6edf3; --text-secondary: #7d8590;
      --accent-cyan: #0ea5e9; --accent-rose: #f43f5e;
    }
    body { font-family: 'DM Sans', -apple-system, sans-serif; background: var(--bg-darker);
           color: var(--text-primary); display: flex; min-height: 100vh; }
    a { color: var(--accent-cyan); }
    #sidebar { width: 340px; background: var(--bg-dark); border-right: 1px solid var(--border);
               padding: 24px 16px; overflow-y: auto; }
    #main { flex: 1; padding: 24px; display: flex; flex-direction: column; gap: 16px; }
    .panel { background: var(--bg-panel); border: 1px solid var(--border); border-radius: 8px;
             padding: 14px; margin-bottom: 14px; }
    .panel h3 { font-size: 13px; text-transform: uppercase; color: var(--text-secondary); margin-bottom: 10px; }
    label { display: block; font-size: 12px; color: var(--text-secondary); margin: 8px 0 4px; }
    input, select, textarea { width: 100%; background: var(--bg-darker); color: var(--text-primary);
             border: 1px solid var(--border); border-radius: 6px; padding: 6px; font-family: inherit; }
    textarea { font-family: 'JetBrains Mono', monospace; font-size: 12px; }
    button { background: var(--bg-darker); color: var(--text-primary); border: 1px solid var(--border);
             border-radius: 6px; padding: 6px 12px; cursor: pointer; }
    button:disabled { opacity: 0.4; cursor: default; }
    .btn-primary { background: var(--accent-cyan); border: none; margin-top: 12px; width: 100%; }
    .button-row { display: flex; gap: 6px; margin-bottom: 8px; }
    .error-banner { background: rgba(244,63,94,0.15); border: 1px solid var(--accent-rose);
                    border-radius: 6px; padding: 10px; }
    .hidden { display: none; }
    .explanation-text .overview { color: var(--text-secondary); margin-bottom: 8px; }
    pre#tutor-output { white-space: pre-wrap; }
  </style>
"""

INDEX_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>AlgoViz Tutor</title>
""" + _STYLE + """
</head>
<body>
  <div id="sidebar">
    <div class="panel">
      <h3>Simulations</h3>
      <ul>
      {% for fam in families %}
        <li><a href="/simulations/{{ fam.value }}">{{ fam.value|capitalize }} algorithms</a></li>
      {% endfor %}
      </ul>
    </div>
  </div>
  <div id="main">
    <div class="panel">
      <h3>AI Tutor</h3>
      <label>Subject</label><input id="tutor-subject" placeholder="e.g. graph algorithms">
      <label>Question</label><textarea id="tutor-question" rows="4"></textarea>
      <button id="btn-ask" class="btn-primary">Explain step by step</button>
    </div>
    <div class="panel"><pre id="tutor-output"></pre></div>
  </div>
  <script>
    document.getElementById('btn-ask').addEventListener('click', async () => {
      const res = await fetch('/api/tutor', {method: 'POST', headers: {'Content-Type': 'application/json'},
        body: JSON.stringify({subject: document.getElementById('tutor-subject').value,
                              question: document.getElementById('tutor-question').value})});
      const data = await res.json();
      document.getElementById('tutor-output').textContent = data.explanation || data.error;
    });
  </script>
</body>
</html>
"""

PANEL_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{ family.value|capitalize }} Simulation · AlgoViz Tutor</title>
""" + _STYLE + """
</head>
<body>
  <div id="sidebar">
    <a href="/">← Home</a>
    {{ selector_html|safe }}
    {{ form_html|safe }}
    <div id="playback">{{ state.controls|safe }}</div>
  </div>
  <div id="main">
    <div id="banner"></div>
    <div class="panel" id="canvas">{{ (state.svg or "")|safe }}</div>
    <div class="panel" id="explanation">{{ state.explanation|safe }}</div>
    <div id="analytics">{{ state.analytics|safe }}</div>
  </div>
  <script>
    const FAMILY = "{{ family.value }}";

    async function post(url, body) {
      const res = await fetch(url, {method: 'POST', headers: {'Content-Type': 'application/json'},
                                    body: JSON.stringify(body || {})});
      return res.json();
    }

    function apply(data) {
      document.getElementById('banner').innerHTML = data.banner || (data.error
        ? '<div class="error-banner">' + data.error.replace(/</g, '&lt;') + '</div>' : '');
      if (data.controls !== undefined) document.getElementById('playback').innerHTML = data.controls;
      if (data.explanation !== undefined) document.getElementById('explanation').innerHTML = data.explanation;
      if (data.analytics !== undefined) document.getElementById('analytics').innerHTML = data.analytics;
      if (data.svg !== undefined || data.ready === false)
        document.getElementById('canvas').innerHTML = data.svg || '';
    }

    function syncFields() {
      const opt = document.querySelector('#algo-selector option:checked');
      const needs = (opt && opt.dataset.needs || '').split(',');
      for (const flag of ['start', 'end', 'target'])
        document.querySelectorAll('.needs-' + flag).forEach(el =>
          el.classList.toggle('hidden', !needs.includes(flag)));
    }
    document.getElementById('algo-selector').addEventListener('change', syncFields);
    syncFields();

    document.getElementById('sim-form').addEventListener('submit', async (e) => {
      e.preventDefault();
      const body = Object.fromEntries(new FormData(e.target).entries());
      e.target.querySelectorAll(".hidden[name]").forEach(el => delete body[el.name]);
      body.algorithm = document.getElementById('algo-selector').value;
      document.getElementById('banner').innerHTML = '<div class="panel">Generating simulation…</div>';
      apply(await post('/api/' + FAMILY + '/simulate', body));
    });

    document.addEventListener('click', async (e) => {
      const routes = {'btn-next': 'next', 'btn-prev': 'prev', 'btn-rewind': 'rewind', 'btn-end': 'end'};
      if (routes[e.target.id]) apply(await post('/api/' + FAMILY + '/step/' + routes[e.target.id]));
    });
    document.addEventListener('change', async (e) => {
      if (e.target.id === 'scrubber')
        apply(await post('/api/' + FAMILY + '/step/goto', {index: parseInt(e.target.value, 10)}));
    });
  </script>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logger.info("AlgoViz Tutor on http://%s:%d (model %s)", settings.host, settings.port, settings.gemini_model)
    app.run(debug=settings.debug, host=settings.host, port=settings.port)

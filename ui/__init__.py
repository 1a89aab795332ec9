"""
ui/
---
Presentation layer.

    from ui import render_step, render_graph_preview
    from ui import playback_controls, algorithm_selector, …
"""

from ui.canvas import (
    render_step,
    render_graph_preview,
    render_tree_preview,
    CanvasConfig,
)

from ui.controls import (
    playback_controls,
    algorithm_selector,
    input_form,
    explanation_panel,
    analytics_panel,
    error_banner,
)

__all__ = [
    "render_step",
    "render_graph_preview",
    "render_tree_preview",
    "CanvasConfig",
    "playback_controls",
    "algorithm_selector",
    "input_form",
    "explanation_panel",
    "analytics_panel",
    "error_banner",
]

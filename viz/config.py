"""Central configuration helpers for visualization modules."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

from utilities.config_utils import deep_update, load_layered_defaults, yaml_candidates


_DEFAULTS: Dict[str, Any] = {
    "global": {
        "save_html": False,
        "auto_open": True,
        "camera": {
            "eye": {"x": 1.5, "y": 1.5, "z": 1.5},
        },
        "hide_axes": True,
        "show_grid": False,
        "aspectmode": "data",
        "paper_bgcolor": "white",
        "plot_bgcolor": "white",
    },
    "surface": {
        # Used when the surface has no per-vertex colors; applied to z.
        "colorscale": "Turbo",
        "flat_color": "lightgray",
        "opacity": 1.0,
        "flatshading": False,
        "show_normals": False,
        "normal_scale": 0.1,
        "normal_color": "#303030",
        "title": "Surface",
        "filepaths": {
            "surface": "surface.html",
        },
    },
}

_EFFECTIVE_DEFAULTS: Dict[str, Any] = copy.deepcopy(_DEFAULTS)


def reload_viz_defaults(path: Optional[str] = None) -> None:
    """Reload visualization settings from YAML, falling back to built-ins."""
    candidates = yaml_candidates("viz_defaults.yaml", "VIZ_DEFAULTS_YAML", Path(__file__).resolve().parent, path)
    global _EFFECTIVE_DEFAULTS
    _EFFECTIVE_DEFAULTS = load_layered_defaults(_DEFAULTS, candidates)


def get_viz_defaults() -> Dict[str, Any]:
    """Return a deep copy of the effective visualization defaults."""
    return copy.deepcopy(_EFFECTIVE_DEFAULTS)


def get_viz_section(section: str) -> Dict[str, Any]:
    """Return merged defaults for ``section`` including global fallbacks."""
    defaults = get_viz_defaults()
    merged: Dict[str, Any] = {}

    global_defaults = defaults.get("global", {})
    if isinstance(global_defaults, dict):
        merged = copy.deepcopy(global_defaults)

    section_defaults = defaults.get(section, {})
    if isinstance(section_defaults, dict):
        deep_update(merged, copy.deepcopy(section_defaults))

    return merged


# Initialise configuration once on import.
reload_viz_defaults()

"""Surfacer configuration helpers with YAML override support."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

from utilities.config_utils import load_layered_defaults, yaml_candidates


_DEFAULTS: Dict[str, Any] = {
    "general": {
        "show_progress": True,
        # Options (see surfacing.methods.METHOD_REGISTRY):
        #   'height_field', 'implicit'
        "surface_method": "implicit",
        # Options (see surfacing.fields.FIELD_REGISTRY)
        "field": "sphere",
    },
    "height_field": {
        "resolution": 50,
        "color_mode": "height",
        # Per-dimension overrides, e.g. {"x": [-3, 3]}. Missing dimensions use
        # the space's default bounds.
        "bounds": {},
    },
    "implicit": {
        "resolution": 32,
        "iso_value": 0.0,
        "bounds": {
            "x": [-2.0, 2.0],
            "y": [-2.0, 2.0],
            "z": [-2.0, 2.0],
        },
        "edge_eps": 1e-6,
        # 'indeterminate' skips cubes touching an undefined corner,
        # 'outside' treats undefined corners as outside the surface.
        "nonfinite_corners": "indeterminate",
    },
    "exports": {
        "surface_export": False,
        "mesh_export": False,
        "mesh_format": "obj",
        "export_directory": "export_output/surfaces",
        "render": False,
    },
}

_EFFECTIVE_DEFAULTS: Dict[str, Any] = copy.deepcopy(_DEFAULTS)


def reload_surfacer_defaults(path: Optional[str] = None) -> None:
    """Reload surfacer settings from YAML, falling back to the built-ins.

    Only the first existing candidate file is merged. Files that fail to
    parse, or that do not hold a mapping at the top level, are ignored.

    Parameters
    ----------
    path : str, optional
        Explicit YAML file to read. When given, no other location is probed.
    """
    candidates = yaml_candidates(
        "surfacer_defaults.yaml",
        "SURFACER_DEFAULTS_YAML",
        Path(__file__).resolve().parent,
        path,
    )
    global _EFFECTIVE_DEFAULTS
    _EFFECTIVE_DEFAULTS = load_layered_defaults(_DEFAULTS, candidates)


def get_surfacer_defaults() -> Dict[str, Any]:
    """Return a deep copy of all effective configuration groups."""
    return copy.deepcopy(_EFFECTIVE_DEFAULTS)


def get_surfacer_section(section: str) -> Dict[str, Any]:
    """Return a deep copy of the configuration subset named ``section``."""
    defaults = get_surfacer_defaults()
    section_defaults = defaults.get(section, {})
    if isinstance(section_defaults, dict):
        return copy.deepcopy(section_defaults)
    return {}


reload_surfacer_defaults()

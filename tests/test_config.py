"""
Tests for surfacing.config, viz.config and utilities.config_utils
=================================================================

Run: python -m pytest tests/test_config.py -v
"""

import math

import pytest

from surfacing.config import get_surfacer_defaults, get_surfacer_section, reload_surfacer_defaults
from utilities.config_utils import (
    coerce_bool,
    coerce_bounds,
    coerce_choice,
    coerce_float,
    coerce_int,
    coerce_range,
)
from viz.config import get_viz_section, reload_viz_defaults


# =============================================================================
# Surfacer defaults
# =============================================================================

def test_builtin_defaults():
    """Built-in values are used when no YAML override exists."""
    defaults = get_surfacer_defaults()
    assert defaults["general"]["surface_method"] == "implicit"
    assert defaults["implicit"]["nonfinite_corners"] == "indeterminate"
    assert defaults["implicit"]["edge_eps"] == 1e-6
    assert defaults["height_field"]["resolution"] == 50


def test_defaults_are_copies():
    """Mutating a returned dict does not leak into later calls."""
    get_surfacer_defaults()["general"]["field"] = "torus"
    get_surfacer_section("implicit")["resolution"] = 2
    assert get_surfacer_defaults()["general"]["field"] == "sphere"
    assert get_surfacer_section("implicit")["resolution"] == 32
    assert get_surfacer_section("missing") == {}


def test_yaml_override_is_deep_merged(tmp_path):
    """An explicit YAML file overrides only the keys it names."""
    path = tmp_path / "override.yaml"
    path.write_text("implicit:\n  resolution: 8\n  bounds:\n    x: [-1, 1]\n", encoding="utf-8")
    reload_surfacer_defaults(str(path))
    implicit = get_surfacer_section("implicit")
    assert implicit["resolution"] == 8
    assert implicit["bounds"]["x"] == [-1, 1]
    assert implicit["bounds"]["y"] == [-2.0, 2.0]
    assert implicit["iso_value"] == 0.0


def test_env_var_selects_override(tmp_path, monkeypatch):
    """SURFACER_DEFAULTS_YAML points at the override file."""
    path = tmp_path / "env.yaml"
    path.write_text("general:\n  field: torus\n", encoding="utf-8")
    monkeypatch.setenv("SURFACER_DEFAULTS_YAML", str(path))
    reload_surfacer_defaults()
    assert get_surfacer_defaults()["general"]["field"] == "torus"


def test_broken_yaml_falls_back(tmp_path):
    """Unparseable or non-mapping YAML leaves the built-ins in place."""
    broken = tmp_path / "broken.yaml"
    broken.write_text("general: [unclosed\n", encoding="utf-8")
    reload_surfacer_defaults(str(broken))
    assert get_surfacer_defaults()["general"]["field"] == "sphere"

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    reload_surfacer_defaults(str(listing))
    assert get_surfacer_defaults()["general"]["field"] == "sphere"


def test_viz_section_merges_global(tmp_path):
    """Section settings are layered over the global block."""
    section = get_viz_section("surface")
    assert section["colorscale"] == "Turbo"
    assert section["aspectmode"] == "data"

    path = tmp_path / "viz.yaml"
    path.write_text("global:\n  hide_axes: false\nsurface:\n  opacity: 0.5\n", encoding="utf-8")
    reload_viz_defaults(str(path))
    section = get_viz_section("surface")
    assert section["hide_axes"] is False
    assert section["opacity"] == 0.5


# =============================================================================
# Coercion helpers
# =============================================================================

def test_coerce_scalars():
    """Numbers, strings and junk are coerced with fallbacks."""
    assert coerce_float("2.5", 0.0) == 2.5
    assert coerce_float(None, 1.0) == 1.0
    assert coerce_int("7", 0) == 7
    assert coerce_int("x", 3) == 3
    assert coerce_bool("yes", False) is True
    assert coerce_bool("off", True) is False
    assert coerce_bool("maybe", True) is True
    assert coerce_bool(0, True) is False


def test_coerce_choice():
    """Labels are normalised and validated against the choices."""
    assert coerce_choice(" Outside ", ("indeterminate", "outside"), "indeterminate") == "outside"
    assert coerce_choice("bogus", ("indeterminate", "outside"), "indeterminate") == "indeterminate"
    assert coerce_choice(None, ("a", "b"), "b") == "b"


def test_coerce_range_and_bounds():
    """Pairs and min/max mappings are accepted; junk entries are dropped."""
    assert coerce_range([0, 1]) == (0.0, 1.0)
    assert coerce_range({"min": "-2", "max": 2}) == (-2.0, 2.0)
    assert coerce_range([1, 2, 3]) is None
    assert coerce_range(["a", 1]) is None
    assert coerce_range("0,1") is None

    bounds = coerce_bounds({"x": [-1, 1], "y": "bad", "theta": {"min": 0, "max": math.pi}})
    assert bounds == {"x": (-1.0, 1.0), "theta": (0.0, pytest.approx(math.pi))}
    assert coerce_bounds(None) == {}

"""Config-driven wrappers running the two surface methods on registered fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from surfacing.colors import COLOR_MODES
from surfacing.config import get_surfacer_defaults
from surfacing.fields import FieldSpec, get_field
from surfacing.heightfield import HeightFieldEvaluator
from surfacing.marching_cubes import DEFAULT_EDGE_EPS, NONFINITE_POLICIES, ImplicitSurfaceExtractor
from surfacing.sampler import ScalarFieldSampler
from surfacing.spaces import get_space
from surfacing.surface_data import SurfaceData
from utilities.config_utils import (
    coerce_bool,
    coerce_bounds,
    coerce_choice,
    coerce_float,
    coerce_int,
)


@dataclass
class SurfaceMethodResult:
    """Container bundling a generated surface with its provenance."""

    name: str
    display_name: str
    field_key: str
    surface: SurfaceData
    metadata: Dict[str, Any]


MethodRunner = Callable[[FieldSpec, bool], SurfaceMethodResult]

_DEFAULT_IMPLICIT_BOUNDS = {"x": (-2.0, 2.0), "y": (-2.0, 2.0), "z": (-2.0, 2.0)}


def run_height_field_method(field_spec: FieldSpec, show_progress: bool = True) -> SurfaceMethodResult:
    settings = get_surfacer_defaults()
    general_cfg = settings.get("general", {})
    height_cfg = settings.get("height_field", {})

    space = get_space(field_spec.space)
    resolution = coerce_int(height_cfg.get("resolution"), 50)
    color_mode = coerce_choice(height_cfg.get("color_mode"), COLOR_MODES, "height")
    bounds = coerce_bounds(height_cfg.get("bounds"))
    show_bar = bool(coerce_bool(general_cfg.get("show_progress"), True) and show_progress)

    evaluator = HeightFieldEvaluator(ScalarFieldSampler(field_spec.function), space, show_progress=show_bar)
    surface = evaluator.evaluate(resolution, bounds=bounds, color_mode=color_mode)

    metadata = {
        "space": space.id,
        "resolution": resolution,
        "color_mode": color_mode,
        "bounds": {name: list(space.bounds_for(name, bounds)) for name in space.dimension_names[:2]},
    }
    return SurfaceMethodResult(
        name="height_field",
        display_name="Height Field",
        field_key=field_spec.key,
        surface=surface,
        metadata=metadata,
    )


def run_implicit_method(field_spec: FieldSpec, show_progress: bool = True) -> SurfaceMethodResult:
    settings = get_surfacer_defaults()
    general_cfg = settings.get("general", {})
    implicit_cfg = settings.get("implicit", {})

    resolution = coerce_int(implicit_cfg.get("resolution"), 32)
    iso_value = coerce_float(implicit_cfg.get("iso_value"), 0.0)
    edge_eps = coerce_float(implicit_cfg.get("edge_eps"), DEFAULT_EDGE_EPS)
    policy = coerce_choice(implicit_cfg.get("nonfinite_corners"), NONFINITE_POLICIES, "indeterminate")
    bounds = dict(_DEFAULT_IMPLICIT_BOUNDS)
    bounds.update(coerce_bounds(implicit_cfg.get("bounds")))
    show_bar = bool(coerce_bool(general_cfg.get("show_progress"), True) and show_progress)

    extractor = ImplicitSurfaceExtractor(
        ScalarFieldSampler(field_spec.function, numeric_only=True),
        edge_eps=edge_eps,
        nonfinite_corners=policy,
        show_progress=show_bar,
    )
    surface = extractor.extract(bounds, resolution, iso_value=iso_value)

    metadata = {
        "resolution": resolution,
        "iso_value": iso_value,
        "nonfinite_corners": policy,
        "bounds": {axis: list(rng) for axis, rng in bounds.items()},
        "stats": dict(extractor.last_stats),
    }
    return SurfaceMethodResult(
        name="implicit",
        display_name="Implicit (Marching Cubes)",
        field_key=field_spec.key,
        surface=surface,
        metadata=metadata,
    )


METHOD_REGISTRY: Dict[str, Tuple[str, MethodRunner]] = {
    "height_field": ("Height Field", run_height_field_method),
    "implicit": ("Implicit (Marching Cubes)", run_implicit_method),
}

# Surface method able to render each field kind.
KIND_METHODS: Dict[str, str] = {
    "height": "height_field",
    "implicit": "implicit",
}


def run_method_from_config(field_key: Optional[str] = None, show_progress: bool = True) -> SurfaceMethodResult:
    """
    Convenience dispatcher: read 'general.surface_method' and 'general.field' from config and run them.

    ``field_key`` overrides the configured field; the method is then chosen
    from the field's kind. A configured field whose kind does not match the
    configured method raises ``ValueError``.
    """
    settings = get_surfacer_defaults()
    general_cfg = settings.get("general", {})
    requested_key = str(general_cfg.get("surface_method", "implicit")).lower()
    if requested_key not in METHOD_REGISTRY:
        raise ValueError(
            f"Surface method '{requested_key}' is not registered. "
            f"Available methods: {', '.join(sorted(METHOD_REGISTRY))}"
        )

    field_spec = get_field(field_key or str(general_cfg.get("field", "sphere")))
    method_key = KIND_METHODS[field_spec.kind]
    if not field_key and method_key != requested_key:
        raise ValueError(
            f"Field '{field_spec.key}' is a {field_spec.kind} field and needs surface method "
            f"'{method_key}', but 'general.surface_method' is '{requested_key}'"
        )

    _, runner = METHOD_REGISTRY[method_key]
    result = runner(field_spec, show_progress)
    result.metadata.setdefault("requested_method", requested_key)
    result.metadata.setdefault("field_kind", field_spec.kind)
    return result


__all__ = [
    "SurfaceMethodResult",
    "MethodRunner",
    "run_height_field_method",
    "run_implicit_method",
    "run_method_from_config",
    "METHOD_REGISTRY",
    "KIND_METHODS",
]

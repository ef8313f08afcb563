"""Field adapters and the registry of built-in demonstration fields."""

from __future__ import annotations

import cmath
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from surfacing.sampler import FieldFunction

FIELD_KINDS = ("height", "implicit")


def equation_field(
    lhs: Callable[[Mapping[str, float]], Any],
    rhs: Callable[[Mapping[str, float]], Any],
) -> FieldFunction:
    """Turn the equation ``lhs = rhs`` into the implicit field ``lhs - rhs``.

    Either side raising, or returning something that does not support
    subtraction, propagates to the sampler, which records the point as
    undefined.
    """

    def field(bindings: Mapping[str, float]) -> Any:
        return lhs(bindings) - rhs(bindings)

    return field


@dataclass(frozen=True)
class FieldSpec:
    """Named demonstration field.

    Attributes
    ----------
    key : str
        Registry key.
    display_name : str
        Label for reports.
    kind : {"height", "implicit"}
        Surface mode the field is meant for.
    space : str
        Id of the coordinate space the bindings are expressed in.
    function : FieldFunction
        Callable receiving the coordinate bindings.
    """

    key: str
    display_name: str
    kind: str
    space: str
    function: FieldFunction


def _sphere(b: Mapping[str, float]) -> float:
    return b["x"] ** 2 + b["y"] ** 2 + b["z"] ** 2 - 1.0


def _torus(b: Mapping[str, float]) -> float:
    ring = math.hypot(b["x"], b["y"]) - 1.0
    return ring * ring + b["z"] ** 2 - 0.35 ** 2


def _gyroid(b: Mapping[str, float]) -> float:
    x, y, z = b["x"] * math.pi, b["y"] * math.pi, b["z"] * math.pi
    return math.sin(x) * math.cos(y) + math.sin(y) * math.cos(z) + math.sin(z) * math.cos(x)


def _paraboloid(b: Mapping[str, float]) -> float:
    return 0.25 * (b["x"] ** 2 + b["y"] ** 2)


def _saddle(b: Mapping[str, float]) -> float:
    return 0.25 * (b["x"] ** 2 - b["y"] ** 2)


def _ripple(b: Mapping[str, float]) -> float:
    r = math.hypot(b["x"], b["y"])
    # Undefined at the origin on purpose: exercises placeholder vertices.
    return math.sin(3.0 * r) / r


def _bowl(b: Mapping[str, float]) -> float:
    return b["r"] ** 2 / 5.0


def _complex_square(b: Mapping[str, float]) -> complex:
    z = complex(b["re"], b["im"])
    return z * z


def _reciprocal(b: Mapping[str, float]) -> complex:
    return 1.0 / complex(b["re"], b["im"])


def _log_modulus(b: Mapping[str, float]) -> complex:
    return cmath.log(complex(b["re"], b["im"]))


FIELD_REGISTRY: Dict[str, FieldSpec] = {
    field_spec.key: field_spec
    for field_spec in (
        FieldSpec("sphere", "Unit sphere", "implicit", "cartesian", _sphere),
        FieldSpec("torus", "Torus", "implicit", "cartesian", _torus),
        FieldSpec("gyroid", "Gyroid", "implicit", "cartesian", _gyroid),
        FieldSpec("paraboloid", "Paraboloid", "height", "cartesian", _paraboloid),
        FieldSpec("saddle", "Saddle", "height", "cartesian", _saddle),
        FieldSpec("ripple", "Ripple sin(3r)/r", "height", "cartesian", _ripple),
        FieldSpec("bowl", "Polar bowl", "height", "polar", _bowl),
        FieldSpec("complex_square", "z^2", "height", "complex-plane", _complex_square),
        FieldSpec("reciprocal", "1/z", "height", "complex-plane", _reciprocal),
        FieldSpec("log", "log z", "height", "complex-plane", _log_modulus),
    )
}


def get_field(key: str) -> FieldSpec:
    """Look up a registered field.

    Raises
    ------
    ValueError
        If ``key`` is not registered.
    """
    field_spec = FIELD_REGISTRY.get(key)
    if field_spec is None:
        raise ValueError(
            f"Field '{key}' is not registered. Available fields: {', '.join(sorted(FIELD_REGISTRY))}"
        )
    return field_spec

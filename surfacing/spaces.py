"""Coordinate-space descriptors translating field coordinates to Cartesian 3D.

A space names its three dimensions (two inputs and one output for height
fields), converts a coordinate mapping to a renderable ``(x, y, z)`` point and
back, and carries default bounds used when a caller does not supply any.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

Point3 = Tuple[float, float, float]
Range = Tuple[float, float]


@dataclass(frozen=True)
class CoordinateDimension:
    """One named axis of a :class:`MathSpace`."""

    name: str
    symbol: str
    unit: Optional[str] = None
    periodic: bool = False


@dataclass(frozen=True)
class MathSpace:
    """Descriptor of a coordinate system.

    Attributes
    ----------
    id : str
        Registry key.
    name, description : str
        Human-readable labels.
    dimensions : Tuple[CoordinateDimension, ...]
        Exactly three dimensions. Height fields sample over the first two and
        bind the field value to the third.
    to_cartesian : Callable[[Mapping[str, float]], Point3]
        Forward transform. Missing coordinates are read as 0.
    from_cartesian : Callable[[Point3], Dict[str, float]]
        Inverse transform.
    default_bounds : Dict[str, Range]
        ``(min, max)`` per dimension name.
    """

    id: str
    name: str
    description: str
    dimensions: Tuple[CoordinateDimension, ...]
    to_cartesian: Callable[[Mapping[str, float]], Point3]
    from_cartesian: Callable[[Point3], Dict[str, float]]
    default_bounds: Dict[str, Range] = field(default_factory=dict)

    @property
    def dimension_names(self) -> List[str]:
        return [dim.name for dim in self.dimensions]

    def bounds_for(self, name: str, overrides: Mapping[str, Range] | None = None) -> Range:
        """Return the range of ``name``, preferring ``overrides`` over the defaults.

        Raises
        ------
        ValueError
            If neither ``overrides`` nor the default bounds cover ``name``.
        """
        if overrides and name in overrides:
            lo, hi = overrides[name]
            return float(lo), float(hi)
        if name in self.default_bounds:
            lo, hi = self.default_bounds[name]
            return float(lo), float(hi)
        raise ValueError(f"No bounds available for dimension {name!r} in space {self.id!r}")


def _cartesian_to(coords: Mapping[str, float]) -> Point3:
    return (
        float(coords.get("x", 0.0)),
        float(coords.get("y", 0.0)),
        float(coords.get("z", 0.0)),
    )


def _cartesian_from(point: Point3) -> Dict[str, float]:
    x, y, z = point
    return {"x": float(x), "y": float(y), "z": float(z)}


def _polar_to(coords: Mapping[str, float]) -> Point3:
    r = float(coords.get("r", 0.0))
    theta = float(coords.get("theta", 0.0))
    z = float(coords.get("z", 0.0))
    return r * math.cos(theta), r * math.sin(theta), z


def _polar_from(point: Point3) -> Dict[str, float]:
    x, y, z = point
    return {"r": math.hypot(x, y), "theta": math.atan2(y, x), "z": float(z)}


def _complex_to(coords: Mapping[str, float]) -> Point3:
    return (
        float(coords.get("re", 0.0)),
        float(coords.get("im", 0.0)),
        float(coords.get("mag", 0.0)),
    )


def _complex_from(point: Point3) -> Dict[str, float]:
    x, y, z = point
    return {"re": float(x), "im": float(y), "mag": float(z)}


CARTESIAN_SPACE = MathSpace(
    id="cartesian",
    name="Cartesian",
    description="Standard 3D Cartesian coordinates (x, y, z)",
    dimensions=(
        CoordinateDimension("x", "x"),
        CoordinateDimension("y", "y"),
        CoordinateDimension("z", "z"),
    ),
    to_cartesian=_cartesian_to,
    from_cartesian=_cartesian_from,
    default_bounds={"x": (-5.0, 5.0), "y": (-5.0, 5.0), "z": (-5.0, 5.0)},
)

POLAR_SPACE = MathSpace(
    id="polar",
    name="Polar/Cylindrical",
    description="Polar coordinates (r, theta, z)",
    dimensions=(
        CoordinateDimension("r", "r"),
        CoordinateDimension("theta", "θ", unit="rad", periodic=True),
        CoordinateDimension("z", "z"),
    ),
    to_cartesian=_polar_to,
    from_cartesian=_polar_from,
    default_bounds={"r": (0.0, 5.0), "theta": (0.0, 2.0 * math.pi), "z": (-5.0, 5.0)},
)

COMPLEX_PLANE_SPACE = MathSpace(
    id="complex-plane",
    name="Complex Plane",
    description="Magnitude surface |f(z)| over the complex plane",
    dimensions=(
        CoordinateDimension("re", "Re(z)"),
        CoordinateDimension("im", "Im(z)"),
        CoordinateDimension("mag", "|f(z)|"),
    ),
    to_cartesian=_complex_to,
    from_cartesian=_complex_from,
    default_bounds={"re": (-2.0, 2.0), "im": (-2.0, 2.0), "mag": (0.0, 5.0)},
)


_SPACES: Dict[str, MathSpace] = {}


def register_space(space: MathSpace) -> None:
    """Add ``space`` to the registry, replacing any space with the same id."""
    if len(space.dimensions) != 3:
        raise ValueError(f"space {space.id!r} must define exactly 3 dimensions")
    _SPACES[space.id] = space


def get_space(space_id: str) -> MathSpace:
    """Look up a registered space.

    Raises
    ------
    ValueError
        If ``space_id`` is not registered.
    """
    space = _SPACES.get(space_id)
    if space is None:
        raise ValueError(
            f"Space '{space_id}' is not registered. Available spaces: {', '.join(sorted(_SPACES))}"
        )
    return space


def get_all_spaces() -> List[MathSpace]:
    return list(_SPACES.values())


for _space in (CARTESIAN_SPACE, COMPLEX_PLANE_SPACE, POLAR_SPACE):
    register_space(_space)

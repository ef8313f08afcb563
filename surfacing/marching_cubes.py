"""Implicit isosurface extraction with Marching Cubes.

The field is sampled once per lattice point of an ``(R+1)³`` grid, so cubes
that share corners read identical values. Each of the ``R³`` cubes is then
classified by an 8-bit configuration index, its crossed edges are looked up
in :data:`~surfacing.tables.EDGE_TABLE`, and its triangles in
:data:`~surfacing.tables.TRI_TABLE`.

Crossing vertices are cached per *lattice edge*, keyed by the lower endpoint
of the edge and its axis (see :data:`~surfacing.tables.EDGE_LATTICE`). Every
cube touching an edge therefore resolves it to the same vertex index, which
keeps the mesh free of cracks and duplicated vertices along cube faces.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from surfacing.normals import compute_vertex_normals
from surfacing.sampler import ScalarFieldSampler
from surfacing.spaces import Range
from surfacing.surface_data import SurfaceData
from surfacing.tables import (
    CORNER_OFFSETS,
    EDGE_CORNERS,
    EDGE_LATTICE,
    EDGE_TABLE,
    TRI_TABLE,
    TRIANGLE_SENTINEL,
)

NONFINITE_POLICIES = ("indeterminate", "outside")
DEFAULT_EDGE_EPS = 1e-6

EdgeKey = Tuple[int, int, int, int]

_AXES = ("x", "y", "z")
_CORNER_OFFSETS = [tuple(int(v) for v in row) for row in CORNER_OFFSETS]
_EDGE_CORNERS = [(int(a), int(b)) for a, b in EDGE_CORNERS]
_EDGE_LATTICE = [tuple(int(v) for v in row) for row in EDGE_LATTICE]
_EDGE_TABLE = [int(v) for v in EDGE_TABLE]
_TRI_TABLE = [[int(e) for e in row if e != TRIANGLE_SENTINEL] for row in TRI_TABLE]


def cube_configuration(
    corner_values: Sequence[float],
    iso_value: float,
    nonfinite_corners: str = "indeterminate",
) -> Optional[int]:
    """Return the 8-bit configuration index of one cube.

    Bit ``c`` is set when corner ``c`` is finite and strictly below
    ``iso_value``.

    Parameters
    ----------
    corner_values : Sequence[float]
        Eight corner samples in :data:`~surfacing.tables.CORNER_OFFSETS`
        order.
    iso_value : float
        Threshold of the level set.
    nonfinite_corners : {"indeterminate", "outside"}
        How non-finite corners are read. ``indeterminate`` makes the whole
        cube indeterminate (``None`` is returned); ``outside`` leaves the
        corner's bit unset.

    Returns
    -------
    int or None
        Configuration index in ``[0, 255]``, or ``None`` for an indeterminate
        cube.
    """
    index = 0
    for corner, value in enumerate(corner_values):
        if not math.isfinite(value):
            if nonfinite_corners == "indeterminate":
                return None
            continue
        if value < iso_value:
            index |= 1 << corner
    return index


def interpolate_crossing(v1: float, v2: float, iso_value: float, eps: float = DEFAULT_EDGE_EPS) -> float:
    """Return the parameter ``t`` in ``[0, 1]`` where the edge crosses ``iso_value``.

    ``t = (iso - v1) / (v2 - v1)``. Nearly equal endpoint values
    (``|v1 - v2| < eps``) and non-finite endpoints fall back to the midpoint.
    """
    if not (math.isfinite(v1) and math.isfinite(v2)):
        return 0.5
    if abs(v1 - v2) < eps:
        return 0.5
    return (iso_value - v1) / (v2 - v1)


@dataclass
class _ExtractionContext:
    """State owned by a single :meth:`ImplicitSurfaceExtractor.extract` call."""

    origin: Tuple[float, float, float]
    step: Tuple[float, float, float]
    iso_value: float
    edge_eps: float
    vertices: List[float] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    edge_cache: Dict[EdgeKey, int] = field(default_factory=dict)
    active_cubes: int = 0
    interpolated_edges: int = 0

    def edge_vertex(self, i: int, j: int, k: int, edge: int, corner_values: Sequence[float]) -> int:
        """Return the vertex index of ``edge`` of cube ``(i, j, k)``, creating it once."""
        dx, dy, dz, axis = _EDGE_LATTICE[edge]
        key = (i + dx, j + dy, k + dz, axis)
        cached = self.edge_cache.get(key)
        if cached is not None:
            return cached

        c1, c2 = _EDGE_CORNERS[edge]
        t = interpolate_crossing(corner_values[c1], corner_values[c2], self.iso_value, self.edge_eps)
        p1 = _CORNER_OFFSETS[c1]
        p2 = _CORNER_OFFSETS[c2]
        lattice = (i, j, k)
        for a in range(3):
            local = p1[a] + t * (p2[a] - p1[a])
            self.vertices.append(self.origin[a] + (lattice[a] + local) * self.step[a])

        index = len(self.vertices) // 3 - 1
        self.edge_cache[key] = index
        self.interpolated_edges += 1
        return index


class ImplicitSurfaceExtractor:
    """Approximate the level set ``f(x, y, z) = iso`` as a triangle mesh.

    Parameters
    ----------
    sampler : ScalarFieldSampler
        Field sampler. Samples are taken in numeric-only mode: complex,
        boolean or other result kinds count as undefined.
    edge_eps : float, optional
        Endpoint difference below which an edge crossing snaps to the
        midpoint.
    nonfinite_corners : {"indeterminate", "outside"}, optional
        Treatment of undefined corners, see :func:`cube_configuration`.
        ``"outside"`` is the classic behaviour where a non-finite corner
        counts as outside the level set and crossings on its edges snap to
        the midpoint. The default ``"indeterminate"`` skips such cubes so no
        surface is drawn across singularities.
    show_progress : bool, optional
        Display progress bars over lattice and cube slabs.

    Notes
    -----
    Triangles are emitted with their table order reversed so that face
    normals point towards increasing field values (out of the region where
    ``f < iso``).
    """

    def __init__(
        self,
        sampler: ScalarFieldSampler,
        *,
        edge_eps: float = DEFAULT_EDGE_EPS,
        nonfinite_corners: str = "indeterminate",
        show_progress: bool = False,
    ) -> None:
        if nonfinite_corners not in NONFINITE_POLICIES:
            raise ValueError(
                f"nonfinite_corners must be one of {NONFINITE_POLICIES}, got {nonfinite_corners!r}"
            )
        self.sampler = sampler.with_numeric_only(True)
        self.edge_eps = float(edge_eps)
        self.nonfinite_corners = nonfinite_corners
        self.show_progress = bool(show_progress)
        self.last_stats: Dict[str, int] = {}

    def sample_lattice(self, bounds: Mapping[str, Range], resolution: int) -> np.ndarray:
        """Sample the field at every lattice point.

        Returns
        -------
        np.ndarray
            ``(R+1, R+1, R+1)`` array indexed ``[i, j, k]`` along x, y, z.
            Undefined samples are NaN.
        """
        (x_min, x_max), (y_min, y_max), (z_min, z_max) = (bounds[a] for a in _AXES)
        step_x = (x_max - x_min) / resolution
        step_y = (y_max - y_min) / resolution
        step_z = (z_max - z_min) / resolution

        n = resolution + 1
        values = np.full((n, n, n), np.nan, dtype=np.float64)
        for i in tqdm(
            range(n),
            disable=not self.show_progress,
            desc="Sampling implicit field",
            unit="slab",
        ):
            x = x_min + i * step_x
            for j in range(n):
                y = y_min + j * step_y
                for k in range(n):
                    sample = self.sampler.sample({"x": x, "y": y, "z": z_min + k * step_z})
                    if sample.defined:
                        values[i, j, k] = sample.value
        return values

    def extract(
        self,
        bounds: Mapping[str, Range],
        resolution: int,
        iso_value: float = 0.0,
    ) -> SurfaceData:
        """Run Marching Cubes over ``R×R×R`` cubes inside ``bounds``.

        Parameters
        ----------
        bounds : Mapping[str, Tuple[float, float]]
            ``(min, max)`` for each of ``"x"``, ``"y"`` and ``"z"``.
        resolution : int
            Cubes per axis ``R``. Not validated.
        iso_value : float, optional
            Level to extract; defaults to 0.

        Returns
        -------
        SurfaceData
            Shared-vertex mesh with smooth normals and no color buffer. An
            empty index buffer means the field never crosses ``iso_value``.
        """
        values = self.sample_lattice(bounds, resolution)
        origin = tuple(float(bounds[a][0]) for a in _AXES)
        step = tuple((float(bounds[a][1]) - float(bounds[a][0])) / resolution for a in _AXES)
        ctx = _ExtractionContext(
            origin=origin,
            step=step,
            iso_value=float(iso_value),
            edge_eps=self.edge_eps,
        )

        for i in tqdm(
            range(resolution),
            disable=not self.show_progress,
            desc="Marching cubes",
            unit="slab",
        ):
            for j in range(resolution):
                for k in range(resolution):
                    self._march_cube(ctx, values, i, j, k)

        self.last_stats = {
            "active_cubes": ctx.active_cubes,
            "interpolated_edges": ctx.interpolated_edges,
            "vertex_count": len(ctx.vertices) // 3,
            "triangle_count": len(ctx.indices) // 3,
        }

        if not ctx.indices:
            return SurfaceData.empty()
        normals = compute_vertex_normals(ctx.vertices, ctx.indices)
        return SurfaceData.from_buffers(ctx.vertices, normals, ctx.indices)

    def _march_cube(self, ctx: _ExtractionContext, values: np.ndarray, i: int, j: int, k: int) -> None:
        corner_values = [float(values[i + dx, j + dy, k + dz]) for dx, dy, dz in _CORNER_OFFSETS]
        config = cube_configuration(corner_values, ctx.iso_value, self.nonfinite_corners)
        if config is None or config == 0 or config == 255:
            return

        edge_mask = _EDGE_TABLE[config]
        ctx.active_cubes += 1

        edge_vertices = [-1] * 12
        for edge in range(12):
            if edge_mask & (1 << edge):
                edge_vertices[edge] = ctx.edge_vertex(i, j, k, edge, corner_values)

        triangles = _TRI_TABLE[config]
        for t in range(0, len(triangles), 3):
            a = edge_vertices[triangles[t]]
            b = edge_vertices[triangles[t + 1]]
            c = edge_vertices[triangles[t + 2]]
            ctx.indices.extend((a, c, b))

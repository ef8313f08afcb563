"""Explicit height-field surfaces sampled on a regular 2D grid.

Two builders live here:

* :class:`HeightFieldEvaluator` samples a field over the first two dimensions
  of a :class:`~surfacing.spaces.MathSpace`, binds the value to the third
  dimension and stitches a fixed quad-grid triangulation.
* :func:`surface_from_height_values` turns an already computed grid of
  heights (for example a magnitude map) into a surface, skipping masked
  quads and estimating normals by central differences.
"""

from __future__ import annotations

import math
from typing import List, Mapping, Optional, Tuple

import numpy as np
from tqdm import tqdm

from surfacing.colors import COLOR_MODES, domain_color, height_ramp, height_ratios
from surfacing.normals import compute_vertex_normals
from surfacing.sampler import ScalarFieldSampler
from surfacing.spaces import CARTESIAN_SPACE, MathSpace, Range
from surfacing.surface_data import SurfaceData


def quad_grid_indices(resolution: int) -> np.ndarray:
    """Return the ``6·R²`` triangle indices of an ``(R+1)×(R+1)`` vertex grid.

    For each cell with lower corner ``idx = i·(R+1) + j`` the triangles are
    ``(idx, idx+1, idx+R+1)`` and ``(idx+1, idx+R+2, idx+R+1)``.
    """
    row = resolution + 1
    cells = np.arange(resolution)
    idx = (cells[:, None] * row + cells[None, :]).reshape(-1)
    tris = np.empty((idx.size, 6), dtype=np.uint32)
    tris[:, 0] = idx
    tris[:, 1] = idx + 1
    tris[:, 2] = idx + row
    tris[:, 3] = idx + 1
    tris[:, 4] = idx + row + 1
    tris[:, 5] = idx + row
    return tris.reshape(-1)


class HeightFieldEvaluator:
    """Sample ``value = f(u, v)`` over a space and emit a :class:`SurfaceData`.

    Parameters
    ----------
    sampler : ScalarFieldSampler
        Field sampler. It is used as given; complex results contribute their
        magnitude and booleans 1/0.
    space : MathSpace, optional
        Coordinate space; defaults to Cartesian ``z = f(x, y)``.
    show_progress : bool, optional
        Display a progress bar over grid rows.
    """

    def __init__(
        self,
        sampler: ScalarFieldSampler,
        space: MathSpace = CARTESIAN_SPACE,
        *,
        show_progress: bool = False,
    ) -> None:
        self.sampler = sampler
        self.space = space
        self.show_progress = bool(show_progress)

    def evaluate(
        self,
        resolution: int,
        bounds: Mapping[str, Range] | None = None,
        color_mode: str = "height",
    ) -> SurfaceData:
        """Sample the field on an ``(R+1)×(R+1)`` grid and triangulate it.

        Parameters
        ----------
        resolution : int
            Number of cells per side ``R``. Not validated.
        bounds : Mapping[str, Tuple[float, float]], optional
            Ranges for the two input dimensions. Missing entries fall back to
            the space's default bounds.
        color_mode : {"height", "domain", "none"}
            ``height`` colors by normalised value, ``domain`` by the phase of
            complex samples (non-complex samples fall back to the height
            ramp), ``none`` omits the color buffer.

        Returns
        -------
        SurfaceData
            ``(R+1)²`` vertices and normals, ``6·R²`` indices. Samples that
            failed or were non-finite become placeholder vertices at the
            origin, colored black.

        Raises
        ------
        ValueError
            If ``color_mode`` is unknown.
        """
        if color_mode not in COLOR_MODES:
            raise ValueError(f"color_mode must be one of {COLOR_MODES}, got {color_mode!r}")

        dim1, dim2, dim3 = self.space.dimension_names
        min1, max1 = self.space.bounds_for(dim1, bounds)
        min2, max2 = self.space.bounds_for(dim2, bounds)
        step1 = (max1 - min1) / resolution
        step2 = (max2 - min2) / resolution

        row = resolution + 1
        count = row * row
        positions = np.zeros((count, 3), dtype=np.float64)
        raw_values = np.full(count, np.nan, dtype=np.float64)
        phase_colors: List[Optional[Tuple[float, float, float]]] = [None] * count

        v_min = math.inf
        v_max = -math.inf

        for i in tqdm(
            range(row),
            disable=not self.show_progress,
            desc="Sampling height field",
            unit="row",
        ):
            coord1 = min1 + i * step1
            for j in range(row):
                coord2 = min2 + j * step2
                idx = i * row + j
                sample = self.sampler.sample({dim1: coord1, dim2: coord2})
                if not sample.is_finite:
                    # Placeholder keeps the grid topology intact.
                    continue

                value = sample.value
                point = self.space.to_cartesian({dim1: coord1, dim2: coord2, dim3: value})
                if not all(math.isfinite(c) for c in point):
                    continue

                v_min = min(v_min, value)
                v_max = max(v_max, value)
                positions[idx] = point
                raw_values[idx] = value
                if color_mode == "domain" and sample.is_complex:
                    phase_colors[idx] = domain_color(sample.real, sample.imag)

        indices = quad_grid_indices(resolution)
        normals = compute_vertex_normals(positions, indices)
        colors = None
        if color_mode != "none":
            colors = self._colorize(raw_values, phase_colors, v_min, v_max)

        return SurfaceData.from_buffers(positions, normals, indices, colors)

    @staticmethod
    def _colorize(
        raw_values: np.ndarray,
        phase_colors: List[Optional[Tuple[float, float, float]]],
        v_min: float,
        v_max: float,
    ) -> np.ndarray:
        rgb = height_ramp(height_ratios(raw_values, v_min, v_max))
        rgb[~np.isfinite(raw_values)] = 0.0
        for idx, color in enumerate(phase_colors):
            if color is not None:
                rgb[idx] = color
        return rgb


def surface_from_height_values(
    resolution: int,
    x_range: Range,
    y_range: Range,
    values: np.ndarray,
    mask: np.ndarray | None = None,
) -> SurfaceData:
    """Build a surface from an ``N×N`` grid of precomputed heights.

    Parameters
    ----------
    resolution : int
        Samples per side ``N``.
    x_range, y_range : Tuple[float, float]
        Extents of the grid. Column 0 sits at ``x_min``; row 0 sits at
        ``y_max`` (image order).
    values : np.ndarray
        ``N·N`` heights in row-major order.
    mask : np.ndarray, optional
        ``N·N`` flags; zero entries are excluded from triangulation.

    Returns
    -------
    SurfaceData
        ``N²`` vertices. Invalid samples (masked or non-finite) sit at height
        0. Normals come from central differences on the height grid, with
        non-finite neighbours replaced by the centre value. Only quads whose
        four corners are unmasked are triangulated, as ``(idx, idx+N, idx+1)``
        and ``(idx+1, idx+N, idx+N+1)``. No color buffer is produced.
    """
    n = int(resolution)
    heights = np.asarray(values, dtype=np.float64).reshape(n, n)
    valid_mask = np.ones((n, n), dtype=bool) if mask is None else np.asarray(mask).reshape(n, n) != 0

    x_step = (x_range[1] - x_range[0]) / (n - 1) if n > 1 else 1.0
    y_step = (y_range[1] - y_range[0]) / (n - 1) if n > 1 else 1.0

    valid = valid_mask & np.isfinite(heights)
    z = np.where(valid, heights, 0.0)

    cols, rows = np.meshgrid(np.arange(n), np.arange(n))
    positions = np.stack(
        [
            x_range[0] + cols * x_step,
            y_range[1] - rows * y_step,
            z,
        ],
        axis=-1,
    ).reshape(-1, 3)

    def neighbour(shifted: np.ndarray) -> np.ndarray:
        return np.where(np.isfinite(shifted), shifted, z)

    # Border samples pad with their own raw value.
    left = neighbour(np.concatenate([heights[:, :1], heights[:, :-1]], axis=1))
    right = neighbour(np.concatenate([heights[:, 1:], heights[:, -1:]], axis=1))
    up = neighbour(np.concatenate([heights[:1, :], heights[:-1, :]], axis=0))
    down = neighbour(np.concatenate([heights[1:, :], heights[-1:, :]], axis=0))

    dx = (right - left) / (2.0 * x_step or 1.0)
    dy = (up - down) / (2.0 * y_step or 1.0)
    normals = np.stack([-dx, -dy, np.ones_like(dx)], axis=-1).reshape(-1, 3)
    lengths = np.linalg.norm(normals, axis=1)
    lengths[~(lengths > 0.0)] = 1.0
    normals = normals / lengths[:, None]

    indices: List[int] = []
    for r in range(n - 1):
        for c in range(n - 1):
            if valid_mask[r, c] and valid_mask[r, c + 1] and valid_mask[r + 1, c] and valid_mask[r + 1, c + 1]:
                idx = r * n + c
                indices.extend((idx, idx + n, idx + 1))
                indices.extend((idx + 1, idx + n, idx + n + 1))

    return SurfaceData.from_buffers(positions, normals, indices)

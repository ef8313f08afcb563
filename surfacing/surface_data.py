"""Flat-buffer surface record shared by the height-field and implicit paths.

The buffers follow the layout a GPU renderer consumes directly: ``float32``
arrays of interleaved ``xyz`` (positions, normals) or ``rgb`` (colors), and a
``uint32`` array of triangle corner indices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np


@dataclass
class SurfaceData:
    """Triangle mesh handed by value to the caller.

    Attributes
    ----------
    vertices : np.ndarray
        ``float32`` array ``[x0, y0, z0, x1, y1, z1, ...]``.
    normals : np.ndarray
        ``float32`` array with one (unit or zero) vector per vertex.
    indices : np.ndarray
        ``uint32`` array of triangle corners, three per triangle.
    colors : np.ndarray, optional
        ``float32`` RGB triple per vertex, or ``None`` when no coloring was
        requested.
    """

    vertices: np.ndarray
    normals: np.ndarray
    indices: np.ndarray
    colors: Optional[np.ndarray] = None

    @classmethod
    def from_buffers(
        cls,
        vertices: Sequence[float] | np.ndarray,
        normals: Sequence[float] | np.ndarray,
        indices: Sequence[int] | np.ndarray,
        colors: Sequence[float] | np.ndarray | None = None,
    ) -> "SurfaceData":
        """Build a record from arbitrary sequences, casting to the wire dtypes."""
        return cls(
            vertices=np.asarray(vertices, dtype=np.float32).reshape(-1),
            normals=np.asarray(normals, dtype=np.float32).reshape(-1),
            indices=np.asarray(indices, dtype=np.uint32).reshape(-1),
            colors=None if colors is None else np.asarray(colors, dtype=np.float32).reshape(-1),
        )

    @classmethod
    def empty(cls) -> "SurfaceData":
        """Return the valid "no surface" record."""
        return cls.from_buffers([], [], [])

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.size // 3)

    @property
    def triangle_count(self) -> int:
        return int(self.indices.size // 3)

    @property
    def is_empty(self) -> bool:
        return self.indices.size == 0

    def positions(self) -> np.ndarray:
        """Return the vertices as a ``(V, 3)`` view."""
        return self.vertices.reshape(-1, 3)

    def faces(self) -> np.ndarray:
        """Return the triangles as a ``(F, 3)`` view."""
        return self.indices.reshape(-1, 3)

    def validate(self) -> "SurfaceData":
        """Check the buffer invariants and return ``self``.

        Raises
        ------
        ValueError
            If the vertex and normal buffers differ in length or are not
            multiples of three, if the color buffer is misaligned, if the
            index buffer is not a whole number of triangles, or if an index
            points past the last vertex.
        """
        if self.vertices.size % 3 != 0:
            raise ValueError(f"vertex buffer length ({self.vertices.size}) is not a multiple of 3")
        if self.normals.size != self.vertices.size:
            raise ValueError(
                f"normal buffer length ({self.normals.size}) != vertex buffer length ({self.vertices.size})"
            )
        if self.colors is not None and self.colors.size != self.vertices.size:
            raise ValueError(
                f"color buffer length ({self.colors.size}) != vertex buffer length ({self.vertices.size})"
            )
        if self.indices.size % 3 != 0:
            raise ValueError(f"index buffer length ({self.indices.size}) is not a multiple of 3")
        if self.indices.size and int(self.indices.max()) >= self.vertex_count:
            raise ValueError(
                f"index {int(self.indices.max())} out of range for {self.vertex_count} vertices"
            )
        return self

"""Smooth per-vertex normals from face-normal accumulation.

Each triangle adds its unnormalised face normal ``(b - a) x (c - a)`` to its
three corners, so larger faces weigh more. Accumulators are normalised at the
end; a zero accumulator (isolated vertex, or contributions that cancel out)
is left as the zero vector instead of becoming NaN.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numba import njit

__all__ = [
    "accumulate_face_normals_jit",
    "compute_vertex_normals",
]


@njit(cache=True)
def _accumulate_face_normals_kernel(verts: np.ndarray, faces: np.ndarray) -> np.ndarray:
    n_verts = verts.shape[0]
    out = np.zeros((n_verts, 3), dtype=np.float64)

    for fi in range(faces.shape[0]):
        a = faces[fi, 0]
        b = faces[fi, 1]
        c = faces[fi, 2]

        e1x = verts[b, 0] - verts[a, 0]
        e1y = verts[b, 1] - verts[a, 1]
        e1z = verts[b, 2] - verts[a, 2]

        e2x = verts[c, 0] - verts[a, 0]
        e2y = verts[c, 1] - verts[a, 1]
        e2z = verts[c, 2] - verts[a, 2]

        n0 = e1y * e2z - e1z * e2y
        n1 = e1z * e2x - e1x * e2z
        n2 = e1x * e2y - e1y * e2x

        out[a, 0] += n0
        out[a, 1] += n1
        out[a, 2] += n2
        out[b, 0] += n0
        out[b, 1] += n1
        out[b, 2] += n2
        out[c, 0] += n0
        out[c, 1] += n1
        out[c, 2] += n2

    return out


def accumulate_face_normals_jit(verts: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Sum unnormalised face normals onto their corner vertices.

    Parameters
    ----------
    verts : np.ndarray
        Vertex positions shaped ``(V, 3)``.
    faces : np.ndarray
        Triangle corner indices shaped ``(F, 3)``.

    Returns
    -------
    np.ndarray
        ``(V, 3)`` float64 accumulators.
    """
    verts_arr = np.ascontiguousarray(verts, dtype=np.float64).reshape(-1, 3)
    faces_arr = np.ascontiguousarray(faces, dtype=np.int64).reshape(-1, 3)
    return _accumulate_face_normals_kernel(verts_arr, faces_arr)


def compute_vertex_normals(
    vertices: Sequence[float] | np.ndarray,
    indices: Sequence[int] | np.ndarray,
) -> np.ndarray:
    """Return one unit normal per vertex as a flat ``float32`` buffer.

    Parameters
    ----------
    vertices : Sequence[float] | np.ndarray
        Flat ``[x0, y0, z0, ...]`` positions (or an equivalent ``(V, 3)``
        array).
    indices : Sequence[int] | np.ndarray
        Flat triangle corner indices, three per triangle.

    Returns
    -------
    np.ndarray
        Flat ``float32`` buffer of the same length as ``vertices``. Vertices
        whose accumulated normal has zero length keep the zero vector.
    """
    verts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    faces = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    if verts.shape[0] == 0:
        return np.zeros(0, dtype=np.float32)

    accum = accumulate_face_normals_jit(verts, faces)
    lengths = np.linalg.norm(accum, axis=1)
    # Non-finite lengths come from placeholder/NaN geometry; treat like zero.
    valid = np.isfinite(lengths) & (lengths > 0.0)
    normals = np.zeros_like(accum)
    normals[valid] = accum[valid] / lengths[valid, None]
    return normals.astype(np.float32).reshape(-1)

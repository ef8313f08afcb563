"""
Tests for surfacing.normals and surfacing.surface_data
======================================================

Run: python -m pytest tests/test_normals_and_surface_data.py -v
"""

import numpy as np
import pytest

from surfacing.normals import accumulate_face_normals_jit, compute_vertex_normals
from surfacing.surface_data import SurfaceData


# =============================================================================
# Vertex normals
# =============================================================================

def test_single_triangle_normal_follows_winding():
    """Counter-clockwise triangle in the xy plane points along +z."""
    verts = [0, 0, 0, 1, 0, 0, 0, 1, 0]
    normals = compute_vertex_normals(verts, [0, 1, 2]).reshape(-1, 3)
    assert normals.dtype == np.float32
    assert np.allclose(normals, [[0, 0, 1]] * 3)

    flipped = compute_vertex_normals(verts, [0, 2, 1]).reshape(-1, 3)
    assert np.allclose(flipped, [[0, 0, -1]] * 3)


def test_isolated_vertex_keeps_zero_normal():
    """A vertex referenced by no triangle gets the zero vector, not NaN."""
    verts = [0, 0, 0, 1, 0, 0, 0, 1, 0, 5, 5, 5]
    normals = compute_vertex_normals(verts, [0, 1, 2]).reshape(-1, 3)
    assert np.all(np.isfinite(normals))
    assert np.allclose(normals[3], 0.0)


def test_degenerate_triangle_gives_zero_normal():
    """Collinear corners contribute nothing."""
    verts = [0, 0, 0, 1, 0, 0, 2, 0, 0]
    normals = compute_vertex_normals(verts, [0, 1, 2]).reshape(-1, 3)
    assert np.allclose(normals, 0.0)


def test_area_weighted_accumulation():
    """Larger faces dominate a shared vertex's normal."""
    verts = np.array(
        [
            [0, 0, 0],
            [10, 0, 0],
            [0, 10, 0],
            [0, 0, 1],
            [0, 1, 0],
        ],
        dtype=float,
    )
    faces = np.array([[0, 1, 2], [0, 3, 4]])
    accum = accumulate_face_normals_jit(verts, faces)
    assert accum[0, 2] == pytest.approx(100.0)
    assert accum[0, 0] == pytest.approx(-1.0)


def test_unit_length_where_defined():
    """Every non-zero normal of a closed tetrahedron has unit length."""
    verts = [0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 0, 1]
    faces = [0, 2, 1, 0, 1, 3, 0, 3, 2, 1, 2, 3]
    normals = compute_vertex_normals(verts, faces).reshape(-1, 3)
    assert np.allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-6)


def test_empty_input():
    """No vertices yields an empty buffer."""
    assert compute_vertex_normals([], []).size == 0


# =============================================================================
# SurfaceData record
# =============================================================================

def test_from_buffers_casts_wire_dtypes():
    """Buffers are flattened float32 / uint32 arrays."""
    surface = SurfaceData.from_buffers([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [0] * 9, [[0, 1, 2]], [0.5] * 9)
    assert surface.vertices.dtype == np.float32
    assert surface.indices.dtype == np.uint32
    assert surface.colors.dtype == np.float32
    assert surface.vertex_count == 3
    assert surface.triangle_count == 1
    assert surface.positions().shape == (3, 3)
    assert surface.faces().tolist() == [[0, 1, 2]]


def test_empty_record_is_valid():
    """The empty record is a legal surface."""
    surface = SurfaceData.empty().validate()
    assert surface.is_empty
    assert surface.vertex_count == 0
    assert surface.colors is None


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(vertices=[0, 0], normals=[0, 0], indices=[]),
        dict(vertices=[0, 0, 0], normals=[0, 0, 0, 0, 0, 0], indices=[]),
        dict(vertices=[0, 0, 0], normals=[0, 0, 0], indices=[0, 0]),
        dict(vertices=[0, 0, 0], normals=[0, 0, 0], indices=[0, 0, 1]),
        dict(vertices=[0, 0, 0], normals=[0, 0, 0], indices=[], colors=[1, 1]),
    ],
)
def test_validate_rejects_broken_buffers(kwargs):
    """Each buffer invariant violation raises ValueError."""
    with pytest.raises(ValueError):
        SurfaceData.from_buffers(**kwargs).validate()

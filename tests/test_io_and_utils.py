"""
Tests for exporters, loaders, utilities.surface_utils and viz.surface_viz
=========================================================================

Run: python -m pytest tests/test_io_and_utils.py -v
"""

import json

import numpy as np
import plotly.graph_objs as go
import pytest

from exporters import export_surface_mesh, export_surface_to_json, surface_to_payload, surface_to_trimesh
from loaders.surface_loader import load_surface
from surfacing.fields import get_field
from surfacing.heightfield import HeightFieldEvaluator
from surfacing.marching_cubes import ImplicitSurfaceExtractor
from surfacing.sampler import ScalarFieldSampler
from surfacing.surface_data import SurfaceData
from utilities.surface_utils import (
    connected_components,
    count_coincident_vertices,
    median_edge_length,
    summarise_surface,
)
from viz.surface_viz import visualize_surface


@pytest.fixture
def colored_grid():
    sampler = ScalarFieldSampler(get_field("paraboloid").function)
    return HeightFieldEvaluator(sampler).evaluate(3, bounds={"x": (-1.0, 1.0), "y": (-1.0, 1.0)})


@pytest.fixture
def small_sphere():
    extractor = ImplicitSurfaceExtractor(ScalarFieldSampler(get_field("sphere").function))
    return extractor.extract({"x": (-1.5, 1.5), "y": (-1.5, 1.5), "z": (-1.5, 1.5)}, 6)


def _two_triangles():
    verts = [0, 0, 0, 1, 0, 0, 0, 1, 0, 5, 0, 0, 6, 0, 0, 5, 1, 0]
    return SurfaceData.from_buffers(verts, [0, 0, 1] * 6, [0, 1, 2, 3, 4, 5])


# =============================================================================
# Diagnostics
# =============================================================================

def test_median_edge_length_of_unit_grid():
    """A unit right triangle has edges 1, 1 and √2; the median is 1."""
    assert median_edge_length(_two_triangles()) == pytest.approx(1.0)
    assert median_edge_length(SurfaceData.empty()) == 0.0


def test_coincident_vertices_detected():
    """Duplicated positions are counted as coincident pairs."""
    verts = [0, 0, 0, 1, 0, 0, 0, 1, 0, 1, 0, 0]
    surface = SurfaceData.from_buffers(verts, [0] * 12, [0, 1, 2, 3, 0, 2])
    assert count_coincident_vertices(surface) == 1
    assert count_coincident_vertices(_two_triangles()) == 0


def test_connected_components():
    """Disjoint triangles form separate components."""
    components = connected_components(_two_triangles())
    assert sorted(map(sorted, components)) == [[0, 1, 2], [3, 4, 5]]


def test_summarise_surface(colored_grid):
    """The summary reports counts, colors and bounds."""
    summary = summarise_surface(colored_grid)
    assert summary["vertex_count"] == 16
    assert summary["triangle_count"] == 18
    assert summary["has_colors"] is True
    assert summary["components"] == 1
    assert summary["bounds_min"][:2] == pytest.approx([-1.0, -1.0])
    empty = summarise_surface(SurfaceData.empty())
    assert empty["components"] == 0
    assert empty["bounds_min"] is None


# =============================================================================
# JSON export and load
# =============================================================================

def test_json_payload_layout(colored_grid):
    """Vertices, normals, colors and faces are nested triples."""
    payload = surface_to_payload(colored_grid, metadata={"field": "paraboloid"})
    assert len(payload["vertices"]) == 16
    assert len(payload["normals"]) == 16
    assert len(payload["colors"]) == 16
    assert len(payload["faces"]) == 18
    assert payload["meta"]["field"] == "paraboloid"
    assert payload["meta"]["vertex_count"] == 16


def test_json_round_trip(tmp_path, colored_grid):
    """A JSON export loads back into identical buffers."""
    path = export_surface_to_json(colored_grid, tmp_path / "out", filename="grid.json")
    assert path.is_file()
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["meta"]["face_count"] == 18

    loaded = load_surface(path)
    assert np.allclose(loaded.vertices, colored_grid.vertices)
    assert np.allclose(loaded.normals, colored_grid.normals)
    assert np.array_equal(loaded.indices, colored_grid.indices)
    assert np.allclose(loaded.colors, colored_grid.colors)


def test_json_export_of_empty_surface(tmp_path):
    """An empty surface exports with empty arrays and no colors key."""
    path = export_surface_to_json(SurfaceData.empty(), tmp_path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["vertices"] == [] and data["faces"] == []
    assert "colors" not in data
    assert load_surface(path).is_empty


# =============================================================================
# Mesh export and load
# =============================================================================

def test_surface_to_trimesh_keeps_order(small_sphere):
    """The trimesh wrapper keeps vertex and face order unchanged."""
    mesh = surface_to_trimesh(small_sphere)
    assert np.allclose(mesh.vertices, small_sphere.positions())
    assert np.array_equal(mesh.faces, small_sphere.faces().astype(np.int64))
    assert mesh.visual.vertex_colors.shape == (small_sphere.vertex_count, 4)


def test_ply_round_trip(tmp_path, small_sphere):
    """A PLY export reloads with the same vertex and face counts."""
    path = export_surface_mesh(small_sphere, tmp_path, filename="sphere", file_format="ply")
    assert path.suffix == ".ply"
    loaded = load_surface(path)
    assert loaded.vertex_count == small_sphere.vertex_count
    assert loaded.triangle_count == small_sphere.triangle_count
    assert loaded.colors is not None


def test_mesh_export_rejects_bad_input(tmp_path, small_sphere):
    """Unknown formats and empty surfaces raise ValueError."""
    with pytest.raises(ValueError):
        export_surface_mesh(small_sphere, tmp_path, file_format="fbx")
    with pytest.raises(ValueError):
        export_surface_mesh(SurfaceData.empty(), tmp_path)


# =============================================================================
# Visualisation
# =============================================================================

def test_visualize_surface_with_colors(colored_grid):
    """Colored surfaces render with per-vertex colors."""
    fig = visualize_surface(colored_grid, save_html=False, auto_open=False)
    assert isinstance(fig, go.Figure)
    trace = fig.data[0]
    assert isinstance(trace, go.Mesh3d)
    assert len(trace.vertexcolor) == 16


def test_visualize_surface_with_normals(small_sphere):
    """Uncolored surfaces use the height colorscale; normals add a line trace."""
    fig = visualize_surface(small_sphere, show_normals=True, save_html=False, auto_open=False)
    assert fig.data[0].intensity is not None
    assert len(fig.data) == 2
    assert fig.data[1].mode == "lines"


def test_visualize_surface_writes_html(tmp_path, small_sphere):
    """save_html writes a standalone HTML file."""
    target = tmp_path / "sphere.html"
    visualize_surface(small_sphere, save_html=True, auto_open=False, filepath=str(target))
    assert target.is_file()

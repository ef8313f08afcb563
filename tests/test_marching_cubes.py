"""
Tests for surfacing.marching_cubes and surfacing.tables
=======================================================

Lookup-table consistency, crossing interpolation, vertex sharing through the
edge cache, orientation and handling of undefined corners.

Run: python -m pytest tests/test_marching_cubes.py -v
"""

import math

import numpy as np
import pytest

from surfacing.fields import get_field
from surfacing.marching_cubes import (
    ImplicitSurfaceExtractor,
    cube_configuration,
    interpolate_crossing,
)
from surfacing.sampler import ScalarFieldSampler
from surfacing.tables import CORNER_OFFSETS, EDGE_CORNERS, EDGE_LATTICE, EDGE_TABLE, TRI_TABLE
from utilities.surface_utils import connected_components, count_coincident_vertices

BOUNDS = {"x": (-1.5, 1.5), "y": (-1.5, 1.5), "z": (-1.5, 1.5)}
RESOLUTION = 16
STEP = 3.0 / RESOLUTION


def _extractor(field, **kwargs):
    return ImplicitSurfaceExtractor(ScalarFieldSampler(field), **kwargs)


@pytest.fixture(scope="module")
def sphere_run():
    extractor = _extractor(get_field("sphere").function)
    surface = extractor.extract(BOUNDS, RESOLUTION)
    return surface, dict(extractor.last_stats)


# =============================================================================
# Lookup tables
# =============================================================================

def test_table_shapes():
    """256 edge masks and 256 rows of 16 triangle entries."""
    assert EDGE_TABLE.shape == (256,)
    assert TRI_TABLE.shape == (256, 16)
    assert EDGE_TABLE[0] == 0 and EDGE_TABLE[255] == 0


def test_edge_mask_matches_corner_signs():
    """Edge e is crossed exactly when its two corners differ in inside/outside."""
    for config in range(256):
        expected = 0
        for edge, (a, b) in enumerate(EDGE_CORNERS):
            if bool(config & (1 << int(a))) != bool(config & (1 << int(b))):
                expected |= 1 << edge
        assert int(EDGE_TABLE[config]) == expected, f"config {config}"


def test_triangle_edges_are_in_edge_mask():
    """Every edge referenced by a triangle is flagged in the edge mask."""
    for config in range(256):
        row = [int(e) for e in TRI_TABLE[config] if e != -1]
        assert len(row) % 3 == 0
        for edge in row:
            assert int(EDGE_TABLE[config]) & (1 << edge), f"config {config} edge {edge}"


def test_lattice_edge_keys():
    """Shared edges of neighbouring cubes resolve to the same lattice key."""
    # Edge 1 of cube (0,0,0) runs from corner 1 to 2; it is edge 3 of cube (1,0,0).
    dx1, dy1, dz1, axis1 = EDGE_LATTICE[1]
    dx3, dy3, dz3, axis3 = EDGE_LATTICE[3]
    assert (0 + dx1, dy1, dz1, axis1) == (1 + dx3, dy3, dz3, axis3)
    for (a, b), (dx, dy, dz, axis) in zip(EDGE_CORNERS, EDGE_LATTICE):
        lower = np.minimum(CORNER_OFFSETS[a], CORNER_OFFSETS[b])
        assert lower.tolist() == [dx, dy, dz]
        assert CORNER_OFFSETS[a][axis] != CORNER_OFFSETS[b][axis]


# =============================================================================
# Cube classification and interpolation
# =============================================================================

def test_cube_configuration_bits():
    """Bit c is set for corners strictly below the isovalue."""
    values = [-1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0]
    assert cube_configuration(values, 0.0) == 1
    assert cube_configuration([-1.0] * 8, 0.0) == 255
    assert cube_configuration([0.0] * 8, 0.0) == 0


def test_cube_configuration_nonfinite_policies():
    """Undefined corners make a cube indeterminate, or count as outside."""
    values = [-1.0, math.nan, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0]
    assert cube_configuration(values, 0.0, "indeterminate") is None
    values[0] = -1.0
    values[2] = -1.0
    assert cube_configuration(values, 0.0, "outside") == 0b101


def test_interpolate_crossing():
    """Linear crossing parameter with midpoint fallbacks."""
    assert interpolate_crossing(-1.0, 1.0, 0.0) == pytest.approx(0.5)
    assert interpolate_crossing(-1.0, 3.0, 0.0) == pytest.approx(0.25)
    assert interpolate_crossing(2.0, 4.0, 3.5) == pytest.approx(0.75)
    assert interpolate_crossing(1.0, 1.0 + 1e-9, 0.0) == 0.5
    assert interpolate_crossing(math.nan, 1.0, 0.0) == 0.5
    assert interpolate_crossing(-1.0, math.inf, 0.0) == 0.5


def test_custom_edge_epsilon():
    """A larger epsilon snaps wider endpoint differences to the midpoint."""
    assert interpolate_crossing(-0.01, 0.03, 0.0, eps=0.1) == 0.5
    assert interpolate_crossing(-0.01, 0.03, 0.0, eps=1e-6) == pytest.approx(0.25)


# =============================================================================
# Extraction
# =============================================================================

def test_constant_field_gives_empty_surface():
    """A field that never crosses the isovalue yields an empty record."""
    extractor = _extractor(lambda b: 1.0)
    surface = extractor.extract(BOUNDS, 4)
    assert surface.is_empty
    assert surface.vertex_count == 0
    assert extractor.last_stats["active_cubes"] == 0


def test_sample_lattice_shape():
    """The lattice holds (R+1)³ samples with NaN for undefined points."""
    extractor = _extractor(lambda b: 1.0 / b["x"])
    values = extractor.sample_lattice({"x": (-1.0, 1.0), "y": (0.0, 1.0), "z": (0.0, 1.0)}, 2)
    assert values.shape == (3, 3, 3)
    assert np.all(np.isnan(values[1]))
    assert values[2, 0, 0] == 1.0


def test_sphere_vertices_lie_near_unit_radius(sphere_run):
    """Interpolated vertices sit within one lattice step of r = 1."""
    surface, _ = sphere_run
    assert not surface.is_empty
    radii = np.linalg.norm(surface.positions(), axis=1)
    assert np.all(np.abs(radii - 1.0) < STEP)
    assert surface.colors is None
    surface.validate()


def test_sphere_vertices_are_shared(sphere_run):
    """The edge cache leaves no coincident vertices and one vertex per crossed edge."""
    surface, stats = sphere_run
    assert count_coincident_vertices(surface) == 0
    assert stats["interpolated_edges"] == surface.vertex_count
    assert surface.vertex_count < 12 * stats["active_cubes"]
    assert stats["triangle_count"] == surface.triangle_count


def test_sphere_is_one_closed_component(sphere_run):
    """Shared vertices stitch the sphere into a single closed component."""
    surface, _ = sphere_run
    assert len(connected_components(surface)) == 1
    faces = np.sort(surface.faces().astype(np.int64), axis=1)
    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [0, 2]]])
    _, counts = np.unique(edges, axis=0, return_counts=True)
    assert np.all(counts == 2)


def test_sphere_normals_point_outward(sphere_run):
    """Normals point towards increasing field values, i.e. away from the centre."""
    surface, _ = sphere_run
    positions = surface.positions()
    normals = surface.normals.reshape(-1, 3)
    dots = np.einsum("ij,ij->i", positions, normals)
    assert np.all(dots > 0.0)
    assert np.allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-5)


def test_iso_value_shifts_level_set():
    """Extracting r² - 1 = 0.44 yields a sphere of radius 1.2."""
    extractor = _extractor(get_field("sphere").function)
    surface = extractor.extract(BOUNDS, RESOLUTION, iso_value=0.44)
    radii = np.linalg.norm(surface.positions(), axis=1)
    assert np.all(np.abs(radii - 1.2) < STEP)


def test_complex_field_counts_as_undefined():
    """Complex results are not real numbers, so every cube is skipped."""
    extractor = _extractor(lambda b: complex(b["x"], 1.0))
    assert extractor.extract(BOUNDS, 4).is_empty


def test_invalid_policy_rejected():
    """Unknown non-finite corner policies raise ValueError."""
    with pytest.raises(ValueError):
        _extractor(lambda b: 0.0, nonfinite_corners="ignore")


# =============================================================================
# Undefined corners
# =============================================================================

def _split_sphere(b):
    # Raises on the x = 0 lattice plane.
    return b["x"] ** 2 + b["y"] ** 2 + b["z"] ** 2 - 1.0 + 0.0 * (1.0 / b["x"])


def test_indeterminate_policy_skips_cubes_touching_singularity():
    """Cubes with an undefined corner emit nothing; the sphere splits in two."""
    extractor = _extractor(_split_sphere, nonfinite_corners="indeterminate")
    surface = extractor.extract(BOUNDS, RESOLUTION)
    xs = surface.positions()[:, 0]
    assert np.all(np.abs(xs) >= STEP - 1e-6)
    assert len(connected_components(surface)) == 2
    assert count_coincident_vertices(surface) == 0


def test_outside_policy_places_midpoint_crossings():
    """Undefined corners count as outside and produce extra, finite geometry."""
    strict = _extractor(_split_sphere, nonfinite_corners="indeterminate")
    strict_surface = strict.extract(BOUNDS, RESOLUTION)
    legacy = _extractor(_split_sphere, nonfinite_corners="outside")
    legacy_surface = legacy.extract(BOUNDS, RESOLUTION)

    assert legacy_surface.triangle_count > strict_surface.triangle_count
    assert np.all(np.isfinite(legacy_surface.vertices))
    xs = legacy_surface.positions()[:, 0]
    # Edges from an undefined corner cross at their midpoint.
    assert np.any(np.isclose(np.abs(xs), STEP / 2.0, atol=1e-6))


def test_sphere_over_default_domain():
    """x²+y²+z²-1 over [-2, 2]³ at R=20 gives a unit sphere with outward normals."""
    extractor = _extractor(get_field("sphere").function)
    surface = extractor.extract({"x": (-2.0, 2.0), "y": (-2.0, 2.0), "z": (-2.0, 2.0)}, 20)
    assert not surface.is_empty
    surface.validate()
    positions = surface.positions()
    radii = np.linalg.norm(positions, axis=1)
    assert np.all(np.abs(radii - 1.0) < 4.0 / 20)
    dots = np.einsum("ij,ij->i", positions, surface.normals.reshape(-1, 3))
    assert np.all(dots > 0.0)


def test_nearly_equal_endpoints_emit_edge_midpoint():
    """Endpoint values closer than the epsilon place the vertex at the world-space edge midpoint."""
    # Linear interpolation would cross at x = -0.5; both ends differ by 2e-8.
    def field(b):
        return (b["x"] + 0.5) * 1e-8

    bounds = {"x": (-1.0, 1.0), "y": (0.0, 2.0), "z": (3.0, 5.0)}
    surface = _extractor(field).extract(bounds, 1)
    positions = surface.positions()
    assert surface.vertex_count == 4
    assert np.allclose(positions[:, 0], 0.0)
    assert sorted(map(tuple, positions[:, 1:].tolist())) == [(0.0, 3.0), (0.0, 5.0), (2.0, 3.0), (2.0, 5.0)]

    interpolated = _extractor(field, edge_eps=0.0).extract(bounds, 1)
    assert np.allclose(interpolated.positions()[:, 0], -0.5)

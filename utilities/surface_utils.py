"""Geometric and topological diagnostics for generated surfaces."""

from __future__ import annotations

from typing import Any, Dict, List

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from surfacing.surface_data import SurfaceData


def _unique_edges(faces: np.ndarray) -> np.ndarray:
    if faces.size == 0:
        return np.empty((0, 2), dtype=np.int64)
    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]], axis=0)
    edges = np.sort(edges.astype(np.int64), axis=1)
    return np.unique(edges, axis=0)


def median_edge_length(surface: SurfaceData) -> float:
    """Median length of the unique triangle edges.

    Edges touching non-finite positions are ignored. Returns 0.0 for a
    surface without usable edges.
    """
    edges = _unique_edges(surface.faces())
    if edges.size == 0:
        return 0.0
    verts = surface.positions().astype(np.float64)
    lengths = np.linalg.norm(verts[edges[:, 1]] - verts[edges[:, 0]], axis=1)
    lengths = lengths[np.isfinite(lengths)]
    return float(np.median(lengths)) if lengths.size else 0.0


def count_coincident_vertices(surface: SurfaceData, tolerance: float = 1e-7) -> int:
    """Count vertex pairs closer than ``tolerance``.

    A Marching Cubes mesh with a working edge cache has none.
    """
    verts = surface.positions().astype(np.float64)
    if verts.shape[0] < 2:
        return 0
    tree = cKDTree(verts)
    return len(tree.query_pairs(r=float(tolerance)))


def connected_components(surface: SurfaceData) -> List[List[int]]:
    """Group referenced vertices into edge-connected components.

    Returns
    -------
    List[List[int]]
        Sorted vertex indices per component, largest component first.
    """
    graph = nx.Graph()
    graph.add_nodes_from(np.unique(surface.indices).tolist())
    graph.add_edges_from(_unique_edges(surface.faces()).tolist())
    components = [sorted(int(v) for v in comp) for comp in nx.connected_components(graph)]
    components.sort(key=len, reverse=True)
    return components


def summarise_surface(surface: SurfaceData) -> Dict[str, Any]:
    """Return a dict of counts and scales suitable for logging or JSON metadata."""
    verts = surface.positions()
    finite = np.isfinite(verts).all(axis=1) if verts.size else np.zeros(0, dtype=bool)
    finite_ratio = float(finite.mean()) if finite.size else 1.0
    if finite.any():
        lo = verts[finite].min(axis=0).astype(float).tolist()
        hi = verts[finite].max(axis=0).astype(float).tolist()
    else:
        lo = hi = None
    return {
        "vertex_count": surface.vertex_count,
        "triangle_count": surface.triangle_count,
        "has_colors": surface.colors is not None,
        "components": len(connected_components(surface)) if surface.triangle_count else 0,
        "median_edge_length": median_edge_length(surface),
        "bounds_min": lo,
        "bounds_max": hi,
        "finite_ratio": finite_ratio,
    }


__all__ = [
    "median_edge_length",
    "count_coincident_vertices",
    "connected_components",
    "summarise_surface",
]

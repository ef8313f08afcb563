"""Load surfaces written by the exporters back into :class:`SurfaceData` records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import trimesh

from surfacing.normals import compute_vertex_normals
from surfacing.surface_data import SurfaceData


def surface_from_payload(payload: Mapping[str, Any]) -> SurfaceData:
    """Rebuild a surface from the dictionary written by :func:`exporters.export_surface_to_json`.

    Missing normals are recomputed from the triangles.
    """
    vertices = np.asarray(payload.get("vertices", []), dtype=np.float64).reshape(-1)
    faces = np.asarray(payload.get("faces", []), dtype=np.int64).reshape(-1)
    normals = payload.get("normals")
    if normals is None:
        normals = compute_vertex_normals(vertices, faces)
    colors = payload.get("colors")
    return SurfaceData.from_buffers(vertices, normals, faces, colors).validate()


def load_surface(file_path: str | Path, **kwargs) -> SurfaceData:
    """Load a surface from a JSON export or any mesh format trimesh understands.

    Parameters
    ----------
    file_path : str or Path
        ``.json`` files are parsed as surface exports; everything else goes
        through :func:`trimesh.load_mesh` with ``process=False`` so vertex
        order is preserved.
    **kwargs : dict, optional
        Forwarded to :func:`trimesh.load_mesh`.

    Returns
    -------
    SurfaceData
        Surface with normals and, when the file carries vertex colors, an
        RGB color buffer in ``[0, 1]``.

    Raises
    ------
    TypeError
        If the mesh file does not hold a single :class:`trimesh.Trimesh`.
    """
    path = Path(file_path)
    if path.suffix.lower() == ".json":
        return surface_from_payload(json.loads(path.read_text(encoding="utf-8")))

    kwargs.setdefault("process", False)
    mesh = trimesh.load_mesh(str(path), **kwargs)
    if not isinstance(mesh, trimesh.Trimesh):
        raise TypeError("Loaded geometry is not a single trimesh.Trimesh")

    colors = None
    if mesh.visual.kind == "vertex":
        rgba = np.asarray(mesh.visual.vertex_colors, dtype=np.float64)
        colors = rgba[:, :3] / 255.0

    return SurfaceData.from_buffers(
        mesh.vertices,
        mesh.vertex_normals,
        mesh.faces,
        colors,
    ).validate()


__all__ = ["surface_from_payload", "load_surface"]

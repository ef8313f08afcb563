"""Mesh-file export of generated surfaces through trimesh."""

from __future__ import annotations

from pathlib import Path

import matplotlib
import numpy as np
import trimesh

from surfacing.colors import height_ratios
from surfacing.surface_data import SurfaceData

MESH_FORMATS = ("obj", "ply", "stl", "glb", "off")


def _colormap_rgba(values: np.ndarray, colormap: str) -> np.ndarray:
    finite = values[np.isfinite(values)]
    if finite.size:
        ratios = height_ratios(values, float(finite.min()), float(finite.max()))
    else:
        ratios = np.full(values.shape, 0.5)
    ratios = np.nan_to_num(ratios, nan=0.0)
    rgba = matplotlib.colormaps[colormap](np.clip(ratios, 0.0, 1.0))
    return (rgba * 255).astype(np.uint8)


def surface_to_trimesh(surface: SurfaceData, *, colormap: str | None = "turbo") -> trimesh.Trimesh:
    """Wrap a surface record in a :class:`trimesh.Trimesh` without reprocessing.

    Vertex order, triangle order and normals are kept as generated. When the
    surface carries colors they become RGBA ``uint8`` vertex colors; otherwise
    ``colormap`` (a Matplotlib colormap name) is applied to the vertex
    heights. Pass ``colormap=None`` to export geometry only.
    """
    surface.validate()
    verts = surface.positions().astype(np.float64)
    mesh = trimesh.Trimesh(
        vertices=verts,
        faces=surface.faces().astype(np.int64),
        vertex_normals=surface.normals.reshape(-1, 3).astype(np.float64),
        process=False,
    )

    if surface.colors is not None:
        rgb = np.clip(surface.colors.reshape(-1, 3), 0.0, 1.0)
        alpha = np.ones((rgb.shape[0], 1), dtype=np.float32)
        mesh.visual.vertex_colors = (np.hstack([rgb, alpha]) * 255).astype(np.uint8)
    elif colormap is not None and verts.shape[0]:
        mesh.visual.vertex_colors = _colormap_rgba(verts[:, 2], colormap)
    return mesh


def export_surface_mesh(
    surface: SurfaceData,
    output_dir: str | Path,
    *,
    filename: str = "surface",
    file_format: str = "obj",
    colormap: str | None = "turbo",
) -> Path:
    """Write ``surface`` as a mesh file.

    Parameters
    ----------
    surface
        Surface to export. Empty surfaces are rejected.
    output_dir
        Destination directory; created when missing.
    filename
        File stem; the extension is taken from ``file_format``.
    file_format
        One of ``obj``, ``ply``, ``stl``, ``glb`` or ``off``.
    colormap
        Matplotlib colormap used when the surface has no color buffer.

    Returns
    -------
    Path
        Absolute path to the written file.

    Raises
    ------
    ValueError
        If the format is unsupported or the surface has no triangles.
    """
    fmt = str(file_format).lower().lstrip(".")
    if fmt not in MESH_FORMATS:
        raise ValueError(f"Unsupported mesh format '{file_format}'. Available formats: {', '.join(MESH_FORMATS)}")
    if surface.is_empty:
        raise ValueError("Cannot export an empty surface as a mesh file")

    mesh = surface_to_trimesh(surface, colormap=colormap)
    dest_dir = Path(output_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / f"{filename}.{fmt}"
    mesh.export(str(target), file_type=fmt)
    return target.resolve()


__all__ = ["MESH_FORMATS", "surface_to_trimesh", "export_surface_mesh"]

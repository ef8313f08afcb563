"""JSON export for generated surfaces."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np

from surfacing.surface_data import SurfaceData
from utilities.surface_utils import median_edge_length

SCHEMA_VERSION = 1


def surface_to_payload(
    surface: SurfaceData,
    *,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Convert a surface record into a JSON-ready dictionary.

    Vertices, normals and colors are written as ``[[x, y, z], ...]`` lists;
    triangles as ``[[a, b, c], ...]``. The ``colors`` key is omitted when the
    surface carries no color buffer.
    """
    surface.validate()
    verts = surface.positions().astype(float)
    finite = np.isfinite(verts).all(axis=1) if verts.size else np.zeros(0, dtype=bool)
    if finite.any():
        bounding_box = {
            "min": verts[finite].min(axis=0).tolist(),
            "max": verts[finite].max(axis=0).tolist(),
        }
    else:
        bounding_box = None

    meta: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "vertex_count": surface.vertex_count,
        "face_count": surface.triangle_count,
        "median_edge_length": median_edge_length(surface),
        "bounding_box": bounding_box,
    }
    if metadata:
        meta.update(dict(metadata))

    payload: Dict[str, Any] = {
        "meta": meta,
        "vertices": verts.tolist(),
        "normals": surface.normals.reshape(-1, 3).astype(float).tolist(),
        "faces": surface.faces().astype(int).tolist(),
    }
    if surface.colors is not None:
        payload["colors"] = surface.colors.reshape(-1, 3).astype(float).tolist()
    return payload


def export_surface_to_json(
    surface: SurfaceData,
    output_dir: str | Path,
    *,
    filename: str = "surface.json",
    indent: int | None = 2,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Path:
    """Serialise a :class:`~surfacing.surface_data.SurfaceData` to JSON.

    Parameters
    ----------
    surface
        Surface produced by the height-field or implicit path.
    output_dir
        Destination directory for the JSON export; created when missing.
    filename
        Name of the JSON file to create inside ``output_dir``.
    indent
        Indentation passed through to :func:`json.dumps`. Set to ``None`` for a compact export.
    metadata
        Extra entries merged into the ``meta`` block (method name, field key, stats).

    Returns
    -------
    Path
        Absolute path to the written JSON file.

    Raises
    ------
    ValueError
        If the surface buffers are inconsistent.
    """
    payload = surface_to_payload(surface, metadata=metadata)

    dest_dir = Path(output_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / filename
    target.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
    return target.resolve()


__all__ = ["SCHEMA_VERSION", "surface_to_payload", "export_surface_to_json"]

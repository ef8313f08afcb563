"""Export helpers for generated surfaces."""

from .json_exporter import export_surface_to_json, surface_to_payload
from .mesh_exporter import export_surface_mesh, surface_to_trimesh

__all__ = [
    "export_surface_to_json",
    "surface_to_payload",
    "export_surface_mesh",
    "surface_to_trimesh",
]

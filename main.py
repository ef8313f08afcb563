"""
Demonstration entry point for the surfacing pipeline.

The script reads the configured surface method and field, generates the
triangle mesh, prints a short summary and optionally writes JSON / mesh
exports and an interactive Plotly view. Settings come from
``surfacer_defaults.yaml`` (see :mod:`surfacing.config`); the field can be
overridden with the first command line argument.
"""

from __future__ import annotations

import sys
from pathlib import Path

from exporters import export_surface_mesh, export_surface_to_json
from exporters.mesh_exporter import MESH_FORMATS
from surfacing.config import get_surfacer_defaults
from surfacing.methods import run_method_from_config
from utilities.config_utils import coerce_bool, coerce_choice
from utilities.surface_utils import summarise_surface
from viz.surface_viz import visualize_surface


def main() -> None:
    """Generate the configured surface and emit exports and reports."""
    settings = get_surfacer_defaults()
    general_cfg = settings.get("general", {})
    exports_cfg = settings.get("exports", {})

    field_key = sys.argv[1] if len(sys.argv) > 1 else None
    show_progress = coerce_bool(general_cfg.get("show_progress"), True)

    method_key = str(general_cfg.get("surface_method", "implicit")).lower()
    print(f"Selected surface method from config: '{method_key}'")

    result = run_method_from_config(field_key, show_progress=show_progress)
    surface = result.surface
    print(f"Resolved surface method: {result.display_name} (key '{result.name}') on field '{result.field_key}'")

    stats = summarise_surface(surface)
    print(
        "Surface summary: "
        f"{stats['vertex_count']} vertices, "
        f"{stats['triangle_count']} triangles, "
        f"{stats['components']} components"
    )
    if surface.is_empty:
        print("The field never crosses the requested level; nothing to export.")
        return

    file_stem = f"{result.field_key}_{result.name}_r{result.metadata.get('resolution', 0)}"
    export_dir = Path(exports_cfg.get("export_directory") or "export_output/surfaces")

    if coerce_bool(exports_cfg.get("surface_export"), False):
        try:
            output_file = export_surface_to_json(
                surface,
                export_dir,
                filename=f"{file_stem}.json",
                metadata={"method": result.name, "field": result.field_key, **result.metadata},
            )
            print(f"Surface export written -> {output_file}")
        except (OSError, ValueError) as err:
            print(f"[export] Failed to write surface JSON: {err}")

    if coerce_bool(exports_cfg.get("mesh_export"), False):
        mesh_format = coerce_choice(exports_cfg.get("mesh_format"), MESH_FORMATS, "obj")
        try:
            output_file = export_surface_mesh(surface, export_dir, filename=file_stem, file_format=mesh_format)
            print(f"Mesh export written -> {output_file}")
        except (OSError, ValueError) as err:
            print(f"[export] Failed to write {mesh_format} mesh: {err}")

    if coerce_bool(exports_cfg.get("render"), False):
        visualize_surface(surface, title=f"{result.display_name}: {result.field_key}")
    else:
        print("[viz] Rendering disabled (exports.render is false).")


if __name__ == "__main__":
    main()

"""Interactive Plotly rendering of :class:`~surfacing.surface_data.SurfaceData` records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
import plotly.graph_objs as go

from surfacing.surface_data import SurfaceData
from viz.config import get_viz_section
from viz.plot_utils import save_or_show

_SECTION_NAME = "surface"


def _defaults() -> Dict[str, Any]:
    """Return the merged visual defaults for this module."""
    return get_viz_section(_SECTION_NAME)


def _rgb_strings(colors: np.ndarray) -> List[str]:
    rgb = np.clip(np.nan_to_num(colors.reshape(-1, 3), nan=0.0), 0.0, 1.0)
    rgb = np.rint(rgb * 255).astype(int)
    return [f"rgb({r},{g},{b})" for r, g, b in rgb]


def _normal_segments(verts: np.ndarray, normals: np.ndarray, scale: float) -> Dict[str, List[Optional[float]]]:
    """Build ``None``-separated line segments from each vertex along its normal."""
    tips = verts + normals * scale
    xs: List[Optional[float]] = []
    ys: List[Optional[float]] = []
    zs: List[Optional[float]] = []
    for start, end in zip(verts, tips):
        xs.extend((float(start[0]), float(end[0]), None))
        ys.extend((float(start[1]), float(end[1]), None))
        zs.extend((float(start[2]), float(end[2]), None))
    return {"x": xs, "y": ys, "z": zs}


def visualize_surface(
    surface: SurfaceData,
    *,
    title: Optional[str] = None,
    colorscale: Optional[str] = None,
    opacity: Optional[float] = None,
    flatshading: Optional[bool] = None,
    show_normals: Optional[bool] = None,
    normal_scale: Optional[float] = None,
    save_html: Optional[bool] = None,
    auto_open: Optional[bool] = None,
    filepath: Optional[str] = None,
) -> go.Figure:
    """Render a surface as a Plotly ``Mesh3d``.

    Per-vertex colors are used when the surface carries them; otherwise the
    mesh is shaded by vertex height through ``colorscale``.

    Parameters
    ----------
    surface : SurfaceData
        Surface to render.
    title, colorscale, opacity, flatshading, show_normals, normal_scale, save_html, auto_open, filepath : optional
        Visual configuration options overriding the defaults from :mod:`viz.config`.

    Returns
    -------
    go.Figure
        Plotly figure holding the mesh trace (and a normal-glyph trace when requested).
    """
    defaults = _defaults()
    filepaths = defaults.get("filepaths", {})

    title = defaults.get("title", "Surface") if title is None else title
    colorscale = defaults.get("colorscale", "Turbo") if colorscale is None else colorscale
    opacity = defaults.get("opacity", 1.0) if opacity is None else opacity
    flatshading = defaults.get("flatshading", False) if flatshading is None else flatshading
    show_normals = defaults.get("show_normals", False) if show_normals is None else show_normals
    normal_scale = defaults.get("normal_scale", 0.1) if normal_scale is None else normal_scale
    save_html = defaults.get("save_html", False) if save_html is None else save_html
    auto_open = defaults.get("auto_open", True) if auto_open is None else auto_open
    filepath = filepaths.get("surface", "surface.html") if filepath is None else filepath

    hide_axes = defaults.get("hide_axes", True)
    show_grid = bool(defaults.get("show_grid", False))
    aspectmode = defaults.get("aspectmode", "data")
    camera = defaults.get("camera")
    paper_bgcolor = defaults.get("paper_bgcolor", "white")
    plot_bgcolor = defaults.get("plot_bgcolor", "white")

    verts = surface.positions().astype(float)
    faces = surface.faces().astype(int)

    mesh_kwargs: Dict[str, Any] = dict(
        x=verts[:, 0],
        y=verts[:, 1],
        z=verts[:, 2],
        i=faces[:, 0],
        j=faces[:, 1],
        k=faces[:, 2],
        opacity=opacity,
        flatshading=bool(flatshading),
        name=title,
    )
    if surface.colors is not None:
        mesh_kwargs["vertexcolor"] = _rgb_strings(surface.colors)
    elif verts.shape[0]:
        mesh_kwargs.update(intensity=verts[:, 2], colorscale=colorscale, showscale=True)
    else:
        mesh_kwargs["color"] = defaults.get("flat_color", "lightgray")

    data: List[Any] = [go.Mesh3d(**mesh_kwargs)]

    if show_normals and verts.shape[0]:
        normals = surface.normals.reshape(-1, 3).astype(float)
        segments = _normal_segments(verts, normals, float(normal_scale))
        data.append(
            go.Scatter3d(
                **segments,
                mode="lines",
                line=dict(color=defaults.get("normal_color", "#303030"), width=2),
                name="normals",
                showlegend=False,
            )
        )

    fig = go.Figure(data=data)

    scene_config: Dict[str, Any] = dict(aspectmode=aspectmode)
    if camera is not None:
        scene_config["camera"] = camera

    axis_cfg = dict(
        showgrid=show_grid,
        showbackground=False,
        showline=False,
        showspikes=False,
    )
    if hide_axes:
        axis_cfg.update(visible=False, showticklabels=False)
    else:
        axis_cfg.setdefault("visible", True)
        axis_cfg.setdefault("showticklabels", True)

    scene_config["xaxis"] = axis_cfg.copy()
    scene_config["yaxis"] = axis_cfg.copy()
    scene_config["zaxis"] = axis_cfg.copy()

    fig.update_layout(
        title=dict(text=title, x=0.5, xanchor="center"),
        scene=scene_config,
        paper_bgcolor=paper_bgcolor,
        plot_bgcolor=plot_bgcolor,
        margin=dict(l=0, r=0, t=40, b=0),
    )

    save_or_show(fig, save_html=save_html, auto_open=auto_open, filepath=filepath)
    return fig


__all__ = ["visualize_surface"]

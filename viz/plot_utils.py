"""Shared Plotly I/O helpers resilient to transient browser disconnects."""

from __future__ import annotations

import errno
from typing import Callable

import plotly.graph_objs as go
from plotly.offline import plot


_ECONNRESET_CODES = {errno.ECONNRESET}
if hasattr(errno, "WSAECONNRESET"):
    _ECONNRESET_CODES.add(getattr(errno, "WSAECONNRESET"))


def _is_connection_reset(err: OSError) -> bool:
    if isinstance(err, ConnectionResetError):
        return True
    return getattr(err, "errno", None) in _ECONNRESET_CODES or getattr(err, "winerror", None) in _ECONNRESET_CODES


def guard_connection_reset(action: Callable[[], None], *, context: str) -> None:
    """Execute ``action``; a connection reset from Plotly's local server is reported and dropped."""
    try:
        action()
    except OSError as err:
        if _is_connection_reset(err):
            print(f"[viz] Ignore connection reset during {context}: {err}")
            return
        raise


def save_or_show(fig: go.Figure, *, save_html: bool, auto_open: bool, filepath: str) -> None:
    """Write ``fig`` to ``filepath`` when ``save_html`` is set, else open it when ``auto_open`` is set."""
    if save_html:
        guard_connection_reset(
            lambda: plot(fig, filename=filepath, auto_open=auto_open, include_plotlyjs=True),
            context=f"saving Plotly HTML to {filepath}",
        )
    elif auto_open:
        guard_connection_reset(fig.show, context="opening Plotly viewer")

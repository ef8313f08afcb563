"""Per-vertex color ramps for height-field surfaces."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

RGB = Tuple[float, float, float]

COLOR_MODES = ("height", "domain", "none")


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert an HSL triple with all components in ``[0, 1]`` to RGB.

    Hues outside ``[0, 1)`` are wrapped.
    """
    h = h % 1.0
    c = (1.0 - abs(2.0 * l - 1.0)) * s
    x = c * (1.0 - abs((h * 6.0) % 2.0 - 1.0))
    m = l - c / 2.0

    sector = int(h * 6.0)
    if sector == 0:
        r, g, b = c, x, 0.0
    elif sector == 1:
        r, g, b = x, c, 0.0
    elif sector == 2:
        r, g, b = 0.0, c, x
    elif sector == 3:
        r, g, b = 0.0, x, c
    elif sector == 4:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return r + m, g + m, b + m


def domain_color(real: float, imag: float) -> RGB:
    """Map the phase of ``real + i·imag`` to a fully saturated hue."""
    hue = (math.atan2(imag, real) + math.pi) / (2.0 * math.pi)
    return hsl_to_rgb(hue, 1.0, 0.5)


def height_ratios(values: np.ndarray, v_min: float, v_max: float) -> np.ndarray:
    """Linearly normalise ``values`` into ``[0, 1]`` via ``(v - min) / (max - min)``.

    Degenerate ranges (``max <= min``, including the case where no finite
    value was seen) collapse to 0.5.
    """
    values = np.asarray(values, dtype=float)
    if not (v_max > v_min):
        return np.full(values.shape, 0.5, dtype=float)
    return (values - v_min) / (v_max - v_min)


def height_ramp(ratios: np.ndarray) -> np.ndarray:
    """Blue-to-red ramp: ratio ``t`` maps to ``(t, 0.5, 1 - t)``."""
    ratios = np.asarray(ratios, dtype=float)
    rgb = np.empty(ratios.shape + (3,), dtype=float)
    rgb[..., 0] = ratios
    rgb[..., 1] = 0.5
    rgb[..., 2] = 1.0 - ratios
    return rgb

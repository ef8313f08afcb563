"""Utilities for loading layered YAML settings and coercing configuration values."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

import yaml


def deep_update(destination: Dict[str, Any], source: Mapping[str, Any]) -> None:
    """Recursively merge ``source`` into ``destination`` in-place."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(destination.get(key), dict):
            deep_update(destination[key], value)
        else:
            destination[key] = value


def yaml_candidates(
    filename: str,
    env_var: str,
    package_dir: Path,
    path: Optional[str] = None,
) -> Iterator[Path]:
    """Yield override locations in probing order.

    An explicit ``path`` is the only candidate when given. Otherwise the file
    named by ``env_var`` comes first, followed by ``filename`` in the project
    root (parent of ``package_dir``), the working directory and ``package_dir``.
    """
    if path:
        yield Path(path)
        return

    env_override = os.environ.get(env_var)
    if env_override:
        yield Path(env_override)

    yield package_dir.parent / filename
    yield Path.cwd() / filename
    yield package_dir / filename


def load_layered_defaults(builtin: Mapping[str, Any], candidates: Iterable[Path]) -> Dict[str, Any]:
    """Return a deep copy of ``builtin`` merged with the first existing YAML candidate.

    Files that fail to read or parse, or whose top level is not a mapping,
    leave the built-ins untouched.
    """
    defaults = copy.deepcopy(dict(builtin))
    for candidate in candidates:
        if candidate.is_file():
            try:
                data = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError):
                continue
            if isinstance(data, dict):
                deep_update(defaults, data)
            break
    return defaults


def coerce_choice(value: object, choices: Iterable[str], fallback: str) -> str:
    """Return a canonical option label drawn from ``choices``.

    Parameters
    ----------
    value : object
        Free-form option supplied by configuration. Strings are normalised by
        trimming whitespace and lowering the case.
    choices : Iterable[str]
        Accepted lower-case labels.
    fallback : str
        Label returned when ``value`` does not match any of ``choices``.

    Returns
    -------
    str
        Either the normalised label or ``fallback`` if the candidate was
        invalid.
    """
    label = str(value if value is not None else fallback).strip().lower()
    if label not in set(choices):
        return fallback
    return label


def coerce_float(value: object, fallback: float) -> float:
    """Cast ``value`` to ``float`` while guarding against config noise.

    Parameters
    ----------
    value : object
        Arbitrary configuration token that should represent a floating point
        number. Strings and numeric values are accepted.
    fallback : float
        Value returned when the cast fails.

    Returns
    -------
    float
        ``value`` converted to ``float`` or ``fallback`` if conversion fails.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


def coerce_int(value: object, fallback: int) -> int:
    """Cast ``value`` to ``int`` while preserving a safe default.

    Parameters
    ----------
    value : object
        Candidate integer encoded as a number or string.
    fallback : int
        Value returned when ``value`` cannot be interpreted as an integer.

    Returns
    -------
    int
        ``value`` converted to ``int`` or ``fallback`` on error.
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def coerce_bool(value: object, fallback: bool) -> bool:
    """Interpret ``value`` as a boolean using common textual conventions.

    Parameters
    ----------
    value : object
        Configuration token that should represent ``True`` or ``False``. Truthy
        and falsy strings, numbers, and actual booleans are recognised.
    fallback : bool
        Value returned when ``value`` cannot be interpreted reliably.

    Returns
    -------
    bool
        Parsed boolean or ``fallback`` if the conversion is ambiguous.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return fallback


def coerce_range(value: object) -> Tuple[float, float] | None:
    """Interpret ``value`` as a ``(min, max)`` pair.

    Two-element sequences and ``{"min": .., "max": ..}`` mappings are
    accepted. Anything else, including pairs with non-numeric entries,
    yields ``None``. The order of the bounds is not checked.
    """
    if isinstance(value, Mapping):
        lo, hi = value.get("min"), value.get("max")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        lo, hi = value
    else:
        return None

    lo_f = coerce_float(lo, float("nan"))
    hi_f = coerce_float(hi, float("nan"))
    if lo_f != lo_f or hi_f != hi_f:
        return None
    return lo_f, hi_f


def coerce_bounds(values: object) -> Dict[str, Tuple[float, float]]:
    """Coerce a per-dimension bounds mapping into ``{name: (min, max)}``.

    Parameters
    ----------
    values : object
        Mapping from dimension name to a range accepted by
        :func:`coerce_range`. Entries that cannot be interpreted are dropped.

    Returns
    -------
    Dict[str, Tuple[float, float]]
        Cleaned bounds. Returns an empty dict when ``values`` is not a mapping.
    """
    if not isinstance(values, Mapping):
        return {}
    bounds: Dict[str, Tuple[float, float]] = {}
    for name, raw in values.items():
        parsed = coerce_range(raw)
        if parsed is not None:
            bounds[str(name)] = parsed
    return bounds

"""Scalar sampling of an externally evaluated field.

The sampler is the only place where evaluator faults are handled. Every call
returns a :class:`Sample`, so grid scans branch on ``Sample.defined`` instead
of wrapping each grid point in its own exception handler.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import numpy as np

FieldFunction = Callable[[Mapping[str, float]], Any]


@dataclass(frozen=True)
class Sample:
    """Outcome of evaluating the field at one coordinate tuple.

    ``value`` is the real scalar used for geometry (the magnitude for complex
    results) and is NaN when ``defined`` is ``False``. ``real`` and ``imag``
    are only set for complex results and feed domain coloring.
    """

    value: float
    defined: bool = True
    real: Optional[float] = None
    imag: Optional[float] = None

    @classmethod
    def undefined(cls) -> "Sample":
        return cls(value=math.nan, defined=False)

    @classmethod
    def from_complex(cls, real: float, imag: float) -> "Sample":
        return cls(value=math.hypot(real, imag), real=float(real), imag=float(imag))

    @property
    def is_complex(self) -> bool:
        return self.real is not None and self.imag is not None

    @property
    def is_finite(self) -> bool:
        return self.defined and math.isfinite(self.value)


def coerce_result(result: Any, *, numeric_only: bool = False) -> Sample:
    """Convert a raw evaluator result into a :class:`Sample`.

    Parameters
    ----------
    result : Any
        Python/numpy scalar, ``complex``, ``bool``, or a tagged value exposing
        ``kind`` (``"number"``, ``"complex"``, ``"boolean"``) together with
        ``value`` or ``real``/``imag`` attributes.
    numeric_only : bool, optional
        When ``True`` only real numbers are accepted; complex, boolean and
        other result kinds become undefined samples. When ``False`` complex
        results reduce to their magnitude, booleans to 1/0 and anything else
        to 0.

    Returns
    -------
    Sample
        The coerced sample. Real values are passed through unchanged, so NaN
        or infinite results stay in ``value`` with ``defined=True``.
    """
    kind = getattr(result, "kind", None)
    if isinstance(kind, str):
        if kind == "number":
            return Sample(value=float(result.value))
        if kind == "complex" and not numeric_only:
            return Sample.from_complex(float(result.real), float(result.imag))
        if kind == "boolean" and not numeric_only:
            return Sample(value=1.0 if result.value else 0.0)
        return Sample.undefined() if numeric_only else Sample(value=0.0)

    if isinstance(result, (bool, np.bool_)):
        if numeric_only:
            return Sample.undefined()
        return Sample(value=1.0 if result else 0.0)
    if isinstance(result, numbers.Real):
        return Sample(value=float(result))
    if isinstance(result, numbers.Complex):
        if numeric_only:
            return Sample.undefined()
        return Sample.from_complex(result.real, result.imag)

    return Sample.undefined() if numeric_only else Sample(value=0.0)


class ScalarFieldSampler:
    """Evaluate a field callable at named coordinates without ever raising.

    Parameters
    ----------
    field : Callable[[Mapping[str, float]], Any]
        Function receiving the coordinate bindings (dimension name to value)
        and returning a scalar, complex, boolean or tagged value.
    numeric_only : bool, optional
        Forwarded to :func:`coerce_result`. The implicit extractor samples with
        ``numeric_only=True``.
    """

    def __init__(self, field: FieldFunction, *, numeric_only: bool = False) -> None:
        if not callable(field):
            raise TypeError("field must be callable")
        self.field = field
        self.numeric_only = bool(numeric_only)

    @classmethod
    def from_evaluator(
        cls,
        evaluate: Callable[[Any, Mapping[str, float], Any], Any],
        expression: Any,
        context: Any = None,
        *,
        numeric_only: bool = False,
    ) -> "ScalarFieldSampler":
        """Adapt an ``evaluate(expression, bindings, context)`` function."""
        return cls(
            lambda bindings: evaluate(expression, bindings, context),
            numeric_only=numeric_only,
        )

    def with_numeric_only(self, numeric_only: bool = True) -> "ScalarFieldSampler":
        """Return a sampler sharing the same field with a different coercion mode."""
        return ScalarFieldSampler(self.field, numeric_only=numeric_only)

    def sample(self, coordinates: Mapping[str, float]) -> Sample:
        """Evaluate the field at ``coordinates``.

        Any exception raised by the field (division by zero, domain errors,
        unbound names, ...) yields :meth:`Sample.undefined`.
        """
        try:
            with np.errstate(all="ignore"):
                result = self.field(dict(coordinates))
        except Exception:
            return Sample.undefined()
        try:
            return coerce_result(result, numeric_only=self.numeric_only)
        except (TypeError, ValueError, AttributeError, OverflowError):
            return Sample.undefined()

    def __call__(self, coordinates: Mapping[str, float]) -> Sample:
        return self.sample(coordinates)

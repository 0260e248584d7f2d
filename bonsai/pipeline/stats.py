"""Statistics over a Series."""

import math
from numbers import Real
from typing import Callable, Iterable, Union

from bonsai.shared.models import ExtremaSummary, Reading

FieldSelector = Union[str, Callable[[Reading], object]]


def _selector(field: FieldSelector) -> Callable[[Reading], object]:
    if callable(field):
        return field
    return lambda reading: getattr(reading, field)


def extrema(series: Iterable[Reading], field: FieldSelector = "temperature_c") -> ExtremaSummary:
    """Max and min of a numeric field, ignoring None, NaN and infinities."""
    select = _selector(field)
    values = [
        float(value)
        for value in map(select, series)
        if isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)
    ]
    if not values:
        return ExtremaSummary()
    return ExtremaSummary(maximum=max(values), minimum=min(values))

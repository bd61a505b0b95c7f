"""Signal processing helpers for BRR sample data."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

_I16_MIN = -0x8000
_I16_MAX = 0x7FFF

# Tepples' coefficients multiplied by 0.6 to avoid overflow in most cases.
BRRTOOLS_TREBLE_FILTER = (
    0.912962,
    -0.16199,
    -0.0153283,
    0.0426783,
    -0.0372004,
    0.023436,
    -0.0105816,
    0.00250474,
)

PRECISE_TREBLE_FILTER = (
    1.91237,
    -0.59909,
    0.18768,
    -0.05879,
    0.01842,
    -0.00577,
    0.00181,
    -0.00057,
    0.00018,
    -0.00006,
    0.00002,
    -0.00001,
)

_GAUSS_OUTER = 372
_GAUSS_CENTER = 1304
_GAUSS_DIVISOR = 2048


def _saturate_to_i16(value: float) -> int:
    """Convert to a 16-bit integer, truncating toward zero and saturating."""
    if math.isnan(value):
        return 0
    if value >= _I16_MAX:
        return _I16_MAX
    if value <= _I16_MIN:
        return _I16_MIN
    return int(value)


def _scale_gauss(value: int) -> int:
    quotient = abs(value) // _GAUSS_DIVISOR
    quotient = -quotient if value < 0 else quotient
    return max(_I16_MIN, min(_I16_MAX, quotient))


def apply_hardware_gauss_filter(samples: Iterable[int]) -> list[int]:
    """Apply the hardware Gaussian low-pass filter of the BRR decoder and return the result.

    Sequences of exactly two samples cannot be filtered and raise ``ValueError``.
    """
    result = list(samples)
    if len(result) < 2:
        return result
    if len(result) == 2:
        raise ValueError("the hardware Gauss filter needs at least three samples")

    previous = (_GAUSS_OUTER + _GAUSS_CENTER) * result[0] + _GAUSS_OUTER * result[1]
    for index in range(1, len(result) - 1):
        following = (
            _GAUSS_OUTER * (result[index - 1] + result[index + 1])
            + _GAUSS_CENTER * result[index]
        )
        result[index - 1] = _scale_gauss(previous)
        previous = following

    last = _GAUSS_OUTER * result[-3] + (_GAUSS_CENTER + _GAUSS_OUTER) * result[-1]
    result[-3] = _scale_gauss(previous)
    result[-1] = _scale_gauss(last)
    return result


def apply_brrtools_treble_boost_filter(samples: Iterable[int]) -> list[int]:
    """Apply the BRRTools treble boost that compensates the hardware Gaussian filter."""
    return apply_fir_filter(BRRTOOLS_TREBLE_FILTER, samples)


def apply_precise_treble_boost_filter(samples: Iterable[int]) -> list[int]:
    """Apply a treble boost that exactly reverses the hardware Gaussian filter."""
    return apply_fir_filter(PRECISE_TREBLE_FILTER, samples)


def apply_fir_filter(filter: Sequence[float], samples: Iterable[int]) -> list[int]:
    """Apply a symmetric FIR filter.

    ``filter[0]`` weights the current sample; ``filter[k]`` weights both the sample ``k``
    before and ``k`` after it. Samples beyond the edges repeat the edge samples.
    """
    coefficients = tuple(filter)
    data = list(samples)
    if not data:
        return []
    if not coefficients:
        raise ValueError("an FIR filter needs at least one coefficient")

    count = len(data)
    last_sample = data[-1]

    def filtered(index: int) -> int:
        neighbours = 0.0
        for offset in range(len(coefficients) - 1, 0, -1):
            coefficient = coefficients[offset]
            ahead = data[index + offset] if index + offset < count else last_sample
            behind = data[max(index - offset, 0)]
            neighbours += coefficient * ahead + coefficient * behind
        return _saturate_to_i16(data[index] * coefficients[0] + neighbours)

    return [filtered(index) for index in range(count)]
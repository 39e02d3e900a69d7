"""Scan-line prediction filters applied before DEFLATE.

Encoding only ever looks at the raw (unfiltered) bytes of the current and
previous row, so every row of an image can be filtered at once.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np


class FilterStrategy(IntEnum):
    NONE = 0
    SUB = 1
    UP = 2
    AVERAGE = 3
    PAETH = 4


# Trial order for the filter search; earlier entries win ties.
SEARCH_ORDER = (
    FilterStrategy.NONE,
    FilterStrategy.SUB,
    FilterStrategy.UP,
    FilterStrategy.AVERAGE,
    FilterStrategy.PAETH,
)


def _shift_right(rows: np.ndarray, count: int) -> np.ndarray:
    shifted = np.zeros_like(rows)
    if count < rows.shape[1]:
        shifted[:, count:] = rows[:, :-count]
    return shifted


def _shift_down(rows: np.ndarray) -> np.ndarray:
    shifted = np.zeros_like(rows)
    shifted[1:] = rows[:-1]
    return shifted


def _paeth_predictor(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    p = a + b - c
    pa = np.abs(p - a)
    pb = np.abs(p - b)
    pc = np.abs(p - c)
    return np.where((pa <= pb) & (pa <= pc), a, np.where(pb <= pc, b, c))


def filter_scanlines(
    data: bytes,
    width: int,
    height: int,
    bytes_per_pixel: int,
    strategy: FilterStrategy,
) -> bytes:
    """Return the IDAT payload: one filter-type byte then the residuals, per row."""

    strategy = FilterStrategy(strategy)
    stride = width * bytes_per_pixel
    if len(data) != stride * height:
        raise ValueError(f"expected {stride * height} bytes for {width}x{height}, got {len(data)}")

    x = np.frombuffer(data, dtype=np.uint8).reshape(height, stride).astype(np.int16)

    if strategy is FilterStrategy.NONE:
        residual = x
    elif strategy is FilterStrategy.SUB:
        residual = x - _shift_right(x, bytes_per_pixel)
    elif strategy is FilterStrategy.UP:
        residual = x - _shift_down(x)
    elif strategy is FilterStrategy.AVERAGE:
        residual = x - ((_shift_right(x, bytes_per_pixel) + _shift_down(x)) >> 1)
    else:
        up = _shift_down(x)
        residual = x - _paeth_predictor(
            _shift_right(x, bytes_per_pixel), up, _shift_right(up, bytes_per_pixel)
        )

    out = np.empty((height, stride + 1), dtype=np.uint8)
    out[:, 0] = int(strategy)
    out[:, 1:] = residual & 0xFF
    return out.tobytes()

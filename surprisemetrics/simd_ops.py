"""Vectorised return and variance computations on float32 price series."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

PI_OVER_2 = np.float32(1.5707963267948966)


def _as_float32(values: Sequence[float] | np.ndarray, name: str) -> np.ndarray:
    array = np.asarray(values, dtype=np.float32).ravel()
    if array.size == 0:
        raise ValueError(f"{name} must not be empty")
    return array


def compute_returns(prices: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return the log returns ``log(p[i+1] / p[i])``; one fewer than the prices."""
    values = _as_float32(prices, "prices")
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.log(values[1:] / values[:-1]).astype(np.float32)


def compute_realized_variance(
    returns: Sequence[float] | np.ndarray, window: int
) -> np.ndarray:
    """Return rolling sums of squared returns.

    Element ``i`` is the sum of ``returns[i:i + window]`` squared, for each
    ``i`` below ``len(returns) - window``.
    """
    if window < 0:
        raise ValueError(f"window must not be negative, got {window}")
    values = np.asarray(returns, dtype=np.float32).ravel()
    count = values.size - window
    if count <= 0:
        return np.zeros(0, dtype=np.float32)
    if window == 0:
        return np.zeros(count, dtype=np.float32)
    squares = values * values
    windows = sliding_window_view(squares, window)[:count]
    return windows.sum(axis=1, dtype=np.float32)


def compute_bipower_variation(returns: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return ``|r[i+1]| * |r[i]| * pi/2`` for each adjacent pair of returns."""
    values = _as_float32(returns, "returns")
    magnitudes = np.abs(values)
    return (magnitudes[1:] * magnitudes[:-1] * PI_OVER_2).astype(np.float32)
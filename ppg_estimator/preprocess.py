"""Detrending and moving-average smoothing of a window snapshot."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ppg_estimator.presets import Preset, SmoothMode


def detrend(values: np.ndarray, mean: Optional[float] = None) -> np.ndarray:
    """
    Remove the DC offset from *values*.

    Parameters
    ----------
    values:
        1D signal.
    mean:
        Precomputed arithmetic mean of *values*.  Computed here when omitted.
    """
    x = np.asarray(values, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    if mean is None:
        mean = float(np.mean(x))
    return x - mean


def moving_average(values: np.ndarray, window_size: int) -> np.ndarray:
    """
    Centred moving average with truncated edges.

    Sample ``i`` is averaged over ``[max(0, i - w//2), min(n, i + w//2 + 1))``,
    so outputs near the boundaries average fewer than *window_size* samples
    instead of being zero-padded.
    """
    x = np.asarray(values, dtype=np.float64)
    n = x.size
    if n == 0:
        return x.copy()
    half = int(window_size) // 2
    idx = np.arange(n)
    start = np.maximum(0, idx - half)
    end = np.minimum(n, idx + half + 1)
    csum = np.concatenate(([0.0], np.cumsum(x)))
    return (csum[end] - csum[start]) / (end - start)


def smooth(
    values: np.ndarray,
    window_size: int,
    mode: SmoothMode = SmoothMode.LOWPASS,
) -> np.ndarray:
    """
    Smooth *values* with a centred moving average of width *window_size*.

    With ``SmoothMode.RESIDUAL`` the local average is subtracted from the
    signal instead, which suppresses slow drift and keeps the pulse.
    """
    x = np.asarray(values, dtype=np.float64)
    avg = moving_average(x, window_size)
    if SmoothMode(mode) is SmoothMode.RESIDUAL:
        return x - avg
    return avg


def preprocess(
    values: np.ndarray,
    preset: Preset,
    mean: Optional[float] = None,
) -> np.ndarray:
    """Detrend then smooth *values* according to *preset*."""
    return smooth(detrend(values, mean), preset.smooth_window, preset.smooth_mode)

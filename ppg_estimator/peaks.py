"""
Peak detection against an adaptive threshold.

A sample is a peak when it is strictly greater than both neighbours and
clears ``base_statistic * factor``, where the base statistic is either the
population variance or the mean absolute value of the signal.  The
threshold therefore follows the signal amplitude instead of being fixed.
"""

from __future__ import annotations

import numpy as np
from scipy.signal import argrelextrema

from ppg_estimator.presets import ThresholdStat


def threshold_for(signal: np.ndarray, stat: ThresholdStat, factor: float) -> float:
    """Return the acceptance threshold for *signal*."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0
    if ThresholdStat(stat) is ThresholdStat.VARIANCE:
        base = float(np.var(x))
    else:
        base = float(np.mean(np.abs(x)))
    return base * factor


def find_peaks(
    signal: np.ndarray,
    threshold_stat: ThresholdStat,
    threshold_factor: float,
    absolute_compare: bool = False,
) -> np.ndarray:
    """
    Return the indices of the peaks in *signal*, in ascending order.

    Only interior samples (``1 <= i <= n - 2``) qualify.  With
    *absolute_compare* the magnitude ``|signal[i]|`` is compared against
    the threshold, otherwise the signed value.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 3:
        return np.empty(0, dtype=np.intp)

    threshold = threshold_for(x, threshold_stat, threshold_factor)

    # mode="clip" compares the end samples with themselves, so they never pass
    (candidates,) = argrelextrema(x, np.greater, order=1, mode="clip")
    heights = np.abs(x[candidates]) if absolute_compare else x[candidates]
    return candidates[heights > threshold]

"""
Beats-per-minute from peak spacing.

The distance between consecutive peaks (in samples) is averaged, optionally
after discarding intervals far from the median, and converted to a rate
using the effective sampling frequency of the window::

    fps        = n_samples / (t_last - t_first)
    bpm        = 60 / (avg_interval / fps)

The effective fps is measured from the timestamps rather than assumed,
because callers feed samples at whatever cadence their source delivers.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


def peak_intervals(peak_indices: np.ndarray) -> np.ndarray:
    """Sample distances between consecutive peaks."""
    return np.diff(np.asarray(peak_indices)).astype(np.float64)


def median(values: np.ndarray) -> float:
    """Median of *values*; even lengths average the two middle elements."""
    return float(np.median(np.asarray(values, dtype=np.float64)))


def reject_outliers(intervals: np.ndarray, factor: float = 0.5) -> np.ndarray:
    """
    Drop intervals whose distance from the median is ``>= median * factor``.

    The input is never reordered; survivors keep their original order.
    """
    iv = np.asarray(intervals, dtype=np.float64)
    if iv.size == 0:
        return iv
    med = median(iv)
    return iv[np.abs(iv - med) < med * factor]


def average_interval(
    intervals: np.ndarray,
    outlier_rejection: bool,
    outlier_factor: float = 0.5,
) -> Optional[float]:
    """Mean interval after optional outlier rejection, or None if none remain."""
    iv = np.asarray(intervals, dtype=np.float64)
    if outlier_rejection:
        iv = reject_outliers(iv, outlier_factor)
    if iv.size == 0:
        return None
    return float(np.mean(iv))


def estimate_bpm(
    peak_indices: np.ndarray,
    timestamps: np.ndarray,
    outlier_rejection: bool,
    outlier_factor: float = 0.5,
) -> Optional[float]:
    """
    Convert peak positions into a heart rate.

    Parameters
    ----------
    peak_indices:
        Ascending sample indices of detected peaks.
    timestamps:
        Timestamps (seconds) of every sample in the analysed window.
    outlier_rejection:
        Apply median-based interval filtering.
    outlier_factor:
        Deviation fraction passed to :func:`reject_outliers`.

    Returns
    -------
    float or None
        Raw (unrounded, unranged) BPM, or *None* when no rate can be derived.
    """
    peaks = np.asarray(peak_indices)
    if peaks.size < 2:
        logger.debug("Only %d peak(s) found.", peaks.size)
        return None

    avg = average_interval(peak_intervals(peaks), outlier_rejection, outlier_factor)
    if avg is None or avg <= 0:
        logger.debug("No intervals survived outlier rejection.")
        return None

    ts = np.asarray(timestamps, dtype=np.float64)
    if ts.size < 2:
        return None
    span = float(ts[-1] - ts[0])
    if not math.isfinite(span) or span <= 0:
        logger.debug("Unusable time span %.3f s.", span)
        return None

    fps = ts.size / span
    seconds_per_beat = avg / fps
    return 60.0 / seconds_per_beat

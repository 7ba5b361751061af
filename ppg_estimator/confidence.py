"""
Confidence scoring.

Two strategies are available:

``variance_map``
    ``clamp(variance / 100, 0, 1)``.  Strong pulsation → high confidence.
``composite``
    Weighted sum of a signal-to-offset ratio, a bonus for rates in the
    resting range (60 – 100 BPM) and the stability of the most recent
    samples relative to the whole window.

Scores are always clamped to [0, 1].
"""

from __future__ import annotations

import numpy as np

from ppg_estimator.presets import ConfidenceStyle

RECENT_SAMPLES = 30
NORMAL_RANGE = (60.0, 100.0)


def variance_map(signal: np.ndarray) -> float:
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.clip(np.var(x) / 100.0, 0.0, 1.0))


def composite(signal: np.ndarray, bpm: float) -> float:
    """
    ``0.4 * snr + 0.3 * normal_range_bonus + 0.3 * stability``.

    snr
        ``min(std / (|mean| + 1), 1)``
    normal_range_bonus
        1.0 inside the resting range, 0.7 outside.
    stability
        ``1 - min(|recent_mean - mean| / (|mean| + 1), 1)`` over the last
        ``min(30, n)`` samples.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0

    mean = float(np.mean(x))
    std = float(np.std(x))
    snr = min(std / (abs(mean) + 1.0), 1.0)

    in_range = NORMAL_RANGE[0] <= bpm <= NORMAL_RANGE[1]
    bonus = 1.0 if in_range else 0.7

    recent_mean = float(np.mean(x[-min(RECENT_SAMPLES, x.size):]))
    stability = 1.0 - min(abs(recent_mean - mean) / (abs(mean) + 1.0), 1.0)

    score = 0.4 * snr + 0.3 * bonus + 0.3 * stability
    return float(np.clip(score, 0.0, 1.0))


def score_confidence(signal: np.ndarray, bpm: float, style: ConfidenceStyle) -> float:
    """Score *signal* with the strategy selected by *style*."""
    if ConfidenceStyle(style) is ConfidenceStyle.VARIANCE_MAP:
        return variance_map(signal)
    return composite(signal, bpm)


def confidence_label(confidence: float) -> str:
    """Human-readable bucket: ``High`` (≥ 0.8), ``Medium`` (≥ 0.5) or ``Low``."""
    if confidence >= 0.8:
        return "High"
    if confidence >= 0.5:
        return "Medium"
    return "Low"

"""
Tuning presets for the estimation engine.

A :class:`Preset` bundles every numeric and behavioural knob of the
pipeline.  Presets are immutable and validated on construction, so an
:class:`~ppg_estimator.estimator.Estimator` can never be built around an
invalid configuration.

Named presets
-------------
``default``
    Low-pass smoothing (5 samples), mean-absolute threshold × 0.4,
    median outlier rejection, composite confidence.
``classic``
    Low-pass smoothing (5 samples), variance threshold × 0.3 compared
    against ``|value|``, no outlier rejection, variance-mapped confidence.
``residual``
    Residual smoothing (7 samples), mean-absolute threshold × 0.45,
    median outlier rejection, composite confidence.
``residual_relaxed``
    Same as ``residual`` with a threshold factor of 0.4.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ConfigError(ValueError):
    """Raised when a :class:`Preset` holds an invalid combination of values."""


class ThresholdStat(str, Enum):
    VARIANCE = "variance"
    MEAN_ABS = "mean_abs"


class ConfidenceStyle(str, Enum):
    VARIANCE_MAP = "variance_map"
    COMPOSITE = "composite"


class SmoothMode(str, Enum):
    LOWPASS = "lowpass"     # moving average itself
    RESIDUAL = "residual"   # signal minus its moving average


@dataclass(frozen=True)
class Preset:
    """
    Immutable estimator configuration.

    Parameters
    ----------
    capacity:
        Sliding-window size in samples.
    min_samples:
        Samples required before an estimate is attempted.
    min_bpm, max_bpm:
        Plausible output range; estimates outside it are discarded.
    smooth_window:
        Width of the centred moving average.
    smooth_mode:
        Whether the smoother returns the moving average or the residual.
    threshold_stat:
        Base statistic for the peak threshold.
    threshold_factor:
        Multiplier applied to the base statistic.
    absolute_compare:
        Compare ``|value|`` rather than ``value`` against the threshold.
    outlier_rejection:
        Drop inter-peak intervals far from the median.
    outlier_factor:
        Allowed deviation from the median, as a fraction of the median.
    confidence_style:
        Confidence scoring strategy.
    name:
        Label used in log messages.
    """

    capacity: int = 150
    min_samples: int = 60
    min_bpm: float = 45.0
    max_bpm: float = 200.0
    smooth_window: int = 5
    smooth_mode: SmoothMode = SmoothMode.LOWPASS
    threshold_stat: ThresholdStat = ThresholdStat.MEAN_ABS
    threshold_factor: float = 0.4
    absolute_compare: bool = False
    outlier_rejection: bool = True
    outlier_factor: float = 0.5
    confidence_style: ConfidenceStyle = ConfidenceStyle.COMPOSITE
    name: str = "default"

    def __post_init__(self) -> None:
        # Accept plain strings for the enum fields (e.g. from the CLI).
        try:
            object.__setattr__(self, "smooth_mode", SmoothMode(self.smooth_mode))
            object.__setattr__(self, "threshold_stat", ThresholdStat(self.threshold_stat))
            object.__setattr__(
                self, "confidence_style", ConfidenceStyle(self.confidence_style)
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        for field in ("capacity", "min_samples", "smooth_window"):
            value = getattr(self, field)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ConfigError(f"{field} must be an integer, got {value!r}")
        for field in ("min_bpm", "max_bpm", "threshold_factor", "outlier_factor"):
            value = getattr(self, field)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) \
                    or not math.isfinite(value):
                raise ConfigError(f"{field} must be a finite number, got {value!r}")

        if self.capacity <= 0:
            raise ConfigError(f"capacity must be positive, got {self.capacity}")
        if self.min_samples < 1:
            raise ConfigError(f"min_samples must be at least 1, got {self.min_samples}")
        if self.min_samples > self.capacity:
            raise ConfigError(
                f"min_samples ({self.min_samples}) exceeds capacity ({self.capacity})"
            )
        if self.smooth_window <= 0:
            raise ConfigError(f"smooth_window must be positive, got {self.smooth_window}")
        if self.min_bpm >= self.max_bpm:
            raise ConfigError(
                f"min_bpm ({self.min_bpm}) must be below max_bpm ({self.max_bpm})"
            )
        if self.threshold_factor < 0:
            raise ConfigError(
                f"threshold_factor must not be negative, got {self.threshold_factor}"
            )
        if self.outlier_factor <= 0:
            raise ConfigError(
                f"outlier_factor must be positive, got {self.outlier_factor}"
            )


PRESETS: Dict[str, Preset] = {
    "default": Preset(),
    "classic": Preset(
        name="classic",
        smooth_window=5,
        threshold_stat=ThresholdStat.VARIANCE,
        threshold_factor=0.3,
        absolute_compare=True,
        outlier_rejection=False,
        confidence_style=ConfidenceStyle.VARIANCE_MAP,
    ),
    "residual": Preset(
        name="residual",
        smooth_window=7,
        smooth_mode=SmoothMode.RESIDUAL,
        threshold_stat=ThresholdStat.MEAN_ABS,
        threshold_factor=0.45,
    ),
    "residual_relaxed": Preset(
        name="residual_relaxed",
        smooth_window=7,
        smooth_mode=SmoothMode.RESIDUAL,
        threshold_stat=ThresholdStat.MEAN_ABS,
        threshold_factor=0.4,
    ),
}


def get_preset(name: str) -> Preset:
    """Return the named preset or raise :class:`ConfigError`."""
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigError(
            f"unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        ) from None

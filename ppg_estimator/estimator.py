"""
Streaming heart-rate estimator.

Algorithm
---------
1. Append each brightness sample, with its monotonic timestamp, to a
   sliding window of ``preset.capacity`` samples.
2. Once ``preset.min_samples`` samples are buffered, on request:
   a. detrend (subtract the window mean) and smooth the snapshot;
   b. find local maxima above an amplitude-adaptive threshold;
   c. average the inter-peak spacing (median outlier rejection optional)
      and convert it to BPM using the window's measured sampling rate;
   d. score the smoothed signal for confidence.
3. Estimates outside ``[preset.min_bpm, preset.max_bpm]`` are discarded.

An estimate that cannot be produced is *not* an error: :meth:`try_estimate`
returns ``None`` and the caller simply tries again with more samples.

The estimator performs no locking.  Callers feeding it from several
threads must serialise access themselves.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ppg_estimator.confidence import confidence_label, score_confidence
from ppg_estimator.intervals import estimate_bpm
from ppg_estimator.peaks import find_peaks
from ppg_estimator.preprocess import preprocess
from ppg_estimator.presets import Preset
from ppg_estimator.window import Sample, SlidingWindow

logger = logging.getLogger(__name__)


class EstimatorState(Enum):
    IDLE = "idle"          # nothing buffered since construction / reset
    FILLING = "filling"    # 0 < samples < min_samples
    READY = "ready"        # samples >= min_samples


@dataclass(frozen=True)
class EstimationResult:
    bpm: int
    confidence: float
    timestamp: float

    @property
    def label(self) -> str:
        """Confidence bucket (``High`` / ``Medium`` / ``Low``)."""
        return confidence_label(self.confidence)


class Estimator:
    """
    Heart-rate estimation engine.

    Parameters
    ----------
    preset:
        Validated tuning parameters.  Defaults to :class:`Preset()`.
    clock:
        Zero-argument callable returning monotonic seconds.  Used to
        timestamp samples pushed without an explicit timestamp and to stamp
        results.  Defaults to :func:`time.monotonic`.
    """

    def __init__(
        self,
        preset: Optional[Preset] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._preset = preset if preset is not None else Preset()
        self._clock = clock
        self._window = SlidingWindow(self._preset.capacity)
        self._state = EstimatorState.IDLE

        # Mean of the current window; invalidated by every new sample
        self._cached_mean: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_sample(self, value: float, timestamp: Optional[float] = None) -> None:
        """
        Buffer one brightness sample.

        Parameters
        ----------
        value:
            Scalar intensity (e.g. mean red channel of a frame).  Units are
            opaque to the estimator.
        timestamp:
            Monotonic time of the sample in seconds.  Taken from the clock
            when omitted.
        """
        if timestamp is None:
            timestamp = self._clock()
        self._window.append(Sample(float(value), float(timestamp)))
        self._cached_mean = None

        if len(self._window) >= self._preset.min_samples:
            self._state = EstimatorState.READY
        elif self._state is EstimatorState.IDLE:
            self._state = EstimatorState.FILLING

    def has_enough_samples(self) -> bool:
        return self._state is EstimatorState.READY

    def try_estimate(self) -> Optional[EstimationResult]:
        """
        Return an :class:`EstimationResult`, or *None* when no plausible
        rate can be derived from the current window.
        """
        if not self.has_enough_samples():
            logger.debug(
                "[%s] Not enough samples (%d/%d).",
                self._preset.name, len(self._window), self._preset.min_samples,
            )
            return None

        p = self._preset
        signal = preprocess(self._window.values(), p, mean=self.mean)
        peaks = find_peaks(
            signal, p.threshold_stat, p.threshold_factor, p.absolute_compare
        )
        bpm = estimate_bpm(
            peaks, self._window.timestamps(), p.outlier_rejection, p.outlier_factor
        )
        if bpm is None:
            return None
        if not (p.min_bpm <= bpm <= p.max_bpm):
            logger.debug(
                "[%s] BPM %.1f outside [%g, %g].", p.name, bpm, p.min_bpm, p.max_bpm
            )
            return None

        confidence = score_confidence(signal, bpm, p.confidence_style)
        return EstimationResult(
            bpm=int(math.floor(bpm + 0.5)),
            confidence=confidence,
            timestamp=self._clock(),
        )

    def reset(self) -> None:
        """Clear the window and any cached values."""
        self._window.reset()
        self._cached_mean = None
        self._state = EstimatorState.IDLE
        logger.debug("[%s] Estimator reset.", self._preset.name)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def preset(self) -> Preset:
        return self._preset

    @property
    def state(self) -> EstimatorState:
        return self._state

    @property
    def sample_count(self) -> int:
        return len(self._window)

    @property
    def fill_ratio(self) -> float:
        """How full the sliding window is (0 – 1)."""
        return len(self._window) / self._window.capacity

    @property
    def mean(self) -> Optional[float]:
        """Arithmetic mean of the buffered values, or None when empty."""
        if self._cached_mean is None and len(self._window) > 0:
            self._cached_mean = float(self._window.values().mean())
        return self._cached_mean

    def snapshot(self) -> Tuple[Sample, ...]:
        """Buffered samples, oldest first."""
        return self._window.snapshot()

"""
Fixed-capacity sample buffer.

The window keeps the most recent ``capacity`` samples, oldest first.
Appending to a full window evicts the oldest sample (FIFO), so the
estimator always analyses the last few seconds of signal.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Tuple

import numpy as np


@dataclass(frozen=True)
class Sample:
    """One brightness reading and the monotonic time (seconds) it was taken."""

    value: float
    timestamp: float


class SlidingWindow:
    """
    Rolling buffer of :class:`Sample` objects.

    Parameters
    ----------
    capacity:
        Maximum number of samples kept.  Must be positive; the
        :class:`~ppg_estimator.presets.Preset` validates it.
    """

    def __init__(self, capacity: int) -> None:
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def append(self, sample: Sample) -> None:
        """Add *sample*, evicting the oldest one when the window is full."""
        self._samples.append(sample)

    def snapshot(self) -> Tuple[Sample, ...]:
        """Return the current contents, oldest → newest, as an immutable copy."""
        return tuple(self._samples)

    def values(self) -> np.ndarray:
        return np.fromiter(
            (s.value for s in self._samples), dtype=np.float64, count=len(self._samples)
        )

    def timestamps(self) -> np.ndarray:
        return np.fromiter(
            (s.timestamp for s in self._samples), dtype=np.float64, count=len(self._samples)
        )

    def reset(self) -> None:
        """Empty the window."""
        self._samples.clear()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    @property
    def is_full(self) -> bool:
        return len(self._samples) == self._samples.maxlen

    def __len__(self) -> int:
        return len(self._samples)

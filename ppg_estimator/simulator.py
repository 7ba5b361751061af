"""
Synthetic PPG source.

Produces a sinusoidal brightness trace at a chosen heart rate, riding on a
constant baseline with uniform noise.  Useful for demos on machines without
a camera and for exercising the estimator in tests.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

import numpy as np


class PPGSimulator:
    """
    Parameters
    ----------
    heart_rate:
        Pulse rate of the generated signal in BPM.
    baseline:
        DC brightness level (default 128, mid-scale for 8-bit frames).
    amplitude:
        Pulsatile amplitude.
    noise:
        Peak-to-peak width of the uniform noise added to every sample.
    seed:
        Seed for the noise generator; ``None`` for a random seed.
    """

    def __init__(
        self,
        heart_rate: float = 75.0,
        baseline: float = 128.0,
        amplitude: float = 15.0,
        noise: float = 5.0,
        seed: Optional[int] = None,
    ) -> None:
        self.heart_rate = heart_rate
        self.baseline = baseline
        self.amplitude = amplitude
        self.noise = noise
        self._rng = np.random.default_rng(seed)

    def sample(self, t: float) -> float:
        """Brightness at time *t* (seconds)."""
        pulse = np.sin(2 * np.pi * (self.heart_rate / 60.0) * t)
        jitter = (self._rng.random() - 0.5) * self.noise
        return float(self.baseline + self.amplitude * pulse + jitter)

    def samples(
        self,
        rate: float,
        duration: Optional[float] = None,
        start: float = 0.0,
    ) -> Iterator[Tuple[float, float]]:
        """
        Yield ``(timestamp, value)`` pairs every ``1 / rate`` seconds.

        Runs forever when *duration* is None.
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        i = 0
        while duration is None or i < int(round(duration * rate)):
            t = start + i / rate
            yield t, self.sample(t)
            i += 1

"""
PPG Estimator: streaming heart-rate estimation from skin brightness.
Feed one brightness value per camera frame (finger on the lens, flash on);
the estimator detrends, smooths and peak-picks a rolling window and
reports BPM with a confidence score.
"""

from ppg_estimator.estimator import EstimationResult, Estimator, EstimatorState
from ppg_estimator.presets import PRESETS, ConfigError, Preset, get_preset

__all__ = [
    "ConfigError",
    "EstimationResult",
    "Estimator",
    "EstimatorState",
    "PRESETS",
    "Preset",
    "get_preset",
]

__version__ = "0.1.0"

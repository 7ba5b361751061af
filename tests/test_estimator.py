"""
Unit tests for Estimator and Preset.
Run with:  pytest tests/
"""

from __future__ import annotations

import dataclasses
import itertools

import numpy as np
import pytest

from ppg_estimator.estimator import EstimationResult, Estimator, EstimatorState
from ppg_estimator.presets import (
    PRESETS,
    ConfidenceStyle,
    ConfigError,
    Preset,
    SmoothMode,
    ThresholdStat,
    get_preset,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ppg(bpm: float = 75.0, amplitude: float = 15.0, fs: float = 10.0,
         seconds: float = 15.0, noise: float = 0.5, seed: int = 7):
    """Return (timestamps, values) of a noisy sinusoidal PPG trace."""
    rng = np.random.default_rng(seed)
    t = np.arange(int(fs * seconds)) / fs
    values = 128 + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * t)
    return t, values + rng.normal(scale=noise, size=t.size)


def _feed(estimator: Estimator, timestamps, values) -> None:
    for ts, v in zip(timestamps, values):
        estimator.process_sample(v, timestamp=ts)


# ---------------------------------------------------------------------------
# Preset tests
# ---------------------------------------------------------------------------

class TestPreset:

    def test_defaults(self):
        p = Preset()
        assert p.capacity == 150
        assert p.min_samples == 60
        assert (p.min_bpm, p.max_bpm) == (45.0, 200.0)
        assert p.outlier_factor == 0.5
        assert p.confidence_style is ConfidenceStyle.COMPOSITE

    @pytest.mark.parametrize("kwargs", [
        {"capacity": 0},
        {"capacity": -5},
        {"capacity": 50, "min_samples": 51},
        {"smooth_window": 0},
        {"min_bpm": 120, "max_bpm": 120},
        {"min_bpm": 150, "max_bpm": 60},
        {"min_samples": 0},
        {"outlier_factor": 0.0},
        {"threshold_factor": -0.1},
        {"threshold_stat": "median"},
        {"capacity": 10.5, "min_samples": 5},
        {"min_samples": 6.0},
        {"smooth_window": 5.5},
        {"capacity": True, "min_samples": 1},
        {"min_bpm": float("nan")},
        {"max_bpm": float("inf")},
        {"threshold_factor": float("nan")},
        {"outlier_factor": float("inf")},
    ])
    def test_invalid_config_rejected(self, kwargs):
        with pytest.raises(ConfigError):
            Preset(**kwargs)

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_enum_fields_accept_strings(self):
        p = Preset(threshold_stat="variance", confidence_style="variance_map",
                   smooth_mode="residual")
        assert p.threshold_stat is ThresholdStat.VARIANCE
        assert p.confidence_style is ConfidenceStyle.VARIANCE_MAP
        assert p.smooth_mode is SmoothMode.RESIDUAL

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Preset().capacity = 10

    def test_replace_revalidates(self):
        with pytest.raises(ConfigError):
            dataclasses.replace(PRESETS["default"], min_samples=500)

    def test_named_presets(self):
        assert set(PRESETS) == {"default", "classic", "residual", "residual_relaxed"}
        classic = get_preset("classic")
        assert classic.threshold_stat is ThresholdStat.VARIANCE
        assert classic.absolute_compare is True
        assert classic.outlier_rejection is False
        assert get_preset("residual").smooth_window == 7
        assert get_preset("residual").threshold_factor == 0.45
        assert get_preset("residual_relaxed").threshold_factor == 0.4

    def test_unknown_preset(self):
        with pytest.raises(ConfigError):
            get_preset("nope")


# ---------------------------------------------------------------------------
# Estimator tests
# ---------------------------------------------------------------------------

class TestEstimator:

    def test_state_transitions(self):
        e = Estimator(Preset(capacity=10, min_samples=4))
        assert e.state is EstimatorState.IDLE
        e.process_sample(1.0, timestamp=0.0)
        assert e.state is EstimatorState.FILLING
        assert not e.has_enough_samples()
        for i in range(1, 4):
            e.process_sample(1.0, timestamp=i * 0.1)
        assert e.state is EstimatorState.READY
        assert e.has_enough_samples()
        for i in range(4, 30):
            e.process_sample(1.0, timestamp=i * 0.1)
        assert e.state is EstimatorState.READY
        assert e.sample_count == 10

    def test_insufficient_samples_no_result(self):
        e = Estimator()
        t, v = _ppg(seconds=3.0)      # 30 samples < 60
        _feed(e, t, v)
        assert e.try_estimate() is None

    def test_constant_signal_no_result(self):
        e = Estimator()
        for i in range(150):
            e.process_sample(128.0, timestamp=i / 10.0)
        assert e.has_enough_samples()
        assert e.try_estimate() is None

    def test_synthetic_75_bpm(self):
        e = Estimator()
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        result = e.try_estimate()
        assert result is not None
        assert isinstance(result, EstimationResult)
        assert isinstance(result.bpm, int)
        assert 72 <= result.bpm <= 78, f"Expected ~75 BPM, got {result.bpm}"
        assert result.confidence > 0.5, f"Confidence too low: {result.confidence:.2f}"

    def test_deterministic_without_new_samples(self):
        e = Estimator()
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        first = e.try_estimate()
        second = e.try_estimate()
        assert first is not None and second is not None
        assert (first.bpm, first.confidence) == (second.bpm, second.confidence)

    def test_same_input_same_output(self):
        t, v = _ppg(bpm=90.0)
        a, b = Estimator(), Estimator()
        _feed(a, t, v)
        _feed(b, t, v)
        ra, rb = a.try_estimate(), b.try_estimate()
        assert (ra.bpm, ra.confidence) == (rb.bpm, rb.confidence)

    def test_out_of_range_bpm_rejected(self):
        e = Estimator(Preset(min_bpm=45, max_bpm=70))
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        assert e.try_estimate() is None

    def test_zero_time_span_no_result(self):
        e = Estimator()
        _, v = _ppg(bpm=75.0)
        _feed(e, np.zeros(v.size), v)
        assert e.try_estimate() is None

    @pytest.mark.parametrize("bad_ts", [float("inf"), float("nan")])
    def test_non_finite_timestamp_no_result(self, bad_ts):
        e = Estimator()
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        e.process_sample(128.0, timestamp=bad_ts)
        assert e.try_estimate() is None

    def test_reset_is_idempotent(self):
        e = Estimator()
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        assert e.try_estimate() is not None
        e.reset()
        assert e.state is EstimatorState.IDLE
        assert e.has_enough_samples() is False
        assert e.try_estimate() is None
        assert e.sample_count == 0
        assert e.mean is None
        e.reset()
        assert e.has_enough_samples() is False

    def test_eviction_through_estimator(self):
        e = Estimator(Preset(capacity=20, min_samples=5))
        for i in range(35):
            e.process_sample(float(i), timestamp=float(i))
        snap = e.snapshot()
        assert len(snap) == 20
        assert [s.value for s in snap] == [float(i) for i in range(15, 35)]
        assert e.fill_ratio == 1.0

    def test_mean_cache_invalidated_by_new_sample(self):
        e = Estimator(Preset(capacity=4, min_samples=1))
        e.process_sample(2.0, timestamp=0.0)
        e.process_sample(4.0, timestamp=0.1)
        assert e.mean == pytest.approx(3.0)
        e.process_sample(9.0, timestamp=0.2)
        assert e.mean == pytest.approx(5.0)

    def test_clock_used_when_no_timestamp(self):
        clock = itertools.count(start=0.0, step=0.1)
        e = Estimator(clock=lambda: next(clock))
        t, v = _ppg(bpm=75.0)
        for value in v:
            e.process_sample(value)
        stamps = [s.timestamp for s in e.snapshot()]
        assert stamps[0] == pytest.approx(0.0)
        assert stamps[-1] == pytest.approx(14.9)
        result = e.try_estimate()
        assert result is not None
        assert 72 <= result.bpm <= 78
        assert result.timestamp == pytest.approx(15.0)

    def test_result_label(self):
        assert EstimationResult(bpm=70, confidence=0.9, timestamp=0.0).label == "High"
        assert EstimationResult(bpm=70, confidence=0.6, timestamp=0.0).label == "Medium"
        assert EstimationResult(bpm=70, confidence=0.1, timestamp=0.0).label == "Low"


# ---------------------------------------------------------------------------
# Named preset behaviour
# ---------------------------------------------------------------------------

class TestPresetBehaviour:

    @pytest.mark.parametrize("name", ["default", "residual", "residual_relaxed"])
    def test_presets_recover_rate(self, name):
        e = Estimator(get_preset(name))
        t, v = _ppg(bpm=75.0)
        _feed(e, t, v)
        result = e.try_estimate()
        assert result is not None, f"{name} produced no estimate"
        assert 72 <= result.bpm <= 78
        assert 0.0 <= result.confidence <= 1.0

    def test_classic_preset_on_small_pulse(self):
        # The variance threshold grows with amplitude², so use a weak pulse
        e = Estimator(get_preset("classic"))
        t, v = _ppg(bpm=75.0, amplitude=10.0, noise=0.3)
        _feed(e, t, v)
        result = e.try_estimate()
        assert result is not None
        assert 72 <= result.bpm <= 78
        # variance-mapped confidence of a ~5-unit smoothed pulse
        assert 0.0 < result.confidence < 0.5

    def test_classic_preset_rejects_strong_pulse(self):
        e = Estimator(get_preset("classic"))
        t, v = _ppg(bpm=75.0, amplitude=15.0, noise=0.1)
        _feed(e, t, v)
        assert e.try_estimate() is None

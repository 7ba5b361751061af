#!/usr/bin/env python3
"""
PPG Estimator – main entry point.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --preset NAME        Tuning preset (default: default)
    --source SRC         simulate | camera (default: simulate)
    --rate FLOAT         Sample cadence in Hz (default: 10)
    --duration FLOAT     Stop after this many seconds, 0 = run until Ctrl-C
    --capacity INT       Override the preset's window size
    --min-samples INT    Override the preset's minimum sample count
    --heart-rate FLOAT   Simulated pulse rate in BPM (default: 75)
    --noise FLOAT        Simulated noise width (default: 5)
    --seed INT           Simulator noise seed
    --realtime           Pace simulated samples in wall-clock time
    --camera-index INT   OpenCV camera index (default: 0)
    --resolution WxH     Camera resolution (default: 320x240)
    -v / --verbose       Debug logging
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from typing import Iterable, Tuple

from ppg_estimator.camera import CameraSource
from ppg_estimator.estimator import Estimator
from ppg_estimator.presets import PRESETS, ConfigError, get_preset
from ppg_estimator.simulator import PPGSimulator

logger = logging.getLogger("ppg_estimator")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Streaming heart-rate estimation from a PPG-like signal",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--preset", default="default", choices=sorted(PRESETS),
                        help="Tuning preset")
    parser.add_argument("--source", default="simulate", choices=("simulate", "camera"),
                        help="Where samples come from")
    parser.add_argument("--rate", type=float, default=10.0,
                        help="Sample cadence in Hz")
    parser.add_argument("--duration", type=float, default=30.0,
                        help="Run time in seconds (0 = until interrupted)")
    parser.add_argument("--capacity", type=int, default=None,
                        help="Override the preset's window size")
    parser.add_argument("--min-samples", type=int, default=None,
                        help="Override the preset's minimum sample count")
    parser.add_argument("--heart-rate", type=float, default=75.0,
                        help="Simulated pulse rate (BPM)")
    parser.add_argument("--noise", type=float, default=5.0,
                        help="Simulated noise width")
    parser.add_argument("--seed", type=int, default=None,
                        help="Simulator noise seed")
    parser.add_argument("--realtime", action="store_true",
                        help="Pace simulated samples in wall-clock time")
    parser.add_argument("--camera-index", type=int, default=0,
                        help="OpenCV VideoCapture index")
    parser.add_argument("--resolution", default="320x240",
                        help="Camera resolution, e.g. 320x240")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def _simulated_samples(args: argparse.Namespace) -> Iterable[Tuple[float, float]]:
    sim = PPGSimulator(heart_rate=args.heart_rate, noise=args.noise, seed=args.seed)
    duration = args.duration if args.duration > 0 else None
    start = time.monotonic() if args.realtime else 0.0
    for t, value in sim.samples(args.rate, duration, start=start):
        if args.realtime:
            delay = t - time.monotonic()
            if delay > 0:
                time.sleep(delay)
        yield t, value


def _drive(estimator: Estimator, samples: Iterable[Tuple[float, float]],
           rate: float, duration: float) -> None:
    """Push samples and report an estimate roughly once per second."""
    report_every = max(1, int(round(rate)))
    first_ts = None
    for i, (ts, value) in enumerate(samples):
        if first_ts is None:
            first_ts = ts
        estimator.process_sample(value, timestamp=ts)

        if i % report_every == 0:
            result = estimator.try_estimate() if estimator.has_enough_samples() else None
            if result is not None:
                logger.info("BPM=%d  conf=%.2f (%s)  samples=%d",
                            result.bpm, result.confidence, result.label,
                            estimator.sample_count)
            else:
                logger.info("Waiting for signal…  samples=%d/%d",
                            estimator.sample_count, estimator.preset.min_samples)

        if duration > 0 and ts - first_ts >= duration:
            break


def run(args: argparse.Namespace) -> int:
    try:
        preset = get_preset(args.preset)
        overrides = {}
        if args.capacity is not None:
            overrides["capacity"] = args.capacity
        if args.min_samples is not None:
            overrides["min_samples"] = args.min_samples
        if overrides:
            preset = dataclasses.replace(preset, **overrides)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    if args.rate <= 0:
        logger.error("--rate must be positive.")
        return 1

    estimator = Estimator(preset)
    logger.info("Starting estimator – preset=%s source=%s", preset.name, args.source)

    try:
        if args.source == "camera":
            try:
                res_w, res_h = (int(v) for v in args.resolution.lower().split("x"))
            except ValueError:
                logger.error("Invalid --resolution format.  Use WxH, e.g. 320x240.")
                return 1
            with CameraSource(camera_index=args.camera_index,
                              resolution=(res_w, res_h),
                              fps=max(1, int(round(args.rate)))) as camera:
                _drive(estimator, camera.samples(), args.rate, args.duration)
        else:
            _drive(estimator, _simulated_samples(args), args.rate, args.duration)
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")

    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())

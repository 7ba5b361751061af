"""
Camera sample source.

Wraps OpenCV ``VideoCapture`` and reduces each frame to one scalar, the mean
red-channel intensity.  With a fingertip pressed on the lens (and the flash
lit) that value rises and falls with every pulse.

The estimator never sees frames; this module is the only place images are
touched.
"""

from __future__ import annotations

import logging
import time
from typing import Generator, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def mean_red(frame: np.ndarray) -> float:
    """Mean of the red channel of a BGR *frame* (H × W × 3)."""
    return float(np.mean(frame[:, :, 2]))


class CameraSource:
    """
    Parameters
    ----------
    camera_index:
        OpenCV capture device index.
    resolution:
        (width, height) requested from the device.  Low resolutions are
        fine; only the channel mean is used.
    fps:
        Requested capture rate.
    max_failed_reads:
        Consecutive failed reads tolerated before :meth:`samples` stops.
    """

    def __init__(
        self,
        camera_index: int = 0,
        resolution: Tuple[int, int] = (320, 240),
        fps: int = 30,
        max_failed_reads: int = 10,
    ) -> None:
        self.camera_index = camera_index
        self.resolution = resolution
        self.fps = fps
        self.max_failed_reads = max_failed_reads
        self._cap: "cv2.VideoCapture | None" = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            raise RuntimeError(
                f"Cannot open video capture device index={self.camera_index}"
            )
        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        self._cap = cap
        logger.info(
            "Camera opened – index=%d resolution=%s fps=%d",
            self.camera_index, self.resolution, self.fps,
        )

    def close(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Camera closed.")

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def read_value(self) -> float | None:
        """Capture one frame and return its mean red intensity, or None on failure."""
        if self._cap is None:
            raise RuntimeError("Camera is not open.  Call open() first.")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            logger.warning("VideoCapture.read() returned False.")
            return None
        return mean_red(frame)

    def samples(self) -> Generator[Tuple[float, float], None, None]:
        """
        Yield ``(monotonic_timestamp, value)`` pairs until the camera is
        closed or too many reads fail in a row.
        """
        failures = 0
        while self._cap is not None:
            value = self.read_value()
            if value is None:
                failures += 1
                if failures >= self.max_failed_reads:
                    logger.error(
                        "Camera failed %d consecutive reads – aborting.", failures
                    )
                    break
                continue
            failures = 0
            yield time.monotonic(), value

"""
Media processing core
Shared types and subprocess handling for the ffprobe/ffmpeg wrappers
"""

import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Type

from tubely.config.base import settings
from tubely.errors import IngestError, ProcessingTimeout
from tubely.utils.logger import get_logger

logger = get_logger(__name__)

# Absolute tolerance around the 16:9 and 9:16 ratios
ASPECT_RATIO_EPSILON = 0.01
LANDSCAPE_RATIO = 16.0 / 9.0
PORTRAIT_RATIO = 9.0 / 16.0


class Orientation(str, Enum):
    """Orientation class derived from a stream's aspect ratio"""
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True)
class MediaProfile:
    """Playback-relevant geometry of the first video stream"""
    width: int
    height: int
    orientation: Orientation
    codec: Optional[str] = None

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def classify_orientation(width: int, height: int) -> Orientation:
    """Classify a width/height pair as landscape, portrait or other"""
    if width <= 0 or height <= 0:
        return Orientation.OTHER

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < ASPECT_RATIO_EPSILON:
        return Orientation.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < ASPECT_RATIO_EPSILON:
        return Orientation.PORTRAIT
    return Orientation.OTHER


_process_slots = threading.BoundedSemaphore(max(1, settings.MAX_CONCURRENT_PROCESSES))


@contextmanager
def process_slot():
    """Hold one of the MAX_CONCURRENT_PROCESSES media subprocess slots"""
    _process_slots.acquire()
    try:
        yield
    finally:
        _process_slots.release()


def run_media_tool(
    cmd: List[str],
    timeout: int,
    stage: str,
    error_cls: Type[IngestError],
) -> subprocess.CompletedProcess:
    """
    Run an external media tool and translate launch/timeout failures

    Args:
        cmd: Full argument vector, binary first
        timeout: Seconds before the child is killed
        stage: Pipeline stage name reported on failure
        error_cls: Error raised when the tool cannot be started

    Returns:
        The completed process; the caller interprets the exit status
    """
    logger.debug(f"Running {stage} command: {' '.join(cmd)}")
    try:
        with process_slot():
            return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        # subprocess.run kills the child before re-raising
        raise ProcessingTimeout(
            f"{cmd[0]} did not finish within {timeout}s",
            details={"timeout": timeout},
            stage=stage,
        ) from e
    except OSError as e:
        raise error_cls(
            f"Could not start {cmd[0]}: {e}",
            error_code="TOOL_UNAVAILABLE",
            details={"binary": cmd[0]},
        ) from e

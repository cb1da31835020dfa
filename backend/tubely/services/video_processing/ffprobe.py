"""
Media inspection with ffprobe
"""

import json
from typing import Any, Dict, Optional

from tubely.config.base import settings
from tubely.errors import AnalysisError
from tubely.utils.logger import get_logger, log_function_call
from .core import MediaProfile, classify_orientation, run_media_tool

logger = get_logger(__name__)


class MediaInspector:
    """Reads stream geometry from a local media file"""

    def __init__(self, binary: Optional[str] = None, timeout: Optional[int] = None):
        self.binary = binary or settings.FFPROBE_BINARY
        self.timeout = timeout or settings.INSPECT_TIMEOUT

    def build_command(self, path: str) -> list:
        return [
            self.binary,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            path,
        ]

    @log_function_call
    def inspect(self, path: str) -> MediaProfile:
        """
        Probe a file and classify its orientation

        Args:
            path: Local path of the media file

        Returns:
            MediaProfile of the first video stream

        Raises:
            AnalysisError: ffprobe failed, its output was unusable, or there
                is no video stream
            ProcessingTimeout: ffprobe exceeded INSPECT_TIMEOUT
        """
        proc = run_media_tool(self.build_command(path), self.timeout, "inspect", AnalysisError)

        if proc.returncode != 0:
            raise AnalysisError(
                f"ffprobe exited with status {proc.returncode}",
                error_code="PROBE_FAILED",
                details={"returncode": proc.returncode, "stderr": (proc.stderr or "")[-500:]},
            )

        try:
            probe = json.loads(proc.stdout or "")
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Malformed ffprobe output: {e}", error_code="PROBE_MALFORMED") from e

        stream = self._first_video_stream(probe)
        if stream is None:
            raise AnalysisError("File contains no video stream", error_code="NO_VIDEO_STREAM")

        try:
            width = int(stream["width"])
            height = int(stream["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise AnalysisError("Video stream has no usable dimensions", error_code="PROBE_MALFORMED") from e

        if width <= 0 or height <= 0:
            raise AnalysisError(
                f"Invalid video dimensions {width}x{height}",
                error_code="PROBE_MALFORMED",
                details={"width": width, "height": height},
            )

        profile = MediaProfile(
            width=width,
            height=height,
            orientation=classify_orientation(width, height),
            codec=stream.get("codec_name"),
        )
        logger.info(f"Inspected {path}: {width}x{height} ({profile.orientation.value})")
        return profile

    @staticmethod
    def _first_video_stream(probe: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(probe, dict):
            return None
        for stream in probe.get("streams") or []:
            if isinstance(stream, dict) and stream.get("codec_type") == "video":
                return stream
        return None

"""
Fast-start container remux with ffmpeg
"""

import os
from typing import Optional

from tubely.config.base import settings
from tubely.errors import TranscodeError
from tubely.utils.logger import get_logger, log_function_call
from .core import run_media_tool

logger = get_logger(__name__)

PROCESSING_SUFFIX = ".processing"


class ContainerOptimizer:
    """Moves the container index ahead of the sample data, streams untouched"""

    def __init__(self, binary: Optional[str] = None, timeout: Optional[int] = None):
        self.binary = binary or settings.FFMPEG_BINARY
        self.timeout = timeout or settings.OPTIMIZE_TIMEOUT

    @staticmethod
    def output_path_for(path: str) -> str:
        return path + PROCESSING_SUFFIX

    def build_command(self, path: str, output_path: str) -> list:
        return [
            self.binary,
            "-y",
            "-v", "error",
            "-i", path,
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            output_path,
        ]

    @log_function_call
    def optimize(self, path: str) -> str:
        """
        Remux ``path`` into a new fast-start file

        The input file is left untouched. On failure any partial output is
        removed before the error is raised.

        Returns:
            Path of the optimized file

        Raises:
            TranscodeError: ffmpeg failed or wrote no output
            ProcessingTimeout: ffmpeg exceeded OPTIMIZE_TIMEOUT
        """
        output_path = self.output_path_for(path)
        try:
            proc = run_media_tool(
                self.build_command(path, output_path), self.timeout, "optimize", TranscodeError
            )

            if proc.returncode != 0:
                raise TranscodeError(
                    f"ffmpeg exited with status {proc.returncode}",
                    details={"returncode": proc.returncode, "stderr": (proc.stderr or "")[-500:]},
                )

            if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
                raise TranscodeError("ffmpeg produced no output file", error_code="REMUX_NO_OUTPUT")
        except Exception:
            _discard(output_path)
            raise

        logger.info(f"Remuxed {path} for fast start ({os.path.getsize(output_path) / (1024*1024):.1f}MB)")
        return output_path


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial remux output {path}: {e}")

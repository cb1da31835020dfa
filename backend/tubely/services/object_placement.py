"""
Object key derivation and video placement in S3
"""

import secrets

from tubely.models.video import StorageReference
from tubely.services.s3_service import S3Service
from tubely.services.video_processing import Orientation
from tubely.utils.logger import get_logger

logger = get_logger(__name__)

KEY_RANDOM_BYTES = 16
# The remux step always writes an MP4 container
VIDEO_EXTENSION = "mp4"


def generate_object_key(orientation: Orientation, extension: str = VIDEO_EXTENSION) -> str:
    """Random key partitioned by orientation, e.g. ``portrait/<32 hex>.mp4``"""
    return f"{Orientation(orientation).value}/{secrets.token_bytes(KEY_RANDOM_BYTES).hex()}.{extension}"


def place_video(
    storage: S3Service,
    local_path: str,
    content_type: str,
    orientation: Orientation,
) -> StorageReference:
    """
    Upload a processed video under a fresh key

    Every call creates a new object; a retry must discard the previous
    reference rather than call this twice for one upload.
    """
    key = generate_object_key(orientation)
    logger.info(f"Placing {local_path} at {key} ({content_type})")
    return storage.put_file(local_path, key, content_type)

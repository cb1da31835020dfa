"""
Short-lived access URLs for stored videos
"""

from typing import Optional

from tubely.config.base import settings
from tubely.errors import SigningError
from tubely.models.video import StorageReference, VideoRecord, VideoResponse
from tubely.services.s3_service import S3Service
from tubely.utils.logger import get_logger

logger = get_logger(__name__)


def sign_reference(
    storage: S3Service,
    reference: Optional[StorageReference],
    ttl: Optional[int] = None,
) -> str:
    """
    Mint a presigned GET URL for a stored object

    Args:
        storage: Backend used to sign
        reference: Bucket/key of the object
        ttl: Validity in seconds, SIGNED_URL_TTL when omitted

    Raises:
        SigningError: the reference is missing a bucket or key, or the
            backend could not sign
    """
    if reference is None or not reference.bucket or not reference.key:
        raise SigningError("Storage reference is missing a bucket or key", error_code="MALFORMED_REFERENCE")

    expires_in = ttl if ttl is not None else settings.SIGNED_URL_TTL
    if expires_in <= 0:
        raise SigningError(f"Invalid signed URL lifetime: {expires_in}s", error_code="INVALID_TTL")

    return storage.presign_get(reference.bucket, reference.key, expires_in)


def to_video_response(storage: S3Service, record: VideoRecord) -> VideoResponse:
    """Render a record for clients; a signing failure leaves video_url unset"""
    video_url = None
    orientation = None

    if record.video is not None:
        orientation = record.video.orientation
        try:
            video_url = sign_reference(storage, record.video)
        except SigningError as e:
            logger.warning(f"Could not sign media for video {record.id}: {e.error_code} - {e}")

    return VideoResponse(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        description=record.description,
        video_url=video_url,
        orientation=orientation,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )

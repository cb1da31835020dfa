"""
Video ingestion pipeline

validate -> authorize owner -> stage -> inspect -> optimize -> place ->
persist -> respond with a signed URL. Every stage failure is terminal for
the request and every local artifact is removed before the error surfaces.
"""

import os
import tempfile
import uuid
from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional

from tubely.config.base import settings
from tubely.errors import BadRequestError, ForbiddenError, IngestError, RecordError, StagingError
from tubely.models.video import VideoRecord, VideoResponse
from tubely.services.object_placement import place_video
from tubely.services.record_store import RedisRecordStore
from tubely.services.s3_service import S3Service
from tubely.services.url_signer import to_video_response
from tubely.services.video_processing import ContainerOptimizer, MediaInspector
from tubely.utils.logger import LoggerMixin, PerformanceLogger

STAGING_PREFIX = "tubely-upload-"


def parse_media_type(content_type: Optional[str]) -> str:
    """Media type without parameters, e.g. ``Video/MP4; codecs=x`` -> ``video/mp4``"""
    if not content_type or not content_type.strip():
        raise BadRequestError("Missing media type", error_code="MISSING_MEDIA_TYPE")

    media_type = content_type.split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or " " in media_type:
        raise BadRequestError(f"Invalid media type: {content_type}", error_code="INVALID_MEDIA_TYPE")
    return media_type


def format_size_limit(limit: int) -> str:
    """Human-readable upload limit: whole megabytes when exact, bytes otherwise"""
    mb = 1024 * 1024
    if limit >= mb and limit % mb == 0:
        return f"{limit // mb}MB"
    return f"{limit} bytes"


class IngestionService(LoggerMixin):
    """Runs one upload through the pipeline; one instance per request is fine"""

    def __init__(
        self,
        record_store: RedisRecordStore,
        storage: S3Service,
        inspector: Optional[MediaInspector] = None,
        optimizer: Optional[ContainerOptimizer] = None,
        staging_dir: Optional[str] = None,
        max_upload_size: Optional[int] = None,
        allowed_content_types: Optional[List[str]] = None,
        chunk_size: Optional[int] = None,
    ):
        self.record_store = record_store
        self.storage = storage
        self.inspector = inspector or MediaInspector()
        self.optimizer = optimizer or ContainerOptimizer()
        self.staging_dir = staging_dir if staging_dir is not None else settings.STAGING_DIR
        self.max_upload_size = max_upload_size or settings.MAX_UPLOAD_SIZE
        self.allowed_content_types = allowed_content_types or settings.ALLOWED_CONTENT_TYPES
        self.chunk_size = chunk_size or settings.UPLOAD_CHUNK_SIZE

    def validate_content_type(self, content_type: Optional[str]) -> str:
        media_type = parse_media_type(content_type)
        if media_type not in self.allowed_content_types:
            raise BadRequestError(
                f"Unsupported file type: {media_type}",
                error_code="UNSUPPORTED_MEDIA_TYPE",
                details={"allowed": self.allowed_content_types},
            )
        return media_type

    def authorize(self, user_id: uuid.UUID, video_id: uuid.UUID) -> VideoRecord:
        record = self.record_store.get_video(video_id)
        if record.user_id != user_id:
            raise ForbiddenError(
                "You do not own this video",
                details={"video_id": str(video_id)},
            )
        return record

    def ingest(
        self,
        user_id: uuid.UUID,
        video_id: uuid.UUID,
        stream: BinaryIO,
        content_type: Optional[str],
    ) -> VideoResponse:
        """
        Ingest an uploaded video for ``video_id``

        Args:
            user_id: Authenticated caller
            video_id: Target video record
            stream: Readable binary stream with the raw upload
            content_type: Declared media type of the upload part

        Returns:
            The updated record with a freshly signed video URL

        Raises:
            IngestError: the subclass and ``stage`` identify what failed
        """
        perf = PerformanceLogger("ingest")
        perf.start(f"ingest video {video_id}")

        try:
            media_type = self.validate_content_type(content_type)
            record = self.authorize(user_id, video_id)

            with self._staging_area() as artifacts:
                staged_path = self._stage(stream, artifacts, perf)

                profile = self.inspector.inspect(staged_path)

                optimized_path = self.optimizer.optimize(staged_path)
                artifacts.append(optimized_path)
                self._discard(staged_path)

                reference = place_video(self.storage, optimized_path, media_type, profile.orientation)

                try:
                    record = self.record_store.update_video(record.model_copy(update={"video": reference}))
                except RecordError:
                    self.logger.warning(
                        f"Orphaned object {reference.bucket}/{reference.key}: "
                        f"video {video_id} was not updated"
                    )
                    raise
        except IngestError as e:
            self.logger.error(f"Ingestion of video {video_id} failed at {e.stage}: {e.error_code} - {e}")
            raise

        perf.end(f"{profile.width}x{profile.height} {profile.orientation.value} -> {reference.key}")
        return to_video_response(self.storage, record)

    @contextmanager
    def _staging_area(self) -> Iterator[List[str]]:
        """Collects local artifact paths and removes them on exit"""
        artifacts: List[str] = []
        try:
            yield artifacts
        finally:
            for path in artifacts:
                self._discard(path)

    def _stage(self, stream: BinaryIO, artifacts: List[str], perf: PerformanceLogger) -> str:
        """Copy the upload to a local temp file, enforcing MAX_UPLOAD_SIZE"""
        try:
            tmp = tempfile.NamedTemporaryFile(
                prefix=STAGING_PREFIX,
                suffix=".mp4",
                dir=self.staging_dir or None,
                delete=False,
            )
        except OSError as e:
            raise StagingError(f"Couldn't create temporary file: {e}") from e

        artifacts.append(tmp.name)
        total = 0
        with tmp:
            while True:
                try:
                    chunk = stream.read(self.chunk_size)
                except OSError as e:
                    raise StagingError(f"Couldn't read upload stream: {e}") from e
                if not chunk:
                    break

                total += len(chunk)
                if total > self.max_upload_size:
                    raise BadRequestError(
                        f"File too large. Maximum size is {format_size_limit(self.max_upload_size)}.",
                        error_code="UPLOAD_TOO_LARGE",
                    )
                try:
                    tmp.write(chunk)
                except OSError as e:
                    raise StagingError(f"Couldn't save temp file: {e}") from e

        if total == 0:
            raise BadRequestError("Uploaded file is empty", error_code="EMPTY_UPLOAD")

        perf.metric("upload_size", round(total / (1024 * 1024), 2), "MB")
        return tmp.name

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove temporary file {path}: {e}")

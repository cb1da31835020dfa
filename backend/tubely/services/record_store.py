"""
Redis-backed video record store
One JSON document per video plus a per-user index set
"""

import uuid
from typing import List, Optional

import redis
from pydantic import ValidationError

from tubely.config.base import settings
from tubely.errors import RecordError, VideoNotFoundError
from tubely.models.video import VideoRecord, utcnow
from tubely.utils.logger import get_logger

logger = get_logger(__name__)


class RedisRecordStore:
    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis_client = client or redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD or None,
            db=settings.REDIS_DB,
            decode_responses=True
        )

    def is_available(self) -> bool:
        """Ping Redis; used by the health endpoint"""
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    @staticmethod
    def _video_key(video_id: uuid.UUID) -> str:
        return f"video:{video_id}"

    @staticmethod
    def _user_index_key(user_id: uuid.UUID) -> str:
        return f"user_videos:{user_id}"

    def _write(self, record: VideoRecord) -> None:
        try:
            pipe = self.redis_client.pipeline()
            pipe.set(self._video_key(record.id), record.model_dump_json())
            pipe.sadd(self._user_index_key(record.user_id), str(record.id))
            pipe.execute()
        except redis.RedisError as e:
            raise RecordError(f"Failed to write video {record.id}: {e}", details={"video_id": str(record.id)}) from e

    def _decode(self, raw: str, video_id) -> VideoRecord:
        try:
            return VideoRecord.model_validate_json(raw)
        except ValidationError as e:
            raise RecordError(
                f"Stored record for video {video_id} is corrupt",
                error_code="RECORD_CORRUPT",
                details={"video_id": str(video_id)},
                stage="read",
            ) from e

    def create_video(self, user_id: uuid.UUID, title: str, description: str = "") -> VideoRecord:
        record = VideoRecord(user_id=user_id, title=title, description=description)
        self._write(record)
        logger.info(f"Created video {record.id} for user {user_id}")
        return record

    def get_video(self, video_id: uuid.UUID) -> VideoRecord:
        """Fetch one record; VideoNotFoundError when it does not exist"""
        try:
            raw = self.redis_client.get(self._video_key(video_id))
        except redis.RedisError as e:
            raise RecordError(f"Failed to read video {video_id}: {e}", stage="read") from e

        if raw is None:
            raise VideoNotFoundError(f"Video {video_id} not found", details={"video_id": str(video_id)})
        return self._decode(raw, video_id)

    def update_video(self, record: VideoRecord) -> VideoRecord:
        """Overwrite a record; concurrent writers to one id resolve last-write-wins"""
        updated = record.model_copy(update={"updated_at": utcnow()})
        self._write(updated)
        logger.info(f"Updated video {record.id}")
        return updated

    def list_videos(self, user_id: uuid.UUID) -> List[VideoRecord]:
        """All records owned by ``user_id``, newest first"""
        try:
            ids = sorted(self.redis_client.smembers(self._user_index_key(user_id)))
            raws = self.redis_client.mget([self._video_key(vid) for vid in ids]) if ids else []
        except redis.RedisError as e:
            raise RecordError(f"Failed to list videos for user {user_id}: {e}", stage="read") from e

        records = [self._decode(raw, vid) for vid, raw in zip(ids, raws) if raw is not None]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records


record_store = RedisRecordStore()

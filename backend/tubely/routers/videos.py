"""
Video endpoints: record creation, media upload and signed retrieval
"""

import uuid
from typing import AsyncIterator, Mapping

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from tubely.config.base import settings
from tubely.errors import BadRequestError, ForbiddenError
from tubely.models.video import VideoCreate, VideoListResponse, VideoResponse
from tubely.routers.dependencies import (
    get_current_user_id,
    get_ingestion_service,
    get_record_store,
    get_s3_service,
)
from tubely.services.ingestion_service import IngestionService, format_size_limit
from tubely.services.record_store import RedisRecordStore
from tubely.services.s3_service import S3Service
from tubely.services.url_signer import to_video_response
from tubely.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/videos", tags=["Videos"])

VIDEO_FIELD = "video"


def parse_video_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise BadRequestError("Invalid video ID", error_code="INVALID_VIDEO_ID") from e


def check_content_length(headers: Mapping[str, str], limit: int) -> None:
    """Reject a declared body size above ``limit`` before reading it"""
    declared = headers.get("content-length")
    if declared is None:
        return
    try:
        size = int(declared)
    except ValueError as e:
        raise BadRequestError("Invalid Content-Length header", error_code="INVALID_CONTENT_LENGTH") from e
    if size > limit:
        raise BadRequestError(
            f"File too large. Maximum size is {format_size_limit(limit)}.",
            error_code="UPLOAD_TOO_LARGE",
        )


async def limit_body(stream: AsyncIterator[bytes], limit: int) -> AsyncIterator[bytes]:
    """Pass request body chunks through, stopping once more than ``limit`` bytes arrive"""
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if received > limit:
            raise BadRequestError(
                f"File too large. Maximum size is {format_size_limit(limit)}.",
                error_code="UPLOAD_TOO_LARGE",
                details={"received": received},
            )
        yield chunk


async def read_upload_form(request: Request, limit: int) -> FormData:
    """Parse the multipart body without letting it grow past ``limit`` bytes"""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise BadRequestError("Expected a multipart/form-data body", error_code="MALFORMED_BODY")

    parser = MultiPartParser(request.headers, limit_body(request.stream(), limit), max_files=1)
    try:
        return await parser.parse()
    except MultiPartException as e:
        raise BadRequestError(f"Unable to parse multipart body: {e.message}", error_code="MALFORMED_BODY") from e


@router.post("", response_model=VideoResponse, status_code=201)
def create_video(
    payload: VideoCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: RedisRecordStore = Depends(get_record_store),
    storage: S3Service = Depends(get_s3_service),
):
    """Create an empty video record owned by the caller"""
    record = store.create_video(user_id, payload.title, payload.description)
    return to_video_response(storage, record)


@router.get("", response_model=VideoListResponse)
def list_videos(
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: RedisRecordStore = Depends(get_record_store),
    storage: S3Service = Depends(get_s3_service),
):
    videos = [to_video_response(storage, record) for record in store.list_videos(user_id)]
    return VideoListResponse(videos=videos, count=len(videos))


@router.get("/{video_id}", response_model=VideoResponse)
def get_video(
    video_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: RedisRecordStore = Depends(get_record_store),
    storage: S3Service = Depends(get_s3_service),
):
    record = store.get_video(parse_video_id(video_id))
    if record.user_id != user_id:
        raise ForbiddenError("You do not own this video", stage="read")
    return to_video_response(storage, record)


@router.post("/{video_id}/video", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Upload the media for a video: remux for fast start, store, sign"""
    parsed_id = parse_video_id(video_id)
    check_content_length(request.headers, settings.MAX_UPLOAD_SIZE)

    form = await read_upload_form(request, settings.MAX_UPLOAD_SIZE)
    try:
        upload = form.get(VIDEO_FIELD)
        if not isinstance(upload, UploadFile):
            raise BadRequestError(f"Missing '{VIDEO_FIELD}' file field", error_code="MISSING_FILE")

        logger.info(f"Upload for video {parsed_id} from user {user_id}: {upload.filename} ({upload.content_type})")
        # Blocking pipeline (subprocesses, S3) runs on a threadpool worker
        return await run_in_threadpool(
            service.ingest, user_id, parsed_id, upload.file, upload.content_type
        )
    finally:
        await form.close()

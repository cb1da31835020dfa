"""
Tests for the ingestion pipeline: ordering, ownership, cleanup and failure stages
"""

import io
import os
import uuid

import pytest
from botocore.exceptions import EndpointConnectionError

from tubely.errors import (
    AnalysisError,
    BadRequestError,
    ForbiddenError,
    ProcessingTimeout,
    RecordError,
    StagingError,
    StorageError,
    TranscodeError,
    VideoNotFoundError,
)
from tubely.services.ingestion_service import IngestionService, format_size_limit, parse_media_type

from conftest import TEST_BUCKET


def staged_files(staging_dir):
    return sorted(os.listdir(staging_dir))


class TestParseMediaType:

    @pytest.mark.parametrize("value,expected", [
        ("video/mp4", "video/mp4"),
        ("Video/MP4", "video/mp4"),
        ("video/mp4; codecs=avc1", "video/mp4"),
        ("  video/quicktime  ", "video/quicktime"),
    ])
    def test_valid(self, value, expected):
        assert parse_media_type(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "video", "/mp4", "video/", "video mp4/x"])
    def test_invalid(self, value):
        with pytest.raises(BadRequestError):
            parse_media_type(value)


class TestFormatSizeLimit:

    @pytest.mark.parametrize("limit,expected", [
        (1024, "1024 bytes"),
        (1024 * 1024 - 1, "1048575 bytes"),
        (1024 * 1024, "1MB"),
        (1 << 30, "1024MB"),
        (3 * 1024 * 1024 + 1, "3145729 bytes"),
    ])
    def test_never_rounds_down_to_zero(self, limit, expected):
        assert format_size_limit(limit) == expected


class TestIngestSuccess:

    def test_portrait_upload(self, ingestion_service, store, s3_client, owned_video, owner_id,
                             media_tools, staging_dir, sample_video_bytes):
        response = ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert response.orientation == "portrait"
        assert response.video_url.startswith("https://")
        assert media_tools.tools_called() == ["ffprobe", "ffmpeg"]

        # exactly one object, and the record names it
        assert len(s3_client.objects) == 1
        (bucket, key), stored = next(iter(s3_client.objects.items()))
        reference = store.videos[owned_video.id].video
        assert (reference.bucket, reference.key) == (bucket, key) == (TEST_BUCKET, key)
        assert key.startswith("portrait/")
        assert stored["body"] == sample_video_bytes
        assert stored["content_type"] == "video/mp4"

        assert staged_files(staging_dir) == []

    def test_landscape_upload(self, ingestion_service, owned_video, owner_id, media_tools, sample_video_bytes):
        media_tools.width, media_tools.height = 1920, 1080
        response = ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")
        assert response.orientation == "landscape"

    def test_only_media_reference_changes(self, ingestion_service, store, owned_video, owner_id,
                                          media_tools, sample_video_bytes):
        ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")
        updated = store.videos[owned_video.id]
        assert updated.title == owned_video.title
        assert updated.description == owned_video.description
        assert updated.user_id == owned_video.user_id
        assert updated.created_at == owned_video.created_at

    def test_inspects_before_optimizing_the_staged_file(self, ingestion_service, owned_video, owner_id,
                                                        media_tools, sample_video_bytes):
        ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")
        probe_cmd, remux_cmd = media_tools.calls
        assert probe_cmd[-1] == remux_cmd[remux_cmd.index("-i") + 1]

    def test_small_chunks(self, store, storage, staging_dir, owned_video, owner_id, media_tools,
                          s3_client, sample_video_bytes):
        service = IngestionService(store, storage, staging_dir=str(staging_dir), chunk_size=7)
        service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")
        (stored,) = s3_client.objects.values()
        assert stored["body"] == sample_video_bytes


class TestIngestRejections:

    def test_unsupported_media_type_does_no_work(self, ingestion_service, store, s3_client, owned_video,
                                                 owner_id, media_tools, staging_dir, sample_video_bytes):
        with pytest.raises(BadRequestError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "image/png")

        assert exc_info.value.error_code == "UNSUPPORTED_MEDIA_TYPE"
        assert media_tools.calls == []
        assert staged_files(staging_dir) == []
        assert s3_client.objects == {}
        assert store.updates == []

    def test_missing_media_type(self, ingestion_service, owned_video, owner_id, media_tools, sample_video_bytes):
        with pytest.raises(BadRequestError):
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), None)
        assert media_tools.calls == []

    def test_not_owner(self, ingestion_service, store, s3_client, owned_video, media_tools,
                       staging_dir, sample_video_bytes):
        with pytest.raises(ForbiddenError):
            ingestion_service.ingest(uuid.uuid4(), owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert s3_client.objects == {}
        assert store.updates == []
        assert store.videos[owned_video.id].video is None
        assert media_tools.calls == []
        assert staged_files(staging_dir) == []

    def test_unknown_video(self, ingestion_service, owner_id, media_tools, sample_video_bytes):
        with pytest.raises(VideoNotFoundError):
            ingestion_service.ingest(owner_id, uuid.uuid4(), io.BytesIO(sample_video_bytes), "video/mp4")

    def test_oversized_upload(self, store, storage, staging_dir, owned_video, owner_id, media_tools,
                              s3_client, sample_video_bytes):
        service = IngestionService(store, storage, staging_dir=str(staging_dir), max_upload_size=100, chunk_size=64)
        with pytest.raises(BadRequestError) as exc_info:
            service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert exc_info.value.error_code == "UPLOAD_TOO_LARGE"
        assert "Maximum size is 100 bytes." in str(exc_info.value)
        assert media_tools.calls == []
        assert staged_files(staging_dir) == []
        assert s3_client.objects == {}

    def test_empty_upload(self, ingestion_service, owned_video, owner_id, media_tools, staging_dir):
        with pytest.raises(BadRequestError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(b""), "video/mp4")
        assert exc_info.value.error_code == "EMPTY_UPLOAD"
        assert staged_files(staging_dir) == []


class BrokenStream(io.RawIOBase):
    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError("connection reset by peer")


class TestIngestFailures:
    """Every failure is terminal and leaves no local artifact behind"""

    def test_staging_read_error(self, ingestion_service, owned_video, owner_id, media_tools, staging_dir):
        with pytest.raises(StagingError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, BrokenStream(), "video/mp4")
        assert exc_info.value.stage == "stage"
        assert staged_files(staging_dir) == []

    def test_inspect_failure(self, ingestion_service, store, s3_client, owned_video, owner_id,
                             media_tools, staging_dir, sample_video_bytes):
        media_tools.probe_returncode = 1
        with pytest.raises(AnalysisError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert exc_info.value.stage == "inspect"
        assert media_tools.tools_called() == ["ffprobe"]
        assert staged_files(staging_dir) == []
        assert s3_client.objects == {}
        assert store.updates == []

    def test_optimize_failure(self, ingestion_service, store, s3_client, owned_video, owner_id,
                              media_tools, staging_dir, sample_video_bytes):
        media_tools.remux_returncode = 1
        with pytest.raises(TranscodeError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert exc_info.value.stage == "optimize"
        assert staged_files(staging_dir) == []
        assert s3_client.objects == {}
        assert store.updates == []

    @pytest.mark.parametrize("tool,stage", [("ffprobe", "inspect"), ("ffmpeg", "optimize")])
    def test_timeouts(self, ingestion_service, owned_video, owner_id, media_tools, staging_dir,
                      sample_video_bytes, tool, stage):
        media_tools.timeout_on = tool
        with pytest.raises(ProcessingTimeout) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")
        assert exc_info.value.stage == stage
        assert staged_files(staging_dir) == []

    def test_place_failure(self, ingestion_service, store, s3_client, owned_video, owner_id,
                           media_tools, staging_dir, sample_video_bytes):
        s3_client.fail_with = EndpointConnectionError(endpoint_url="https://s3.amazonaws.com")
        with pytest.raises(StorageError):
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert staged_files(staging_dir) == []
        assert store.updates == []
        assert store.videos[owned_video.id].video is None

    def test_persist_failure_leaves_orphan(self, ingestion_service, store, s3_client, owned_video,
                                           owner_id, media_tools, staging_dir, sample_video_bytes):
        store.fail_update = True
        with pytest.raises(RecordError) as exc_info:
            ingestion_service.ingest(owner_id, owned_video.id, io.BytesIO(sample_video_bytes), "video/mp4")

        assert exc_info.value.stage == "persist"
        # no compensation: the uploaded object stays, the record is untouched
        assert len(s3_client.objects) == 1
        assert store.videos[owned_video.id].video is None
        assert staged_files(staging_dir) == []

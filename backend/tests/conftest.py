"""
Pytest configuration and fixtures for testing
"""

import json
import os
import shutil
import subprocess
import uuid

import boto3
import pytest
from botocore.client import Config
from fastapi.testclient import TestClient

from tubely.errors import RecordError, VideoNotFoundError
from tubely.models.video import VideoRecord, utcnow
from tubely.services.auth import create_access_token
from tubely.services.ingestion_service import IngestionService
from tubely.services.s3_service import S3Service

TEST_BUCKET = "tubely-test"


class InMemoryRecordStore:
    """Record store double with the RedisRecordStore interface"""

    def __init__(self):
        self.videos = {}
        self.updates = []
        self.fail_update = False

    def create_video(self, user_id, title, description=""):
        record = VideoRecord(user_id=user_id, title=title, description=description)
        self.videos[record.id] = record
        return record

    def get_video(self, video_id):
        if video_id not in self.videos:
            raise VideoNotFoundError(f"Video {video_id} not found")
        return self.videos[video_id]

    def update_video(self, record):
        if self.fail_update:
            raise RecordError("database is read-only")
        updated = record.model_copy(update={"updated_at": utcnow()})
        self.videos[record.id] = updated
        self.updates.append(updated)
        return updated

    def list_videos(self, user_id):
        return [r for r in self.videos.values() if r.user_id == user_id]


class RecordingS3Client:
    """Captures put_object calls; presigning is done by a real boto3 client"""

    def __init__(self):
        self.objects = {}
        self.fail_with = None
        self._signer = boto3.client(
            "s3",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
            region_name="us-east-1",
            config=Config(signature_version="s3v4"),
        )

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[(Bucket, Key)] = {"body": Body.read(), "content_type": ContentType}
        return {"ETag": '"9b2cf535f27731c974343645a3985328"'}

    def generate_presigned_url(self, *args, **kwargs):
        return self._signer.generate_presigned_url(*args, **kwargs)


class FakeMediaTools:
    """Stands in for subprocess.run when the pipeline calls ffprobe/ffmpeg"""

    def __init__(self):
        self.calls = []
        self.width = 1080
        self.height = 1920
        self.probe_returncode = 0
        self.probe_stdout = None
        self.remux_returncode = 0
        self.remux_writes_output = True
        self.timeout_on = None

    def tools_called(self):
        return [os.path.basename(cmd[0]) for cmd in self.calls]

    def __call__(self, cmd, capture_output=False, text=False, timeout=None, **kwargs):
        self.calls.append(list(cmd))
        tool = os.path.basename(cmd[0])

        if tool == self.timeout_on:
            raise subprocess.TimeoutExpired(cmd, timeout)

        if tool == "ffprobe":
            stdout = self.probe_stdout
            if stdout is None:
                stdout = json.dumps({
                    "streams": [
                        {"index": 0, "codec_type": "audio", "codec_name": "aac"},
                        {"index": 1, "codec_type": "video", "codec_name": "h264",
                         "width": self.width, "height": self.height},
                    ]
                })
            return subprocess.CompletedProcess(cmd, self.probe_returncode, stdout=stdout, stderr="")

        if tool == "ffmpeg":
            source = cmd[cmd.index("-i") + 1]
            output = cmd[-1]
            if self.remux_writes_output:
                shutil.copyfile(source, output)
            stderr = "" if self.remux_returncode == 0 else "moov atom not found"
            return subprocess.CompletedProcess(cmd, self.remux_returncode, stdout="", stderr=stderr)

        raise AssertionError(f"unexpected command: {cmd}")


@pytest.fixture
def media_tools(monkeypatch):
    tools = FakeMediaTools()
    monkeypatch.setattr(subprocess, "run", tools)
    return tools


@pytest.fixture
def s3_client():
    return RecordingS3Client()


@pytest.fixture
def storage(s3_client):
    return S3Service(client=s3_client, bucket=TEST_BUCKET)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def ingestion_service(store, storage, staging_dir):
    return IngestionService(record_store=store, storage=storage, staging_dir=str(staging_dir))


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def owned_video(store, owner_id):
    return store.create_video(owner_id, "Boots vertical", "A vertical clip")


@pytest.fixture
def auth_headers(owner_id):
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def sample_video_bytes():
    """Bytes that look like the start of an MP4; the fake tools never parse them"""
    return b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + os.urandom(4096)


@pytest.fixture
def client(store, storage, ingestion_service):
    """Test client with the record store, S3 and pipeline swapped for doubles"""
    from tubely.main import app
    from tubely.routers.dependencies import get_ingestion_service, get_record_store, get_s3_service

    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_s3_service] = lambda: storage
    app.dependency_overrides[get_ingestion_service] = lambda: ingestion_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

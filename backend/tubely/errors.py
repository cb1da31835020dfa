"""
Error taxonomy for the ingestion pipeline

Every failure surfaced to a client is an IngestError. The class identifies
the cause, ``stage`` identifies where in the pipeline it happened.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class IngestError(Exception):
    """Base exception for ingestion and delivery errors"""

    status_code = 500
    default_code = "INGEST_ERROR"
    default_stage = "ingest"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.stage = stage or self.default_stage
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "stage": self.stage,
            "detail": self.message,
        }


class UnauthenticatedError(IngestError):
    status_code = 401
    default_code = "UNAUTHENTICATED"
    default_stage = "auth"


class ForbiddenError(IngestError):
    status_code = 403
    default_code = "FORBIDDEN"
    default_stage = "authz"


class BadRequestError(IngestError):
    status_code = 400
    default_code = "BAD_REQUEST"
    default_stage = "validate"


class VideoNotFoundError(IngestError):
    status_code = 404
    default_code = "VIDEO_NOT_FOUND"
    default_stage = "read"


class StagingError(IngestError):
    """Local I/O failure while writing the upload to disk"""
    default_code = "STAGING_IO_ERROR"
    default_stage = "stage"


class AnalysisError(IngestError):
    default_code = "ANALYSIS_FAILED"
    default_stage = "inspect"


class TranscodeError(IngestError):
    default_code = "REMUX_FAILED"
    default_stage = "optimize"


class StorageError(IngestError):
    default_code = "STORAGE_FAILED"
    default_stage = "place"


class RecordError(IngestError):
    default_code = "RECORD_STORE_FAILED"
    default_stage = "persist"


class SigningError(IngestError):
    default_code = "SIGNING_FAILED"
    default_stage = "sign"


class ProcessingTimeout(IngestError):
    """A media subprocess exceeded its deadline and was killed"""
    default_code = "TIMEOUT"

"""
FastAPI dependencies shared by the routers
"""

import uuid

from fastapi import Depends, Request

from tubely.services.auth import get_bearer_token, validate_access_token
from tubely.services.ingestion_service import IngestionService
from tubely.services.record_store import RedisRecordStore, record_store
from tubely.services.s3_service import S3Service, s3_service


def get_current_user_id(request: Request) -> uuid.UUID:
    """Authenticated caller from the bearer token"""
    return validate_access_token(get_bearer_token(request.headers))


def get_record_store() -> RedisRecordStore:
    return record_store


def get_s3_service() -> S3Service:
    return s3_service


def get_ingestion_service(
    store: RedisRecordStore = Depends(get_record_store),
    storage: S3Service = Depends(get_s3_service),
) -> IngestionService:
    return IngestionService(record_store=store, storage=storage)

"""
AWS S3 service for video storage and signed retrieval
"""

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional

from tubely.config.base import settings
from tubely.errors import SigningError, StorageError
from tubely.models.video import StorageReference
from tubely.utils.logger import get_logger

logger = get_logger(__name__)


def build_s3_client():
    """Create the boto3 client from settings; retries are left to the caller"""
    return boto3.client(
        's3',
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
        endpoint_url=settings.AWS_ENDPOINT_URL or None,
        config=Config(signature_version='s3v4', retries={'total_max_attempts': 1}),
    )


class S3Service:
    def __init__(self, client=None, bucket: Optional[str] = None):
        self.bucket = bucket if bucket is not None else settings.S3_BUCKET

        if client is not None:
            self.client = client
            self.enabled = bool(self.bucket)
        elif not all([settings.AWS_ACCESS_KEY_ID, settings.AWS_SECRET_ACCESS_KEY, self.bucket]):
            logger.warning("S3 credentials not configured - S3 functionality disabled")
            self.client = None
            self.enabled = False
        else:
            self.client = build_s3_client()
            self.enabled = True

        if self.enabled:
            logger.info(f"S3 service initialized for bucket: {self.bucket}")

    def put_file(self, local_path: str, key: str, content_type: str) -> StorageReference:
        """
        Upload a local file under ``key`` in the configured bucket

        Raises:
            StorageError: S3 is not configured, the file cannot be read, or
                the backend rejected the upload
        """
        if not self.enabled:
            raise StorageError("S3 not configured - cannot upload video", error_code="STORAGE_DISABLED")

        try:
            with open(local_path, 'rb') as body:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise StorageError(
                f"S3 rejected upload of {key}: {code}",
                details={"bucket": self.bucket, "key": key, "code": code},
            ) from e
        except (BotoCoreError, OSError) as e:
            raise StorageError(
                f"Failed to upload {key} to S3: {e}",
                details={"bucket": self.bucket, "key": key},
            ) from e

        logger.info(f"Successfully uploaded file to S3: {self.bucket}/{key}")
        return StorageReference(bucket=self.bucket, key=key)

    def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        """Generate a presigned GET URL for one object"""
        if self.client is None:
            raise SigningError("S3 not configured - cannot generate presigned URL", error_code="STORAGE_DISABLED")

        try:
            url = self.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': bucket, 'Key': key},
                ExpiresIn=expires_in
            )
        except (ClientError, BotoCoreError) as e:
            raise SigningError(f"Failed to generate presigned URL: {e}", details={"key": key}) from e

        logger.debug(f"Generated presigned URL for {key} (expires in {expires_in}s)")
        return url


s3_service = S3Service()

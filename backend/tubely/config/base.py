"""
Base configuration settings
"""

import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Base settings configuration"""

    # Application settings
    APP_NAME: str = "Tubely"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8091
    ALLOWED_ORIGINS_STR: str = "http://localhost:8091,http://127.0.0.1:8091"

    # Redis settings (video record store)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DB: int = 0

    # AWS S3 settings
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET: str = "tubely-videos"
    AWS_ENDPOINT_URL: Optional[str] = None

    # Upload settings
    MAX_UPLOAD_SIZE: int = 1 << 30  # 1GB
    UPLOAD_CHUNK_SIZE: int = 8 * 1024 * 1024  # 8MB
    ALLOWED_CONTENT_TYPES_STR: str = "video/mp4"
    STAGING_DIR: str = ""  # empty -> system temp dir

    # Media tool settings
    FFPROBE_BINARY: str = "ffprobe"
    FFMPEG_BINARY: str = "ffmpeg"
    INSPECT_TIMEOUT: int = 30
    OPTIMIZE_TIMEOUT: int = 300  # 5 minutes
    MAX_CONCURRENT_PROCESSES: int = 4

    # Signed URL settings
    SIGNED_URL_TTL: int = 15 * 60  # 15 minutes

    # Security settings
    JWT_SECRET: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse allowed CORS origins from string"""
        origins_str = os.getenv('ALLOWED_ORIGINS', self.ALLOWED_ORIGINS_STR)
        return [origin.strip() for origin in origins_str.split(',') if origin.strip()]

    @property
    def ALLOWED_CONTENT_TYPES(self) -> List[str]:
        """Parse accepted upload media types from string"""
        types_str = os.getenv('ALLOWED_CONTENT_TYPES', self.ALLOWED_CONTENT_TYPES_STR)
        return [t.strip().lower() for t in types_str.split(',') if t.strip()]

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Create settings instance
settings = Settings()

# core/config.py
from typing import List, Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # API Configuration
    api_title: str = "Storefront API"
    api_version: str = "1.0.0"
    api_prefix: str = Field(default="/api", alias="API_PREFIX")

    # Listener
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")

    # Frontend bundle
    frontend_dir: str = Field(default="public", alias="FRONTEND_DIR")
    frontend_entry: str = Field(default="index.html", alias="FRONTEND_ENTRY")

    # Database (Firestore)
    project_id: str = Field(..., alias="PROJECT_ID")
    firestore_database: Optional[str] = Field(default=None, alias="FIRESTORE_DATABASE")

    # Media storage (S3 / MinIO)
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    aws_s3_region: Optional[str] = Field(default=None, alias="AWS_S3_REGION")
    aws_s3_bucket: Optional[str] = Field(default=None, alias="AWS_S3_BUCKET")
    aws_s3_endpoint_url: Optional[str] = Field(default=None, alias="AWS_S3_ENDPOINT_URL")
    aws_s3_base_url: Optional[str] = Field(default=None, alias="AWS_S3_BASE_URL")

    # Cache
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    redis_connection_timeout: int = Field(default=5, alias="REDIS_CONNECTION_TIMEOUT")
    cache_ttl: int = Field(default=600, alias="CACHE_TTL")

    # Performance Settings
    max_workers: int = Field(default=4, alias="MAX_WORKERS")

    # Metrics
    metrics_namespace: str = Field(default="app", alias="METRICS_NAMESPACE")

    # CORS Settings
    # Comma-separated list
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")

    @field_validator('project_id')
    @classmethod
    def validate_project_id(cls, v):
        if not v or not v.strip():
            raise ValueError("PROJECT_ID is required")
        return v.strip()

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator('max_workers')
    @classmethod
    def validate_max_workers(cls, v):
        if v < 1 or v > 20:
            raise ValueError("MAX_WORKERS must be between 1 and 20")
        return v

    @field_validator('cache_ttl')
    @classmethod
    def validate_cache_ttl(cls, v):
        if v < 60 or v > 86400:  # 1 minute to 24 hours
            raise ValueError("CACHE_TTL must be between 60 and 86400 seconds")
        return v

    @field_validator('api_prefix')
    @classmethod
    def validate_api_prefix(cls, v):
        v = "/" + v.strip().strip("/")
        if v == "/":
            raise ValueError("API_PREFIX must not be the root path")
        return v

    @field_validator('debug', mode='before')
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'on', 'yes')
        return bool(v)

    @property
    def media_configured(self) -> bool:
        return bool(self.aws_s3_bucket)

    def get_allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(',') if origin.strip()]

    def get_redis_config(self) -> dict:
        """Get Redis connection configuration"""
        return {
            "url": self.redis_url,
            "decode_responses": True,
            "socket_connect_timeout": self.redis_connection_timeout,
            "socket_timeout": self.redis_connection_timeout,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }

    def get_s3_config(self) -> dict:
        """Get S3 client configuration"""
        return {
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "region_name": self.aws_s3_region or None,
            "endpoint_url": self.aws_s3_endpoint_url or None,
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()

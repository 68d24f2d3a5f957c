from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    bucket_name: str
    aws_region: str = "us-east-1"
    # S3-совместимое хранилище (localstack, minio)
    s3_endpoint_url: Optional[str] = None

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Максимум параллельных запросов метаданных при листинге
    list_concurrency: int = 16

    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()

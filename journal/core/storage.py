from functools import lru_cache

import boto3

from journal.core.config import settings


@lru_cache(maxsize=1)
def get_s3_client():
    """Клиент S3; один на процесс, boto3-клиенты потокобезопасны"""
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
    )

# src/targetflow/storage/s3.py
"""
Object storage S3-compatível (AWS S3, MinIO, LocalStack).

O cliente boto3 pode ser injetado (testes); caso contrário é criado com
assinatura s3v4 e `endpoint_url` opcional.
"""

from __future__ import annotations

from typing import Any, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from targetflow.core.logging import get_logger

from .base import normalize_key

logger = get_logger(__name__)

_NOT_FOUND = ("NoSuchKey", "404", "NotFound")


class S3Storage:
    """Backend S3, compatível com o protocolo `Storage`."""

    def __init__(
        self,
        *,
        endpoint_url: Optional[str] = None,
        region: str = "us-east-1",
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client: Any = None,
    ):
        self.endpoint_url = endpoint_url
        self.region = region

        if client is None:
            client_kwargs = {
                "service_name": "s3",
                "region_name": region,
                "config": Config(signature_version="s3v4"),
            }
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client(**client_kwargs)

        self.client = client
        logger.info("s3_storage_initialized", endpoint=endpoint_url, region=region)

    def put(self, bucket: str, key: str, data: bytes) -> None:
        key = normalize_key(key)
        self.client.put_object(Bucket=bucket, Key=key, Body=data)
        logger.info("s3_object_written", bucket=bucket, key=key, size=len(data))

    def get(self, bucket: str, key: str) -> bytes:
        key = normalize_key(key)
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in _NOT_FOUND:
                raise FileNotFoundError(f"object not found: s3://{bucket}/{key}") from e
            raise
        return response["Body"].read()

    def exists(self, bucket: str, key: str) -> bool:
        key = normalize_key(key)
        try:
            self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in _NOT_FOUND:
                return False
            raise
        return True

    def delete(self, bucket: str, key: str) -> bool:
        if not self.exists(bucket, key):
            return False
        self.client.delete_object(Bucket=bucket, Key=normalize_key(key))
        logger.info("s3_object_deleted", bucket=bucket, key=key)
        return True

    def list(self, bucket: str, prefix: str = "") -> List[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        keys: List[str] = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return sorted(keys)


__all__ = ["S3Storage"]

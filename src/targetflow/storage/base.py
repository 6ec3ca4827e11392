# src/targetflow/storage/base.py
"""Contrato de object storage (bucket + key → bytes)."""

from __future__ import annotations

from typing import List, Protocol, Tuple, runtime_checkable


@runtime_checkable
class Storage(Protocol):
    def put(self, bucket: str, key: str, data: bytes) -> None: ...

    def get(self, bucket: str, key: str) -> bytes: ...

    def exists(self, bucket: str, key: str) -> bool: ...

    def delete(self, bucket: str, key: str) -> bool: ...

    def list(self, bucket: str, prefix: str = "") -> List[str]: ...


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    """
    Separa `s3://bucket/key/parts` em `(bucket, "key/parts")`.

    Raises:
        ValueError: Se a URI não usar o esquema `s3://` ou não tiver bucket.
    """
    prefix = "s3://"
    if not uri.startswith(prefix):
        raise ValueError(f"not an s3 uri: {uri}")
    rest = uri[len(prefix):]
    bucket, _, key = rest.partition("/")
    if not bucket:
        raise ValueError(f"s3 uri without bucket: {uri}")
    return bucket, key


def normalize_key(key: str) -> str:
    key = key.lstrip("/")
    if not key:
        raise ValueError("storage key must not be empty")
    return key


__all__ = ["Storage", "parse_s3_uri", "normalize_key"]

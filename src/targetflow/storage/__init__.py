# src/targetflow/storage/__init__.py
"""
Object storage do targetflow.

`build_storage(config)` escolhe o backend a partir de `storage.backend`
(`local` ou `s3`).
"""

from __future__ import annotations

from typing import Any, Dict

from .base import Storage, normalize_key, parse_s3_uri
from .local import LocalStorage


def build_storage(config: Dict[str, Any]) -> Any:
    """
    Instancia o backend de storage configurado.

    Raises:
        ValueError: Se `storage.backend` não for suportado.
    """
    cfg = (config or {}).get("storage", {}) or {}
    backend = str(cfg.get("backend", "local")).lower()

    if backend == "local":
        return LocalStorage(cfg.get("root") or ".targetflow/storage")
    if backend == "s3":
        from .s3 import S3Storage

        return S3Storage(
            endpoint_url=cfg.get("endpoint_url"),
            region=str(cfg.get("region") or "us-east-1"),
        )
    raise ValueError(f"unsupported storage backend: {backend}")


__all__ = ["Storage", "LocalStorage", "build_storage", "normalize_key", "parse_s3_uri"]

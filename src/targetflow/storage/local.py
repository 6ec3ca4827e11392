# src/targetflow/storage/local.py
"""Object storage em filesystem local: `<root>/<bucket>/<key>`."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Union

from targetflow.core.logging import get_logger

from .base import normalize_key

logger = get_logger(__name__)


class LocalStorage:
    """Backend local, compatível com o protocolo `Storage`."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path(self, bucket: str, key: str) -> Path:
        if not bucket or "/" in bucket:
            raise ValueError(f"invalid bucket name: {bucket!r}")
        base = (self.root / bucket).resolve()
        path = (base / normalize_key(key)).resolve()
        if base not in path.parents:
            raise ValueError(f"key escapes bucket: {key}")
        return path

    def put(self, bucket: str, key: str, data: bytes) -> None:
        path = self._path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.info("local_object_written", bucket=bucket, key=key, size=len(data))

    def get(self, bucket: str, key: str) -> bytes:
        path = self._path(bucket, key)
        if not path.is_file():
            raise FileNotFoundError(f"object not found: {bucket}/{key}")
        return path.read_bytes()

    def exists(self, bucket: str, key: str) -> bool:
        return self._path(bucket, key).is_file()

    def delete(self, bucket: str, key: str) -> bool:
        path = self._path(bucket, key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list(self, bucket: str, prefix: str = "") -> List[str]:
        base = self.root / bucket
        if not base.exists():
            return []
        keys = (p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file())
        return sorted(k for k in keys if k.startswith(prefix) and not Path(k).name.startswith(".tmp-"))


__all__ = ["LocalStorage"]

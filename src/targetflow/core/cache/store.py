# src/targetflow/core/cache/store.py
"""Memoization Store persistente (v1).

Associa Fingerprint → Result serializado, sobrevivendo a reinícios do
processo, para que reexecutar um pipeline inalterado não recompute nada.

Decisões (v1):
- Formato: joblib (mesmo formato usado para modelos/preprocess)
- Layout determinístico sob `root`:
    objects/<fp[:2]>/<fp>.joblib   resultado serializado
    meta/<fp[:2]>/<fp>.json        metadata (task, digest do valor, bytes, sha256)
    tasks/<task>.json              ponteiro para o fingerprint mais recente da Task
- Escrita atômica (arquivo temporário + os.replace)
- Sobrescrita: no-op se os bytes forem idênticos; caso contrário
  last-write-wins, sem histórico

Limites explícitos:
- Não decide quando recomputar (isso é do Engine)
- Uma única escrita por vez (executor sequencial, single-writer)
"""

from __future__ import annotations

import hashlib
import io
import json
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import joblib

from targetflow.core.engine.fingerprint import value_digest
from targetflow.core.logging import get_logger

logger = get_logger(__name__)


class _Miss:
    """Sinal explícito de cache miss (singleton `MISS`)."""

    _instance: Optional["_Miss"] = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


@dataclass(frozen=True)
class CacheEntry:
    """Entrada memoizada: o Result e sua metadata."""

    fingerprint: str
    value: Any
    value_digest: str
    task: Optional[str] = None
    stored_at: Optional[str] = None


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=".tmp-", suffix=path.suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class MemoizationStore:
    """Store canônica (v1) de resultados memoizados por fingerprint."""

    def __init__(self, *, root: Union[str, Path]):
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def object_path(self, fingerprint: str) -> Path:
        return self.root / "objects" / fingerprint[:2] / f"{fingerprint}.joblib"

    def meta_path(self, fingerprint: str) -> Path:
        return self.root / "meta" / fingerprint[:2] / f"{fingerprint}.json"

    def task_pointer_path(self, task: str) -> Path:
        return self.root / "tasks" / f"{task}.json"

    # ------------------------------------------------------------------
    # Lookup / Store
    # ------------------------------------------------------------------
    def contains(self, fingerprint: str) -> bool:
        return self.object_path(fingerprint).exists()

    def lookup(self, fingerprint: str) -> Union[CacheEntry, _Miss]:
        """Retorna a CacheEntry do fingerprint ou `MISS`."""
        path = self.object_path(fingerprint)
        if not path.exists():
            return MISS

        value = joblib.load(path)
        meta = self._read_meta(fingerprint)
        digest = meta.get("value_digest") or value_digest(value)
        return CacheEntry(
            fingerprint=fingerprint,
            value=value,
            value_digest=digest,
            task=meta.get("task"),
            stored_at=meta.get("stored_at"),
        )

    def store(self, fingerprint: str, result: Any, *, task: Optional[str] = None) -> Dict[str, Any]:
        """Persiste `result` sob `fingerprint`.

        Returns:
            Dict[str, Any]: metadata da entrada, com `written=False` quando a
            escrita foi um no-op (bytes idênticos).
        """
        buf = io.BytesIO()
        joblib.dump(result, buf)
        data = buf.getvalue()

        path = self.object_path(fingerprint)
        written = True
        if path.exists() and path.read_bytes() == data:
            written = False
        else:
            if path.exists():
                logger.info("cache_entry_replaced", fingerprint=fingerprint, task=task)
            _atomic_write(path, data)

        meta = self._read_meta(fingerprint) if not written else {}
        if written or not meta:
            meta = {
                "fingerprint": fingerprint,
                "task": task,
                "value_digest": value_digest(result),
                "bytes": len(data),
                "sha256": hashlib.sha256(data).hexdigest(),
                "stored_at": datetime.now(timezone.utc).isoformat(),
            }
            _atomic_write(self.meta_path(fingerprint), json.dumps(meta, sort_keys=True).encode("utf-8"))

        if task is not None:
            pointer = {"task": task, "fingerprint": fingerprint}
            _atomic_write(self.task_pointer_path(task), json.dumps(pointer, sort_keys=True).encode("utf-8"))

        return {**meta, "written": written}

    # ------------------------------------------------------------------
    # Inspeção / manutenção
    # ------------------------------------------------------------------
    def value_digest_for(self, fingerprint: str) -> Optional[str]:
        """Digest do valor memoizado sem desserializá-lo (None em miss)."""
        if not self.contains(fingerprint):
            return None
        digest = self._read_meta(fingerprint).get("value_digest")
        if digest is None:
            digest = value_digest(joblib.load(self.object_path(fingerprint)))
        return digest

    def latest_fingerprint(self, task: str) -> Optional[str]:
        """Fingerprint mais recente gravado para `task` (ou None)."""
        path = self.task_pointer_path(task)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8")).get("fingerprint")

    def fingerprints(self) -> Iterator[str]:
        objects = self.root / "objects"
        if not objects.exists():
            return iter(())
        return iter(sorted(p.stem for p in objects.glob("*/*.joblib")))

    def entries(self) -> List[Dict[str, Any]]:
        """Metadata de todas as entradas, ordenadas por fingerprint."""
        return [self._read_meta(fp) or {"fingerprint": fp} for fp in self.fingerprints()]

    def __len__(self) -> int:
        return sum(1 for _ in self.fingerprints())

    def clear(self) -> None:
        """Remove todo o conteúdo do store (equivalente a destroy)."""
        if self.root.exists():
            shutil.rmtree(self.root)
        logger.info("cache_cleared", root=str(self.root))

    def _read_meta(self, fingerprint: str) -> Dict[str, Any]:
        path = self.meta_path(fingerprint)
        if not path.exists():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))


__all__ = ["MISS", "CacheEntry", "MemoizationStore"]

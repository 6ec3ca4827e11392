# src/targetflow/core/engine/fingerprint.py
"""
Fingerprint de Tasks (chave de memoização).

O fingerprint de uma Task é o SHA-256 do JSON canônico de:
    - nome da Task
    - identidade da compute reference (módulo, qualname, digest do código)
    - digest da configuração estática
    - flag with_context
    - digests dos valores upstream, na ordem declarada

Os digests de valores usam `joblib.hash`, que é determinístico para
objetos Python arbitrários (incluindo arrays numpy e DataFrames pandas).

Consequências:
    - mudar o output de uma Task muda o fingerprint de todo o downstream
      transitivo, e de nenhuma outra Task
    - mudar o código de uma Task invalida apenas ela; o downstream só é
      recomputado se o output efetivamente mudar
"""

from __future__ import annotations

import hashlib
import inspect
from typing import Any, Dict, Sequence

import joblib

from targetflow.core.config.hashing import canonical_json
from targetflow.core.pipeline.task import Task


FINGERPRINT_VERSION = "v1"


def value_digest(value: Any) -> str:
    """Digest determinístico de um valor produzido por uma Task."""
    return joblib.hash(value, hash_name="sha1")


def _code_digest(func: Any) -> str:
    target = inspect.unwrap(func)
    try:
        source = inspect.getsource(target)
        return hashlib.sha256(source.encode("utf-8")).hexdigest()
    except (OSError, TypeError):
        pass

    code = getattr(target, "__code__", None)
    if code is not None:
        raw = code.co_code + repr(code.co_consts).encode("utf-8") + repr(code.co_names).encode("utf-8")
        return hashlib.sha256(raw).hexdigest()

    # callables sem código Python (builtins, partials sem fonte)
    return hashlib.sha256(repr(target).encode("utf-8")).hexdigest()


def compute_identity(func: Any) -> Dict[str, str]:
    """Identidade estável da compute reference."""
    target = inspect.unwrap(func)
    return {
        "module": str(getattr(target, "__module__", "") or ""),
        "qualname": str(getattr(target, "__qualname__", type(target).__qualname__)),
        "code": _code_digest(target),
    }


def compute_fingerprint(task: Task, upstream_digests: Sequence[str]) -> str:
    """
    Calcula o fingerprint de `task` a partir dos digests upstream resolvidos.

    Args:
        task (Task): Definição da Task.
        upstream_digests (Sequence[str]): `value_digest` de cada output
            upstream, na ordem de `task.upstream`.

    Returns:
        str: Hash SHA-256 hexadecimal (64 caracteres).
    """
    if len(upstream_digests) != len(task.upstream):
        raise ValueError(
            f"Task '{task.name}' expects {len(task.upstream)} upstream digests, "
            f"got {len(upstream_digests)}"
        )

    document = {
        "version": FINGERPRINT_VERSION,
        "task": task.name,
        "compute": compute_identity(task.compute),
        "config": joblib.hash(dict(task.config), hash_name="sha1"),
        "with_context": bool(task.with_context),
        "upstream": [
            {"name": name, "digest": digest}
            for name, digest in zip(task.upstream, upstream_digests)
        ],
    }
    return hashlib.sha256(canonical_json(document).encode("utf-8")).hexdigest()

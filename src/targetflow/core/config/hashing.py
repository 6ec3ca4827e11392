# src/targetflow/core/config/hashing.py
"""
Hashing canônico do targetflow.

Serialização JSON canônica (chaves ordenadas, separadores compactos,
UTF-8) + SHA-256. Usado para:
    - identidade da configuração efetiva (Run Record)
    - digest da configuração estática de Tasks (fingerprint)

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def canonical_json(obj: Any) -> str:
    """Serializa `obj` em JSON canônico.

    Valores não-JSON (ex.: Path, numpy scalars) caem em `str()`; a saída
    continua determinística para a mesma entrada.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva.

    Args:
        config (Dict[str, Any]): Configuração resolvida.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return hashlib.sha256(canonical_json(config).encode("utf-8")).hexdigest()

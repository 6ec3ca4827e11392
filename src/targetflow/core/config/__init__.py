# src/targetflow/core/config/__init__.py

"""
Camada de configuração do targetflow.

A configuração é um dicionário puro, resolvido a partir de:
    - defaults embutidos (`DEFAULT_CONFIG`) ou um arquivo de defaults
    - um arquivo local de overrides (opcional)

Responsabilidades do pacote:
    - Carregamento de arquivos YAML/JSON
    - Resolução via deep-merge determinístico
    - Hash canônico da configuração efetiva (rastreabilidade no Run Record)

Limites explícitos:
    - Não valida semântica das Tasks
    - Não executa pipeline
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import canonical_json, compute_config_hash
from .loader import DEFAULT_CONFIG, load_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "DEFAULT_CONFIG",
    "canonical_json",
    "compute_config_hash",
    "deep_merge",
    "load_config",
]

# src/targetflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do targetflow.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção aqui representa falha de execução de Task
"""


class ConfigError(Exception):
    """
    Exceção base para erros de carregamento e resolução de configuração.

    Permite capturar genericamente falhas de configuração, separando-as
    das falhas estruturais do pipeline (registry/grafo) e das falhas de
    execução de Tasks.
    """


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de defaults informado explicitamente não existe.

    Quando nenhum arquivo é informado, os defaults embutidos são usados;
    um caminho explícito inexistente, porém, é sempre erro.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um dicionário (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"cache": {"dir": ".targetflow/cache"}}
        - override: {"cache": "off"}

    Nenhum merge parcial é produzido em caso de conflito.
    """

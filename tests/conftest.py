# tests/conftest.py
"""
Fixtures compartilhados para testes do targetflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configuração mínima e determinística (com diretórios em `tmp_path`)
- RunContext controlado
- tracker em memória e Memoization Store isolado por teste
- um contador de chamadas para compute references

Decisões arquiteturais:
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas de import
    - Toda persistência acontece sob `tmp_path`

Invariantes:
    - Nenhuma fixture executa pipeline real
    - Nenhuma fixture compartilha estado entre testes

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica de domínio
"""

from collections import Counter
from datetime import datetime, timezone

import pytest


# =====================================================
# Config
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao uso real do projeto.

    Returns:
        str: Conteúdo YAML representando a configuração padrão.
    """
    return """\
engine:
  fail_fast: true
tasks:
  data:
    best_effort: false
cache:
  dir: .cache/targetflow
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas o que muda)."""
    return """\
engine:
  fail_fast: false
tasks:
  report:
    best_effort: true
"""


@pytest.fixture
def dummy_config(tmp_path) -> dict:
    """
    Configuração mínima já resolvida para exercitar o engine.

    Invariantes:
        - `fail_fast` explicitamente habilitado
        - cache e Run Records isolados em `tmp_path`
    """
    return {
        "engine": {"fail_fast": True, "raise_on_failure": True},
        "tasks": {},
        "cache": {"dir": str(tmp_path / "cache")},
        "run": {"dir": str(tmp_path / "runs")},
        "tracking": {"backend": "memory"},
        "storage": {"backend": "local", "root": str(tmp_path / "storage")},
    }


@pytest.fixture
def dummy_ctx(dummy_config):
    """RunContext determinístico (run_id fixo até o Engine abrir o run)."""
    from targetflow.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


# =====================================================
# Collaborators
# =====================================================

@pytest.fixture
def tracker():
    from targetflow.tracking.memory import InMemoryTracker

    return InMemoryTracker()


@pytest.fixture
def store(tmp_path):
    from targetflow.core.cache.store import MemoizationStore

    return MemoizationStore(root=tmp_path / "cache")


@pytest.fixture
def calls():
    """
    Contador de invocações por nome de Task.

    Compute references de teste chamam `calls[name] += 1`, permitindo
    verificar quantas vezes cada Task foi efetivamente executada.
    """
    return Counter()


@pytest.fixture
def make_engine(store, tracker, dummy_config, tmp_path):
    """
    Factory de Engine com store/tracker compartilhados entre runs.

    Cada chamada cria um RunContext novo, como um processo novo faria,
    mantendo o mesmo Memoization Store.
    """
    from targetflow.core.engine.engine import Engine
    from targetflow.core.pipeline.context import RunContext

    def _make(config=None):
        ctx = RunContext(
            run_id="",
            created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
            config=config if config is not None else dummy_config,
        )
        return Engine(store=store, tracker=tracker, ctx=ctx, record_dir=tmp_path / "runs")

    return _make

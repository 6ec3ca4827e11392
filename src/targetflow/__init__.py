# src/targetflow/__init__.py
"""
targetflow — pipelines declarativos, com dependências rastreadas e memoização.

Um pipeline é um conjunto de Tasks nomeadas, cada uma com uma compute
reference e os nomes das Tasks upstream das quais depende. O framework
constrói o grafo, planeja a ordem de execução e reexecuta apenas o que
ficou desatualizado, registrando parâmetros, métricas e artefatos de
cada run em um tracker explícito.

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de configuração
    - core.pipeline     → Task, registro, contexto de run e de Task
    - core.engine       → grafo, planejamento, fingerprint e execução
    - core.cache        → Memoization Store persistente
    - core.traceability → Run Record
    - tracking          → trackers (memória, MLflow)
    - storage           → object storage (filesystem local, S3)
    - pipeline          → fachada `Pipeline` (make / plan / outdated / read)

Limites explícitos:
    - Não executa Tasks em paralelo
    - Não faz retry de Tasks
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

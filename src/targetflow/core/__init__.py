# src/targetflow/core/__init__.py
"""
Core do targetflow.

Implementação canônica e independente de collaborators externos:

    - core.config       → carregamento, merge e hashing de configuração
    - core.pipeline     → Task, TaskRegistry, contexto de execução
    - core.engine       → grafo, planner, fingerprint e executor
    - core.cache        → Memoization Store persistente
    - core.traceability → Run Record

O core não depende de MLflow, S3 ou scikit-learn: tracking e storage são
injetados pelo chamador.
"""

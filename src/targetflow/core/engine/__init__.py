# src/targetflow/core/engine/__init__.py
"""
Engine do targetflow.

Componentes:
    - graph       → construção e validação do grafo de dependências
    - planner     → ordem topológica determinística (ExecutionPlan)
    - fingerprint → chave de memoização das Tasks
    - session     → Run Record + tracker com finalização garantida
    - engine      → execução em ordem de plano (RunResult)

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - A ordem de execução é determinística para o mesmo registro
    - Cada Task é executada no máximo uma vez por run

Os submódulos são importados diretamente (ex.:
`from targetflow.core.engine.planner import plan_execution`).
"""

# src/targetflow/tutorial/__init__.py
"""
Pipeline de exemplo: regressão de altura a partir da massa de personagens
de Star Wars, com tracking de parâmetros, métricas e artefatos.

Uso:
    from targetflow.pipeline import Pipeline
    from targetflow.tutorial.pipeline import build_registry

    Pipeline(build_registry(config), config).make()
"""

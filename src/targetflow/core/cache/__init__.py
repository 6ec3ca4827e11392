# src/targetflow/core/cache/__init__.py
"""Memoization Store do targetflow."""

from .store import MISS, CacheEntry, MemoizationStore

__all__ = ["MISS", "CacheEntry", "MemoizationStore"]

# tests/core/cache/test_memoization_store.py
"""
Testes do Memoization Store.

Os testes asseguram que:
- `lookup` distingue explicitamente miss (`MISS`) de um valor memoizado
  que seja falsy (None, 0, DataFrame vazio)
- resultados sobrevivem a uma nova instância no mesmo diretório
- reescrever bytes idênticos é um no-op; bytes diferentes substituem
  a entrada (last-write-wins)
- `clear` remove todo o conteúdo
"""

import pandas as pd
import pytest

from targetflow.core.cache.store import MISS, CacheEntry, MemoizationStore
from targetflow.core.engine.fingerprint import value_digest

FP = "ab" + "0" * 62
OTHER_FP = "cd" + "1" * 62


def test_lookup_miss_returns_sentinel(store):
    assert store.lookup(FP) is MISS
    assert not MISS
    assert repr(MISS) == "MISS"
    assert not store.contains(FP)
    assert store.value_digest_for(FP) is None


@pytest.mark.parametrize("falsy", [None, 0, "", []])
def test_falsy_values_are_hits(store, falsy):
    store.store(FP, falsy, task="t")

    entry = store.lookup(FP)

    assert entry is not MISS
    assert isinstance(entry, CacheEntry)
    assert entry.value == falsy


def test_store_persists_value_and_metadata(store):
    df = pd.DataFrame({"name": ["Luke"], "mass": [77.0]})

    meta = store.store(FP, df, task="data")

    assert meta["written"] is True
    assert meta["task"] == "data"
    assert meta["value_digest"] == value_digest(df)
    assert store.object_path(FP).exists()
    assert store.meta_path(FP).exists()

    entry = store.lookup(FP)
    pd.testing.assert_frame_equal(entry.value, df)
    assert entry.task == "data"
    assert entry.value_digest == meta["value_digest"]
    assert store.value_digest_for(FP) == meta["value_digest"]


def test_entries_survive_a_new_instance(tmp_path):
    MemoizationStore(root=tmp_path / "cache").store(FP, {"rmse": 1.5}, task="metrics")

    reopened = MemoizationStore(root=tmp_path / "cache")

    assert reopened.lookup(FP).value == {"rmse": 1.5}
    assert reopened.latest_fingerprint("metrics") == FP
    assert len(reopened) == 1


def test_identical_rewrite_is_a_noop(store):
    first = store.store(FP, [1, 2, 3], task="t")
    second = store.store(FP, [1, 2, 3], task="t")

    assert first["written"] is True
    assert second["written"] is False
    assert second["stored_at"] == first["stored_at"]


def test_different_bytes_replace_the_entry(store):
    """
    Verifica a política last-write-wins: a mesma chave com outro conteúdo
    substitui a entrada anterior, sem histórico.
    """
    store.store(FP, "old", task="t")
    meta = store.store(FP, "new", task="t")

    assert meta["written"] is True
    assert store.lookup(FP).value == "new"
    assert len(store) == 1


def test_task_pointer_tracks_latest_fingerprint(store):
    store.store(FP, 1, task="t")
    store.store(OTHER_FP, 2, task="t")

    assert store.latest_fingerprint("t") == OTHER_FP
    assert store.latest_fingerprint("unknown") is None


def test_entries_and_fingerprints_are_sorted(store):
    store.store(OTHER_FP, "b", task="b")
    store.store(FP, "a", task="a")

    assert list(store.fingerprints()) == [FP, OTHER_FP]
    assert [e["task"] for e in store.entries()] == ["a", "b"]


def test_no_temporary_files_are_left_behind(store):
    store.store(FP, "x", task="t")
    leftovers = [p for p in store.root.rglob("*") if p.name.startswith(".tmp-")]
    assert leftovers == []


def test_clear_removes_everything(store):
    store.store(FP, "x", task="t")
    store.clear()

    assert len(store) == 0
    assert store.lookup(FP) is MISS
    assert not store.root.exists()
    store.clear()

# tests/core/config/test_hashing.py
"""
Testes do hashing canônico de configuração.

Invariantes:
    - dicionários equivalentes (ordem de chaves diferente) → mesmo hash
    - qualquer mudança de valor → hash diferente
    - saída sempre hexadecimal com 64 caracteres
"""

from pathlib import Path

import pytest

from targetflow.core.config.hashing import canonical_json, compute_config_hash


def test_hash_ignores_key_order():
    a = {"engine": {"fail_fast": True}, "tasks": {"x": {"best_effort": False}}}
    b = {"tasks": {"x": {"best_effort": False}}, "engine": {"fail_fast": True}}
    assert compute_config_hash(a) == compute_config_hash(b)


def test_hash_changes_with_values():
    assert compute_config_hash({"seed": 42}) != compute_config_hash({"seed": 43})


def test_hash_format():
    h = compute_config_hash({})
    assert len(h) == 64
    assert set(h) <= set("0123456789abcdef")


def test_non_dict_is_rejected():
    with pytest.raises(TypeError):
        compute_config_hash(["not", "a", "dict"])


def test_canonical_json_is_compact_and_handles_paths():
    assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
    assert canonical_json({"p": Path("data/x.csv")}) == '{"p":"' + str(Path("data/x.csv")) + '"}'

from pathlib import Path

import pytest

from statement_ledger.store import InMemoryStore, KeyValueStore, SqlStore
from tests.helpers.db import bootstrap_sqlite_store, sqlite_url


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path: Path) -> KeyValueStore:
    if request.param == "memory":
        return InMemoryStore()
    return bootstrap_sqlite_store(tmp_path / "kv.db")


def test_put_get_overwrite(any_store):
    assert any_store.get("transactions/a") is None
    any_store.put("transactions/a", {"n": 1, "nested": {"x": [1, 2]}})
    assert any_store.get("transactions/a") == {"n": 1, "nested": {"x": [1, 2]}}
    any_store.put("transactions/a", {"n": 2})
    assert any_store.get("transactions/a") == {"n": 2}


def test_list_by_prefix_in_key_order(any_store):
    any_store.put("mappings/party/b", {"id": "b"})
    any_store.put("mappings/party/a", {"id": "a"})
    any_store.put("mappings/supplier/c", {"id": "c"})
    any_store.put("mappings/party_x/d", {"id": "d"})
    assert [d["id"] for d in any_store.list("mappings/party/")] == ["a", "b"]
    assert [d["id"] for d in any_store.list("mappings/")] == ["a", "b", "d", "c"]


def test_prefix_wildcards_are_literal(any_store):
    any_store.put("mappings/party_x/d", {"id": "d"})
    any_store.put("mappings/partyyx/e", {"id": "e"})
    assert [d["id"] for d in any_store.list("mappings/party_")] == ["d"]


def test_delete(any_store):
    any_store.put("transactions/a", {"n": 1})
    assert any_store.delete("transactions/a") is True
    assert any_store.delete("transactions/a") is False
    assert any_store.get("transactions/a") is None


def test_returned_values_are_copies(any_store):
    any_store.put("k", {"items": [1]})
    got = any_store.get("k")
    got["items"].append(2)
    assert any_store.get("k") == {"items": [1]}


def test_stores_satisfy_protocol(tmp_path: Path):
    assert isinstance(InMemoryStore(), KeyValueStore)
    assert isinstance(SqlStore.from_url(sqlite_url(tmp_path / "p.db"), create_schema=True), KeyValueStore)

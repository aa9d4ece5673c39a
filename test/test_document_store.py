from __future__ import annotations

import json

import pytest

from pytodomcp.store.document import DocumentStore, StoreError


def test_open_returns_one_instance_per_path(store_path):
    a = DocumentStore.open(store_path)
    b = DocumentStore.open(str(store_path))
    assert a is b


def test_open_does_not_create_file(store_path):
    DocumentStore.open(store_path)
    assert not store_path.exists()


def test_missing_file_reloads_as_empty(store):
    store.reload()
    assert store.get("todos") is None
    assert store.keys() == []


def test_set_does_not_persist_until_save(store, store_path):
    store.set("todos", [1, 2])
    assert not store_path.exists()
    store.save()
    assert json.loads(store_path.read_text(encoding="utf-8")) == {"todos": [1, 2]}


def test_save_leaves_no_temp_files(store, tmp_path):
    store.set("k", "v")
    store.save()
    store.set("k", "w")
    store.save()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["store.json"]


def test_save_creates_parent_dirs(tmp_path):
    store = DocumentStore.open(tmp_path / "a" / "b" / "store.json")
    store.set("x", 1)
    store.save()
    assert (tmp_path / "a" / "b" / "store.json").exists()


def test_reload_sees_external_writes(store, store_path):
    store.set("todos", [])
    store.save()
    store_path.write_text(json.dumps({"todos": [{"id": 1}]}), encoding="utf-8")
    store.reload()
    assert store.get("todos") == [{"id": 1}]


def test_reload_rejects_invalid_json(store, store_path):
    store_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        store.reload()


def test_reload_rejects_non_object_root(store, store_path):
    store_path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(StoreError):
        store.reload()


def test_reload_on_directory_is_store_error(tmp_path):
    (tmp_path / "dir.json").mkdir()
    store = DocumentStore.open(tmp_path / "dir.json")
    with pytest.raises(StoreError):
        store.reload()


def test_transaction_saves_on_success(store, store_path):
    with store.transaction() as s:
        s.set("n", 1)
    assert json.loads(store_path.read_text(encoding="utf-8")) == {"n": 1}


def test_transaction_discards_on_error(store, store_path):
    with store.transaction() as s:
        s.set("n", 1)
    with pytest.raises(RuntimeError):
        with store.transaction() as s:
            s.set("n", 2)
            raise RuntimeError("boom")
    assert json.loads(store_path.read_text(encoding="utf-8")) == {"n": 1}
    assert store.get("n") == 1
    assert store.keys() == ["n"]


def test_transaction_rolls_back_when_save_fails(store, store_path, monkeypatch):
    with store.transaction() as s:
        s.set("n", 1)

    def fail_save():
        raise StoreError("disk full")

    monkeypatch.setattr(store, "save", fail_save)
    with pytest.raises(StoreError):
        with store.transaction() as s:
            s.set("n", 2)
            s.set("extra", True)
    assert store.get("n") == 1
    assert store.get("extra") is None
    assert json.loads(store_path.read_text(encoding="utf-8")) == {"n": 1}


def test_transaction_rollback_restores_nested_values(store):
    with store.transaction() as s:
        s.set("todos", [{"id": 1}])
    with pytest.raises(RuntimeError):
        with store.transaction() as s:
            s.get("todos").append({"id": 2})
            raise RuntimeError("boom")
    assert store.get("todos") == [{"id": 1}]

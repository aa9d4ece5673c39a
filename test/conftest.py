from __future__ import annotations

import pytest

from pytodomcp.store.document import DocumentStore
from pytodomcp.tools.builtin import register_builtin_tools
from pytodomcp.tools.dispatcher import Dispatcher
from pytodomcp.tools.registry import ToolRegistry


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "store.json"


@pytest.fixture
def store(store_path):
    return DocumentStore.open(store_path)


@pytest.fixture
def dispatcher(store):
    registry = ToolRegistry()
    register_builtin_tools(registry)
    return Dispatcher(registry=registry, store=store)

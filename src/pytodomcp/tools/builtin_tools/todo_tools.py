from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Iterable

from ...mcp.models import Content, TextContent, json_text
from ...store.document import DocumentStore
from ..base import ToolContext, ToolSpec
from ..schema import Arg, ArgKind

TODOS_KEY = "todos"


@dataclass
class TodoItem:
    id: int
    text: str
    done: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "done": self.done}

    @staticmethod
    def from_dict(d: Any) -> "TodoItem | None":
        if not isinstance(d, dict):
            return None
        tid = d.get("id")
        text = d.get("text")
        done = d.get("done")
        if not isinstance(tid, int) or isinstance(tid, bool) or tid < 0:
            return None
        if not isinstance(text, str) or not isinstance(done, bool):
            return None
        return TodoItem(id=tid, text=text, done=done)


class IdClock:
    """Millisecond timestamps, forced strictly increasing within the process."""

    def __init__(self, now_ms=None):
        self._now_ms = now_ms or (lambda: time.time_ns() // 1_000_000)
        self._last = 0
        self._lock = threading.Lock()

    def next(self, taken: Iterable[int] = ()) -> int:
        taken = set(taken)
        with self._lock:
            candidate = max(self._now_ms(), self._last + 1)
            if candidate in taken:
                # a stored id from a skewed clock or another process
                candidate = max(taken) + 1
            self._last = candidate
            return candidate


_default_clock = IdClock()


def _load(store: DocumentStore) -> list[TodoItem]:
    data = store.get(TODOS_KEY)
    if not isinstance(data, list):
        return []
    items = []
    for x in data:
        it = TodoItem.from_dict(x)
        if it is not None:
            items.append(it)
    return items


def _save(store: DocumentStore, items: list[TodoItem]) -> None:
    store.set(TODOS_KEY, [i.to_dict() for i in items])


class GetTodosTool:
    spec = ToolSpec(name="get_todos", description="Get Todos")

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> list[Content]:
        return [json_text([i.to_dict() for i in _load(ctx.store)])]


class AddTodoTool:
    spec = ToolSpec(
        name="add_todo",
        description="Add Todo",
        args=(Arg("text", ArgKind.STRING),),
        mutates=True,
    )

    def __init__(self, clock: IdClock | None = None):
        self.clock = clock or _default_clock

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> list[Content]:
        items = _load(ctx.store)
        it = TodoItem(id=self.clock.next(i.id for i in items), text=args["text"], done=False)
        items.append(it)
        _save(ctx.store, items)
        return [json_text(it.to_dict())]


class RemoveTodoTool:
    spec = ToolSpec(
        name="remove_todo",
        description="Remove Todo",
        args=(Arg("id", ArgKind.UINT),),
        mutates=True,
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> list[Content]:
        tid = args["id"]
        _save(ctx.store, [i for i in _load(ctx.store) if i.id != tid])
        return [TextContent("")]


class UpdateTodoTool:
    spec = ToolSpec(
        name="update_todo",
        description="Update Todo",
        args=(
            Arg("id", ArgKind.UINT),
            Arg("text", ArgKind.STRING),
            Arg("done", ArgKind.BOOLEAN),
        ),
        mutates=True,
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> list[Content]:
        items = _load(ctx.store)
        idx = next((n for n, x in enumerate(items) if x.id == args["id"]), None)
        if idx is not None:
            items[idx] = TodoItem(id=args["id"], text=args["text"], done=args["done"])
            _save(ctx.store, items)
        # the transaction saves even when the id is unknown
        return [TextContent("")]

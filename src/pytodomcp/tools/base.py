from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Protocol

from ..mcp.models import Content
from ..store.document import DocumentStore
from .schema import Arg, render_schema

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args: tuple[Arg, ...] = ()
    # Mutating tools run inside the store's transaction, others inside a snapshot
    mutates: bool = False

    @property
    def parameters(self) -> dict[str, Any]:
        return render_schema(self.args)

    def to_descriptor(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.parameters}

class Tool(Protocol):
    spec: ToolSpec
    def execute(self, ctx: "ToolContext", args: dict[str, Any]) -> list[Content]: ...

@dataclass
class ToolContext:
    # Already reloaded and locked by the dispatcher
    store: DocumentStore

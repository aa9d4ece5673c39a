from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from .base import Tool, ToolSpec
from .errors import NotFound

@dataclass
class ToolRegistry:
    """Static catalog, fixed once the server starts. Order is registration order."""

    _tools: Dict[str, Tool] = None  # type: ignore

    def __post_init__(self):
        if self._tools is None:
            self._tools = {}

    def register(self, tool: Tool) -> None:
        name = tool.spec.name
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        self._tools[name] = tool

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise NotFound(name)
        return tool

    def list_specs(self) -> list[ToolSpec]:
        return [t.spec for t in self._tools.values()]

from __future__ import annotations

from .registry import ToolRegistry

from .builtin_tools.todo_tools import AddTodoTool, GetTodosTool, RemoveTodoTool, UpdateTodoTool

def register_builtin_tools(registry: ToolRegistry) -> None:
    registry.register(GetTodosTool())
    registry.register(AddTodoTool())
    registry.register(RemoveTodoTool())
    registry.register(UpdateTodoTool())

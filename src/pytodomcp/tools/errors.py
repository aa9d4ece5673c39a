from __future__ import annotations


class ToolError(Exception):
    kind = "ToolError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ToolError):
    kind = "NotFound"

    # what: "tool" | "resource" | "prompt"
    def __init__(self, name: str, what: str = "tool"):
        super().__init__(f"Unknown {what}: {name}")
        self.name = name
        self.what = what


class InvalidParameters(ToolError):
    kind = "InvalidParameters"

    def __init__(self, field: str):
        super().__init__(f"Invalid parameter: {field}")
        self.field = field


class ExecutionError(ToolError):
    kind = "ExecutionError"

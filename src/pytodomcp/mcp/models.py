from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002

DEFAULT_INSTRUCTIONS = (
    "This server manages todos with persistent storage. Retrieve the current list with "
    "`get_todos`, add a new todo with `add_todo`, remove a todo by its ID with `remove_todo`, "
    "and replace an existing todo with `update_todo`."
)


@dataclass
class ServerInfo:
    name: str = "todo"
    version: str = "0.1.0"
    instructions: str = DEFAULT_INSTRUCTIONS


class Content:
    """Tagged payload inside a tool result. Subclasses set `type`."""

    type: ClassVar[str]

    def to_obj(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class TextContent(Content):
    text: str
    type: ClassVar[str] = "text"

    def to_obj(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


def json_text(obj: Any) -> TextContent:
    return TextContent(json.dumps(obj, ensure_ascii=False, separators=(",", ":")))


@dataclass(frozen=True)
class Capabilities:
    """Which method categories are advertised to the peer.

    With enforce=True a disabled category is not served at all; otherwise the
    flags are only advertised.
    """

    tools: bool = True
    resources: bool = False
    prompts: bool = False
    enforce: bool = True

    @staticmethod
    def from_obj(obj: Any) -> "Capabilities | None":
        if not isinstance(obj, dict):
            return None
        vals: dict[str, bool] = {}
        for k in ("tools", "resources", "prompts", "enforce"):
            v = obj.get(k)
            if isinstance(v, bool):
                vals[k] = v
        return Capabilities(**vals)

    def allows(self, category: str) -> bool:
        if not self.enforce:
            return True
        return bool(getattr(self, category, False))

    def advertise(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.tools:
            out["tools"] = {"listChanged": False}
        if self.resources:
            out["resources"] = {"subscribe": False, "listChanged": False}
        if self.prompts:
            out["prompts"] = {"listChanged": False}
        return out


class RpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def make_result(rid: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": rid, "result": result}


def make_error(rid: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    err: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        err["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": rid, "error": err}

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from .errors import InvalidParameters

U64_MAX = 2**64 - 1


class ArgKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    UINT = "uint"  # non-negative u64, advertised as JSON "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"

    @property
    def json_type(self) -> str:
        if self is ArgKind.UINT:
            return "integer"
        return self.value

    def accepts(self, value: Any) -> bool:
        if self is ArgKind.STRING:
            return isinstance(value, str)
        if self is ArgKind.BOOLEAN:
            return isinstance(value, bool)
        if self is ArgKind.OBJECT:
            return isinstance(value, dict)
        # bool is a subclass of int; JSON true is not an integer
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        if self is ArgKind.UINT:
            return 0 <= value <= U64_MAX
        return True


@dataclass(frozen=True)
class Arg:
    name: str
    kind: ArgKind
    required: bool = True


def render_schema(args: Iterable[Arg]) -> dict[str, Any]:
    args = list(args)
    return {
        "type": "object",
        "properties": {a.name: {"type": a.kind.json_type} for a in args},
        "required": [a.name for a in args if a.required],
    }


def validate_args(args: Iterable[Arg], arguments: Any) -> dict[str, Any]:
    """Check presence and kind of each declared argument, in declaration order.

    Raises InvalidParameters naming the first offending field. Optional arguments
    are only type-checked when present. Undeclared keys are passed through.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidParameters("arguments")
    for a in args:
        if a.name not in arguments:
            if a.required:
                raise InvalidParameters(a.name)
            continue
        if not a.kind.accepts(arguments[a.name]):
            raise InvalidParameters(a.name)
    return arguments

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from ..mcp.models import Content
from ..store.document import DocumentStore, StoreError
from .base import ToolContext, ToolSpec
from .errors import ExecutionError, ToolError
from .registry import ToolRegistry
from .schema import validate_args

logger = logging.getLogger(__name__)


@dataclass
class Dispatcher:
    """Routes a tool call to its handler.

    Arguments are validated against the tool's declared args before anything runs.
    Handlers execute with the document already reloaded and locked: mutating tools
    inside `store.transaction()`, read-only tools inside `store.snapshot()`.
    """

    registry: ToolRegistry
    store: DocumentStore

    def list_tools(self) -> list[ToolSpec]:
        return self.registry.list_specs()

    def call_tool(self, name: str, arguments: Any) -> list[Content]:
        tool = self.registry.get(name)
        args = validate_args(tool.spec.args, arguments)

        t0 = time.perf_counter()
        try:
            scope = self.store.transaction() if tool.spec.mutates else self.store.snapshot()
            with scope as store:
                content = tool.execute(ToolContext(store=store), args)
        except StoreError as e:
            logger.warning("tool %s failed: %s", name, e)
            raise ExecutionError(str(e)) from e
        except ToolError as e:
            logger.warning("tool %s failed: %s", name, e.message)
            raise
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        logger.info("tool %s ok (%d ms)", name, elapsed_ms)
        return content

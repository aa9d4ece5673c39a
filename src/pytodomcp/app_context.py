from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config.loader import load_server_config
from .config.models import ServerConfig
from .mcp.server import Server
from .store.document import DocumentStore
from .tools.builtin import register_builtin_tools
from .tools.dispatcher import Dispatcher
from .tools.registry import ToolRegistry


@dataclass
class AppContext:
    config: ServerConfig
    store: DocumentStore
    tools: ToolRegistry
    dispatcher: Dispatcher

    @staticmethod
    def from_config(config: ServerConfig) -> "AppContext":
        store = DocumentStore.open(config.store_path)
        tools = ToolRegistry()
        register_builtin_tools(tools)
        return AppContext(
            config=config,
            store=store,
            tools=tools,
            dispatcher=Dispatcher(registry=tools, store=store),
        )

    @staticmethod
    def from_env(
        cwd: Path | None = None,
        config_path: Path | None = None,
        store_path: Path | None = None,
        framing: str | None = None,
        log_level: str | None = None,
    ) -> "AppContext":
        # CLI overrides win over every config file
        cfg = load_server_config(cwd=cwd, explicit_path=config_path)
        if store_path is not None:
            cfg.store_path = store_path.expanduser().resolve()
        if framing:
            cfg.framing = framing  # type: ignore[assignment]
        if log_level:
            cfg.log_level = log_level.upper()
        return AppContext.from_config(cfg)

    def server(self) -> Server:
        return Server(
            dispatcher=self.dispatcher,
            info=self.config.server_info(),
            capabilities=self.config.capabilities,
        )

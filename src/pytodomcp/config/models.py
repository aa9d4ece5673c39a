from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .. import __version__
from ..mcp.framing import FRAMINGS, Framing
from ..mcp.models import DEFAULT_INSTRUCTIONS, Capabilities, ServerInfo

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    pass


@dataclass
class ServerConfig:
    """Server config loaded from YAML.

    Anything missing or of the wrong type keeps its default.
    """

    name: str = "todo"
    version: str = __version__
    instructions: str = DEFAULT_INSTRUCTIONS
    store_path: Path | None = None  # None -> user data dir
    capabilities: Capabilities = field(default_factory=Capabilities)
    framing: Framing = "auto"
    log_level: str = "INFO"

    loaded_from: list[Path] = field(default_factory=list)

    @staticmethod
    def from_obj(obj: Any) -> "ServerConfig":
        cfg = ServerConfig()
        if not isinstance(obj, dict):
            return cfg

        server = obj.get("server")
        if isinstance(server, dict):
            for key in ("name", "version"):
                v = server.get(key)
                if isinstance(v, str) and v.strip():
                    setattr(cfg, key, v.strip())
            ins = server.get("instructions")
            if isinstance(ins, str) and ins.strip():
                cfg.instructions = ins

        store = obj.get("store")
        if isinstance(store, dict):
            p = store.get("path")
            if isinstance(p, str) and p.strip():
                cfg.store_path = Path(p.strip()).expanduser()

        caps = Capabilities.from_obj(obj.get("capabilities"))
        if caps is not None:
            cfg.capabilities = caps

        transport = obj.get("transport")
        if isinstance(transport, dict):
            fr = transport.get("framing")
            if fr in FRAMINGS:
                cfg.framing = fr

        logging_ = obj.get("logging")
        if isinstance(logging_, dict):
            lvl = logging_.get("level")
            if isinstance(lvl, str) and lvl.strip().upper() in LOG_LEVELS:
                cfg.log_level = lvl.strip().upper()

        return cfg

    def server_info(self) -> ServerInfo:
        return ServerInfo(name=self.name, version=self.version, instructions=self.instructions)

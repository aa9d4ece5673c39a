from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..tools.dispatcher import Dispatcher
from ..tools.errors import ExecutionError, InvalidParameters, NotFound
from .framing import FramingError, StdioTransport
from .models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    PROTOCOL_VERSION,
    SERVER_NOT_INITIALIZED,
    Capabilities,
    RpcError,
    ServerInfo,
    make_error,
    make_result,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_IO_ERROR = 1


class SessionState(str, Enum):
    HANDSHAKE = "handshake"
    SERVING = "serving"
    CLOSED = "closed"


@dataclass
class Server:
    """JSON-RPC session over one transport, serving exactly one peer.

    Requests are handled one at a time and answered in order. Notifications are
    never answered. Only a transport failure ends the session early.
    """

    dispatcher: Dispatcher
    info: ServerInfo = field(default_factory=ServerInfo)
    capabilities: Capabilities = field(default_factory=Capabilities)
    state: SessionState = SessionState.HANDSHAKE

    def __post_init__(self):
        # method -> (capability category or None, handler)
        self._methods: dict[str, tuple[str | None, Callable[[dict[str, Any]], Any]]] = {
            "initialize": (None, self._initialize),
            "ping": (None, lambda params: {}),
            "tools/list": ("tools", self._tools_list),
            "tools/call": ("tools", self._tools_call),
            "resources/list": ("resources", lambda params: {"resources": []}),
            "resources/templates/list": ("resources", lambda params: {"resourceTemplates": []}),
            "resources/read": ("resources", self._resources_read),
            "prompts/list": ("prompts", lambda params: {"prompts": []}),
            "prompts/get": ("prompts", self._prompts_get),
        }

    def run(self, transport: StdioTransport) -> int:
        """Serve until end of input. Returns the process exit status."""
        logger.info("session started (%s %s)", self.info.name, self.info.version)
        try:
            while self.state is not SessionState.CLOSED:
                try:
                    msg = transport.read_message()
                except FramingError as e:
                    logger.warning("undecodable message: %s", e)
                    transport.write_message(make_error(None, PARSE_ERROR, str(e)))
                    continue
                if msg is None:
                    logger.info("input closed, ending session")
                    self.state = SessionState.CLOSED
                    return EXIT_OK
                resp = self.handle(msg)
                if resp is not None:
                    transport.write_message(resp)
        except OSError as e:
            logger.error("transport failure: %s", e)
            self.state = SessionState.CLOSED
            return EXIT_IO_ERROR
        return EXIT_OK

    def handle(self, msg: Any) -> dict[str, Any] | None:
        if isinstance(msg, list):
            return make_error(None, INVALID_REQUEST, "Batch requests are not supported")
        if not isinstance(msg, dict):
            return make_error(None, INVALID_REQUEST, "Request must be a JSON object")

        is_notification = "id" not in msg
        rid = msg.get("id")
        method = msg.get("method")

        if not isinstance(method, str):
            if is_notification or "result" in msg or "error" in msg:
                # a stray response from the peer
                return None
            return make_error(rid, INVALID_REQUEST, "Missing method")

        if is_notification:
            self._notify(method)
            return None

        logger.debug("request %r: %s", rid, method)
        try:
            result = self._dispatch(method, msg.get("params"))
        except RpcError as e:
            return make_error(rid, e.code, e.message, e.data)
        except Exception as e:
            logger.exception("internal error in %s", method)
            return make_error(rid, INTERNAL_ERROR, f"Internal error: {e}")
        return make_result(rid, result)

    def _notify(self, method: str) -> None:
        if method == "notifications/initialized":
            logger.debug("peer acknowledged initialization")
        else:
            logger.debug("ignoring notification %s", method)

    def _dispatch(self, method: str, params: Any) -> Any:
        if self.state is SessionState.HANDSHAKE and method not in {"initialize", "ping"}:
            raise RpcError(SERVER_NOT_INITIALIZED, "Server not initialized")
        entry = self._methods.get(method)
        if entry is None:
            raise RpcError(METHOD_NOT_FOUND, f"Unknown method: {method}")
        category, handler = entry
        if category is not None and not self.capabilities.allows(category):
            raise RpcError(METHOD_NOT_FOUND, f"Method not enabled: {method}")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise RpcError(INVALID_PARAMS, "params must be an object")
        return handler(params)

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        if isinstance(client, dict):
            logger.info("peer: %s %s", client.get("name", "?"), client.get("version", ""))
        self.state = SessionState.SERVING
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": self.capabilities.advertise(),
            "serverInfo": {"name": self.info.name, "version": self.info.version},
            "instructions": self.info.instructions,
        }

    def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [s.to_descriptor() for s in self.dispatcher.list_tools()]}

    def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise RpcError(INVALID_PARAMS, "Missing tool name")
        try:
            content = self.dispatcher.call_tool(name, params.get("arguments"))
        except NotFound as e:
            raise RpcError(INVALID_PARAMS, e.message, {"kind": e.kind, "name": e.name})
        except InvalidParameters as e:
            raise RpcError(INVALID_PARAMS, e.message, {"kind": e.kind, "field": e.field})
        except ExecutionError as e:
            # the call may not have been committed; reported as a tool-level failure
            return {"content": [{"type": "text", "text": e.message}], "isError": True}
        return {"content": [c.to_obj() for c in content], "isError": False}

    def _resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        e = NotFound(str(params.get("uri", "")), "resource")
        raise RpcError(INVALID_PARAMS, e.message, {"kind": e.kind, "uri": e.name})

    def _prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        e = NotFound(str(params.get("name", "")), "prompt")
        raise RpcError(INVALID_PARAMS, e.message, {"kind": e.kind, "name": e.name})

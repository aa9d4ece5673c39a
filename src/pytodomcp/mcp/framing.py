from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO, Literal

logger = logging.getLogger(__name__)

Framing = Literal["auto", "ndjson", "content-length"]
FRAMINGS = ("auto", "ndjson", "content-length")

_CL_PREFIX = b"content-length:"
MAX_HEADER_BYTES = 8192


class FramingError(ValueError):
    def __init__(self, message: str, raw: bytes = b""):
        super().__init__(message)
        self.raw = raw


class StdioTransport:
    """Reads and writes one JSON message at a time over a pair of byte streams.

    Two framings are supported: newline-delimited JSON (the MCP stdio default)
    and LSP-style `Content-Length` headers. In "auto" mode the first non-blank
    input line decides, and responses follow the same framing.
    """

    def __init__(self, reader: BinaryIO, writer: BinaryIO, framing: Framing = "auto"):
        if framing not in FRAMINGS:
            raise ValueError(f"Unknown framing: {framing}")
        self._reader = reader
        self._writer = writer
        self.framing: Framing = framing

    def read_message(self) -> Any | None:
        """Return the next decoded message, or None at end of input."""
        while True:
            line = self._reader.readline()
            if not line:
                return None
            if not line.strip():
                continue
            if self.framing == "auto":
                self.framing = "content-length" if line.lower().startswith(_CL_PREFIX) else "ndjson"
                logger.debug("framing detected: %s", self.framing)
            if self.framing == "ndjson":
                return _decode(line)
            return self._read_framed(line)

    def _read_framed(self, first_line: bytes) -> Any | None:
        headers = [first_line]
        size = len(first_line)
        while True:
            line = self._reader.readline()
            if not line:
                return None
            if not line.strip():
                break
            size += len(line)
            if size > MAX_HEADER_BYTES:
                raise FramingError("Header too large", b"".join(headers))
            headers.append(line)

        # After a rejected header block its body is still unread and runs into the
        # next header line, so the length header is searched for anywhere in a line.
        length: int | None = None
        for h in headers:
            idx = h.lower().find(_CL_PREFIX)
            if idx < 0:
                continue
            if idx > 0:
                logger.warning("skipped %d bytes of unframed input", idx)
            try:
                length = int(h[idx + len(_CL_PREFIX):].strip())
            except ValueError:
                raise FramingError("Invalid Content-Length", h)
        if length is None or length < 0:
            raise FramingError("Missing Content-Length", b"".join(headers))

        body = self._reader.read(length)
        if len(body) < length:
            logger.warning("input ended inside a message body (%d of %d bytes)", len(body), length)
            return None
        return _decode(body)

    def write_message(self, obj: Any) -> None:
        body = json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        if self.framing == "content-length":
            self._writer.write(f"Content-Length: {len(body)}\r\n\r\n".encode("ascii"))
            self._writer.write(body)
        else:
            self._writer.write(body + b"\n")
        self._writer.flush()


def _decode(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FramingError(f"Parse error: {e}", raw)

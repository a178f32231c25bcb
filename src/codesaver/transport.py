"""
File-write round trip over the native messaging protocol

Each message is a 4-byte native-endian length followed by that many bytes of
UTF-8 JSON. Requests are ``{"action": "save", "path", "content"}`` or
``{"action": "ping"}``; responses are ``{"success", "full_path"?, "error"?}``.
"""

import json
import logging
import signal
import struct
import subprocess
import sys
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

import fastjsonschema
import pexpect
from pexpect.popen_spawn import PopenSpawn

from .exceptions import ProtocolError

logger = logging.getLogger(__name__)

HEADER = struct.Struct("=I")
MAX_MESSAGE_SIZE = 64 * 1024 * 1024

_REQUEST_SCHEMA = {
    "type": "object",
    "required": ["action"],
    "oneOf": [
        {
            "properties": {
                "action": {"const": "save"},
                "path": {"type": "string"},
                "content": {"type": "string"},
            },
            "required": ["action", "path", "content"],
        },
        {
            "properties": {"action": {"const": "ping"}},
            "required": ["action"],
        },
    ],
}

_VALIDATE_REQUEST = fastjsonschema.compile(_REQUEST_SCHEMA)


# ---------------------------------------------------------------- framing

def encode_message(message: Dict[str, Any]) -> bytes:
    payload = json.dumps(message).encode("utf-8")
    return HEADER.pack(len(payload)) + payload


def read_frame(stream: BinaryIO) -> Optional[bytes]:
    """Read one frame body; None on a clean EOF before the header."""
    header = stream.read(HEADER.size)
    if not header:
        return None
    if len(header) < HEADER.size:
        raise ProtocolError("Truncated message header")
    (length,) = HEADER.unpack(header)
    if length > MAX_MESSAGE_SIZE:
        raise ProtocolError(f"Message of {length} bytes exceeds limit")
    payload = stream.read(length) if length else b""
    if len(payload) < length:
        raise ProtocolError(f"Truncated message: expected {length} bytes, got {len(payload)}")
    return payload


def write_message(stream: BinaryIO, message: Dict[str, Any]) -> None:
    stream.write(encode_message(message))
    stream.flush()


# ---------------------------------------------------------------- host side

def handle_save(path: str, content: str) -> Dict[str, Any]:
    """Write ``content`` to the absolute ``path``, creating parent directories."""
    target = Path(path)
    if not target.is_absolute():
        return {"success": False, "error": "Path must be absolute"}

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return {"success": False, "error": f"Failed to create directories: {e}"}

    try:
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        return {"success": False, "error": f"Failed to write file: {e}"}

    logger.info(f"Wrote {len(content)} characters to {target}")
    return {"success": True, "full_path": str(target)}


def handle_message(message: Any) -> Dict[str, Any]:
    try:
        _VALIDATE_REQUEST(message)
    except fastjsonschema.JsonSchemaValueException as e:
        return {"success": False, "error": f"Invalid request: {e.message}"}

    if message["action"] == "save":
        return handle_save(message["path"], message["content"])
    return {"success": True}


def serve(stdin: BinaryIO, stdout: BinaryIO) -> int:
    """
    Answer requests until the client closes the channel

    Returns:
        Number of requests handled
    """
    handled = 0
    while True:
        try:
            payload = read_frame(stdin)
        except ProtocolError as e:
            logger.error(f"Closing host channel: {e}")
            break
        if payload is None:
            break

        try:
            message = json.loads(payload.decode("utf-8"))
        except ValueError as e:
            response = {"success": False, "error": f"Malformed message: {e}"}
        else:
            response = handle_message(message)

        write_message(stdout, response)
        handled += 1
    return handled


# ---------------------------------------------------------------- client side

def default_host_command() -> List[str]:
    return [sys.executable, "-m", "codesaver", "host"]


class HostClient:
    """
    Single-shot round trips to the host

    Every request spawns the host, sends one message, reads one response and
    closes the channel. Failures of any kind come back as a response with
    ``success: False``; nothing is retried.
    """

    def __init__(
        self,
        command: Optional[List[str]] = None,
        timeout: float = 10,
        env: Optional[Dict[str, str]] = None,
    ):
        self.command = list(command) if command else default_host_command()
        self.timeout = timeout
        self.env = env

    def save(self, path: str, content: str) -> Dict[str, Any]:
        return self.request({"action": "save", "path": path, "content": content})

    def ping(self) -> bool:
        return self.request({"action": "ping"}).get("success") is True

    def request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        try:
            child = PopenSpawn(self.command, timeout=self.timeout, env=self.env)
        except (OSError, pexpect.ExceptionPexpect) as e:
            return {"success": False, "error": f"Could not start host: {e}"}

        try:
            child.send(encode_message(message))
            response = self._read_response(child)
        except pexpect.TIMEOUT:
            response = {"success": False, "error": f"No response from host within {self.timeout}s"}
        except (pexpect.ExceptionPexpect, OSError, ValueError) as e:
            response = {"success": False, "error": str(e)}
        finally:
            self._close(child)

        logger.debug(f"Host response to {message.get('action')}: {response.get('success')}")
        return response

    def _read_response(self, child: PopenSpawn) -> Dict[str, Any]:
        header = child.read(HEADER.size)
        if len(header) < HEADER.size:
            return {"success": False, "error": "Host closed the connection without responding"}
        (length,) = HEADER.unpack(header)
        payload = child.read(length) if length else b""
        if len(payload) < length:
            return {"success": False, "error": "Host sent a truncated response"}
        response = json.loads(payload.decode("utf-8"))
        if not isinstance(response, dict):
            return {"success": False, "error": "Host sent an unexpected response"}
        return response

    def _close(self, child: PopenSpawn) -> None:
        try:
            child.sendeof()
        except OSError as e:
            logger.debug(f"Host stdin already closed: {e}")
        try:
            child.proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Host did not exit after closing its input; killing it")
            child.kill(signal.SIGKILL if hasattr(signal, "SIGKILL") else signal.SIGTERM)

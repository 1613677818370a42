#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Message framing and JSON encoding over a socket.
#
"""
Message framing and JSON encoding over a socket.

Frame layout::

    +----------------------+---------------------------------------+
    | length (4 bytes, BE) | UTF-8 JSON envelope (length bytes)    |
    +----------------------+---------------------------------------+

Envelope::

    {"type": "SIGN_IN_REQUEST", "payload_kind": "user", "payload": {...}}

``payload_kind`` is one of ``user``, ``strings``, ``error`` or ``none``.
Envelope and payload are validated with the models in :mod:`protocol.models`.
"""

import json
import logging
import socket
import struct
from typing import Any, BinaryIO

from pydantic import ValidationError

from domain.message import Message, MessageType
from domain.user import User
from protocol.models import PAYLOAD_ADAPTERS, Envelope, UserPayload


logger = logging.getLogger(__name__)

HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 64 * 1024


class ProtocolError(Exception):
    """Frame or envelope could not be read; no reply is possible."""
    pass


class MalformedMessageError(ProtocolError):
    """Envelope was read but its type or payload is not understood."""
    pass


def _payload_to_wire(payload) -> tuple[str, Any]:
    if payload is None:
        return "none", None
    if isinstance(payload, User):
        return "user", UserPayload.from_user(payload).to_wire()
    if isinstance(payload, str):
        return "error", payload
    if isinstance(payload, (list, tuple)):
        return "strings", list(payload)
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def encode_message(message: Message) -> bytes:
    """Serialize a message to one length-prefixed frame."""
    kind, payload = _payload_to_wire(message.payload)
    body = json.dumps(
        {"type": message.type.value, "payload_kind": kind, "payload": payload},
        ensure_ascii=False,
    ).encode("utf-8")
    if len(body) > MAX_FRAME_SIZE:
        raise ProtocolError(f"Message too large: {len(body)} bytes (max {MAX_FRAME_SIZE})")
    return HEADER.pack(len(body)) + body


def _payload_from_wire(envelope: Envelope):
    if envelope.payload_kind == "none":
        return None
    try:
        payload = PAYLOAD_ADAPTERS[envelope.payload_kind].validate_python(envelope.payload)
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid {envelope.payload_kind} payload: {e}") from e
    if isinstance(payload, UserPayload):
        return payload.to_user()
    if isinstance(payload, list):
        return tuple(payload)
    return payload


def _is_unreadable(error: ValidationError) -> bool:
    """True if the body is not a JSON object or has no usable 'type'."""
    return any(not detail["loc"] or detail["loc"][0] == "type" for detail in error.errors())


def decode_message(body: bytes) -> Message:
    """
    Parse a frame body (without the length header).

    Raises:
        ProtocolError: Body is not a JSON envelope
        MalformedMessageError: Envelope has an unknown type or a bad payload
    """
    try:
        envelope = Envelope.model_validate_json(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Invalid message body: {e}") from e
    except ValidationError as e:
        if _is_unreadable(e):
            raise ProtocolError(f"Invalid message envelope: {e}") from e
        raise MalformedMessageError(f"Invalid message envelope: {e}") from e

    try:
        message_type = MessageType(envelope.type)
    except ValueError:
        raise MalformedMessageError(f"Unknown message type: {envelope.type!r}") from None

    return Message(message_type, _payload_from_wire(envelope))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        received = 0 if data is None else len(data)
        raise ProtocolError(f"Connection closed after {received} of {size} bytes")
    return data


def read_frame(stream: BinaryIO) -> Message:
    (length,) = HEADER.unpack(_read_exact(stream, HEADER.size))
    if length > MAX_FRAME_SIZE:
        raise ProtocolError(f"Frame too large: {length} bytes (max {MAX_FRAME_SIZE})")
    return decode_message(_read_exact(stream, length))


class MessageChannel:
    """
    Encode/decode channel owning one connected socket.

    Closing the channel closes both stream wrappers and the socket.
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._reader = sock.makefile("rb")
        self._writer = sock.makefile("wb")

    def read_message(self) -> Message:
        """
        Block until one whole message has arrived.

        Raises:
            ProtocolError: Malformed frame or premature end of stream
            OSError: Socket failure or timeout
        """
        return read_frame(self._reader)

    def write_message(self, message: Message) -> None:
        self._writer.write(encode_message(message))
        self._writer.flush()

    def close(self) -> None:
        for resource in (self._writer, self._reader, self.sock):
            try:
                resource.close()
            except OSError as e:
                logger.warning("Error closing %s: %s", type(resource).__name__, e)

    def __enter__(self) -> "MessageChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

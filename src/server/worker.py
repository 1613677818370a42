#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Handler for one accepted client connection.
#
"""
Handler for one accepted client connection.

One cycle per socket::

    OPEN -> READ_REQUEST -> DISPATCH -> WRITE_RESPONSE -> CLOSED

A request that cannot be read closes the connection without a reply. A
request that was read but is not understood is answered with BAD_RESPONSE.
"""

import logging
import socket
from enum import Enum
from typing import Optional, Tuple

from domain.message import Message, MessageType
from protocol.codec import MalformedMessageError, MessageChannel, ProtocolError
from services.dao import Dao


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    OPEN = "OPEN"
    READ_REQUEST = "READ_REQUEST"
    DISPATCH = "DISPATCH"
    WRITE_RESPONSE = "WRITE_RESPONSE"
    CLOSED = "CLOSED"


class Worker:
    """Reads one request, answers it through the Dao and closes the socket."""

    def __init__(self, sock: socket.socket, address: Tuple, dao: Dao, read_timeout: Optional[float] = 30.0):
        self.sock = sock
        self.address = address
        self.dao = dao
        self.read_timeout = read_timeout
        self.state = WorkerState.OPEN
        self._handlers = {
            MessageType.SIGN_UP_REQUEST: dao.sign_up,
            MessageType.SIGN_IN_REQUEST: dao.sign_in,
            MessageType.GET_USER: dao.get_user,
        }

    def run(self) -> None:
        """Thread entry point; never raises."""
        channel = None
        try:
            self.sock.settimeout(self.read_timeout)
            channel = MessageChannel(self.sock)

            self.state = WorkerState.READ_REQUEST
            response = self._read_and_dispatch(channel)
            if response is None:
                return

            self.state = WorkerState.WRITE_RESPONSE
            try:
                channel.write_message(response)
                logger.debug("Answered %s with %s", self.address, response.type.value)
            except (OSError, ProtocolError) as e:
                logger.warning("Could not send response to %s: %s", self.address, e)
        except Exception:
            logger.exception("Unexpected error handling %s", self.address)
        finally:
            self._close(channel)

    def _read_and_dispatch(self, channel: MessageChannel) -> Optional[Message]:
        try:
            request = channel.read_message()
        except MalformedMessageError as e:
            logger.warning("Malformed request from %s: %s", self.address, e)
            self.state = WorkerState.DISPATCH
            return Message(MessageType.BAD_RESPONSE, str(e))
        except (ProtocolError, OSError) as e:
            logger.warning("Dropping connection from %s: %s", self.address, e)
            return None

        self.state = WorkerState.DISPATCH
        logger.debug("Request %s from %s", request.type.value, self.address)
        try:
            return self.dispatch(request)
        except Exception:
            logger.exception("Handler for %s failed", request.type.value)
            return Message(MessageType.BAD_RESPONSE, "internal error")

    def dispatch(self, request: Message) -> Message:
        """Maps one request to exactly one Dao operation."""
        if not request.type.is_request:
            return Message(MessageType.BAD_RESPONSE, f"not a request: {request.type.value}")
        if request.type is MessageType.COUNTRIES_REQUEST:
            return self.dao.get_regions()

        handler = self._handlers[request.type]
        if request.user is None:
            return Message(MessageType.BAD_RESPONSE, "user payload required")
        return handler(request.user)

    def interrupt(self) -> None:
        """Wakes a blocked read by shutting the socket down (used on server stop)."""
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already closed or never connected
            pass

    def _close(self, channel: Optional[MessageChannel]) -> None:
        if channel is not None:
            channel.close()
        else:
            try:
                self.sock.close()
            except OSError as e:
                logger.warning("Error closing socket for %s: %s", self.address, e)
        self.state = WorkerState.CLOSED

"""
Client side of the one-shot exchange: connect, send one message, read one.
"""

import socket

from domain.message import Message
from protocol.codec import MessageChannel


def send_request(host: str, port: int, message: Message, timeout: float = 10.0) -> Message:
    """
    Send a request and return the server's single reply.

    Raises:
        ProtocolError: Server closed the connection without a valid reply
        OSError: Connection failure or timeout
    """
    sock = socket.create_connection((host, port), timeout=timeout)
    with MessageChannel(sock) as channel:
        channel.write_message(message)
        return channel.read_message()

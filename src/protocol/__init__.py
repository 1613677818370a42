#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Wire protocol for the one-shot request/response exchange.
#
"""
Wire protocol for the one-shot request/response exchange.
"""

from .codec import (
    MAX_FRAME_SIZE,
    MalformedMessageError,
    MessageChannel,
    ProtocolError,
    decode_message,
    encode_message,
)
from .client import send_request

__all__ = [
    'MAX_FRAME_SIZE',
    'MalformedMessageError',
    'MessageChannel',
    'ProtocolError',
    'decode_message',
    'encode_message',
    'send_request',
]

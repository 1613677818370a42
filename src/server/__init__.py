#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Socket server, per-connection workers and console shutdown trigger.
#
"""
Socket server, per-connection workers and console shutdown trigger.
"""

from .worker import Worker, WorkerState
from .main_server import MainServer, ServerState
from .key_press_detector import KeyPressDetector

__all__ = [
    'Worker',
    'WorkerState',
    'MainServer',
    'ServerState',
    'KeyPressDetector'
]

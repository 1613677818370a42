#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Fixed-size MySQL connection pool.
#
"""
Fixed-size MySQL connection pool.
"""

from .connection_pool import ConnectionPool, open_connection

__all__ = [
    'ConnectionPool',
    'open_connection'
]

#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Credential hashing module.
#
"""
Credential hashing module.
"""

from .passwords import MAX_PASSWORD_BYTES, PasswordHasher

__all__ = [
    'MAX_PASSWORD_BYTES',
    'PasswordHasher'
]

#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Salted password hashing for stored credentials.
#
"""
Salted password hashing for stored credentials.
"""

import bcrypt


# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """
    bcrypt hashing with a configurable cost factor.
    
    Verification is constant time; an unknown login can be checked against
    a dummy hash so that it costs the same as a wrong password.
    """
    
    def __init__(self, rounds: int = 12):
        """
        Args:
            rounds: bcrypt cost factor (4..31)
        """
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds
        self._dummy_hash = bcrypt.hashpw(b"signserver-dummy", bcrypt.gensalt(rounds))

    @staticmethod
    def _encode(password: str) -> bytes:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")
        return encoded

    def hash(self, password: str) -> str:
        """
        Hashes a password with a fresh salt.

        Raises:
            ValueError: Password exceeds 72 bytes
        """
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(self.rounds)).decode("ascii")

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Checks a password against a stored hash.

        Args:
            password: Candidate password
            hashed: Stored hash, or None for an unknown login

        Returns:
            True only if the hash exists and matches
        """
        try:
            candidate = self._encode(password)
        except ValueError:
            return False

        if hashed is None:
            bcrypt.checkpw(candidate, self._dummy_hash)
            return False

        try:
            return bcrypt.checkpw(candidate, hashed.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            # not a bcrypt hash
            return False

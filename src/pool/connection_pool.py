#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Fixed-size MySQL connection pool shared by all workers.
#
"""
Fixed-size MySQL connection pool shared by all workers.
"""

import logging
import threading
from typing import Any, Callable, List, Optional

import mysql.connector
from mysql.connector import Error

from config import DatabaseSettings


logger = logging.getLogger(__name__)

Connector = Callable[..., Any]


def open_connection(
    settings: DatabaseSettings,
    use_database: bool = True,
    connector: Optional[Connector] = None,
):
    """
    Opens one MySQL connection in autocommit mode.

    Args:
        settings: Database connection settings
        use_database: If False, connect to the server without selecting a schema
        connector: Replacement for mysql.connector.connect

    Raises:
        Error: On DB connection error
    """
    connect = connector or mysql.connector.connect
    return connect(
        host=settings.host,
        port=settings.port,
        user=settings.user,
        password=settings.password,
        database=settings.name if use_database else None,
        autocommit=True,
        use_pure=True,
    )


class ConnectionPool:
    """
    Bounded stack of live MySQL connections.
    
    Connections are opened eagerly. ``acquire`` fails fast with ``None``
    when the stack is empty; the pool never blocks and never grows.
    Every connection is either available or checked out, never both.
    """
    
    def __init__(self, pool_size: int, settings: DatabaseSettings, connector: Optional[Connector] = None):
        """
        Opens up to ``pool_size`` connections.
        
        A connection that cannot be opened is logged and left out, so the
        pool may end up smaller than requested.

        Args:
            pool_size: Connections to open
            settings: Database connection settings
            connector: Replacement for mysql.connector.connect (tests)
        """
        if pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got {pool_size}")

        self.requested_size = pool_size
        self._lock = threading.Lock()
        self._available: List[Any] = []
        self._checked_out: dict[int, Any] = {}
        self._closed = False

        for ordinal in range(1, pool_size + 1):
            try:
                connection = open_connection(settings, connector=connector)
            except Error as e:
                logger.warning("Could not open connection %s of %s: %s", ordinal, pool_size, e)
                continue
            self._available.append(connection)
            logger.info("Connection %s created and added to the pool", ordinal)

        self.size = len(self._available)
        if self.size < pool_size:
            logger.warning("Pool started with %s of %s connections", self.size, pool_size)
    
    def acquire(self):
        """
        Takes the most recently released connection.
        
        Returns:
            A connection, or None if none is available or the pool is closed
        """
        with self._lock:
            if self._closed or not self._available:
                logger.info("No connections available")
                return None
            connection = self._available.pop()
            self._checked_out[id(connection)] = connection
            logger.debug("Connection acquired, %s left", len(self._available))
            return connection
    
    def release(self, connection) -> None:
        """
        Returns a connection to the pool.

        Args:
            connection: A connection obtained from :meth:`acquire`
        """
        close_now = False
        with self._lock:
            if self._checked_out.pop(id(connection), None) is None:
                logger.warning("Ignoring release of a connection that is not checked out")
                return
            if self._closed:
                close_now = True
            else:
                self._available.append(connection)
                logger.debug("Connection released, %s available", len(self._available))

        if close_now:
            self._close_connection(connection)

    def discard(self, connection) -> None:
        """
        Closes a checked-out connection and drops it from the pool.

        For connections left in an unknown state (e.g. a transaction whose
        rollback failed). The pool shrinks by one; nothing replaces it.

        Args:
            connection: A connection obtained from :meth:`acquire`
        """
        with self._lock:
            if self._checked_out.pop(id(connection), None) is None:
                logger.warning("Ignoring discard of a connection that is not checked out")
                return
            self.size -= 1

        self._close_connection(connection)
        logger.warning("Connection discarded, pool size now %s", self.size)

    def close_all(self) -> int:
        """Closes every available connection and returns how many were drained."""
        with self._lock:
            if self._closed:
                return 0
            self._closed = True
            drained = self._available
            self._available = []
            outstanding = len(self._checked_out)

        for connection in drained:
            self._close_connection(connection)

        if outstanding:
            logger.warning("%s connections still checked out; they close on release", outstanding)
        logger.info("All pooled connections closed (%s)", len(drained))
        return len(drained)

    @staticmethod
    def _close_connection(connection) -> None:
        try:
            connection.close()
        except (Error, OSError) as e:
            logger.warning("Error closing connection: %s", e)

    @property
    def available_count(self) -> int:
        with self._lock:
            return len(self._available)

    @property
    def in_use_count(self) -> int:
        with self._lock:
            return len(self._checked_out)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

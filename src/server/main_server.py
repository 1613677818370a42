#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Listening socket, worker threads and coordinated shutdown.
#
"""
Listening socket, worker threads and coordinated shutdown.

States::

    STOPPED -> LISTENING -> STOPPING -> STOPPED

Each accepted socket gets its own :class:`Worker` thread. At most
``max_workers`` run at once; further clients wait in the listen backlog
until a slot frees up. On shutdown the listener is closed, every live
worker is interrupted and joined, and the connection pool is closed once.
"""

import logging
import socket
import threading
from enum import Enum
from typing import Dict, Optional, Tuple

from pool.connection_pool import ConnectionPool
from server.worker import Worker
from services.dao import Dao


logger = logging.getLogger(__name__)

# seconds between checks of the stop flag while waiting for accept or a slot
POLL_INTERVAL = 1.0


class ServerState(Enum):
    STOPPED = "STOPPED"
    LISTENING = "LISTENING"
    STOPPING = "STOPPING"


class MainServer:
    """
    Thread-per-connection socket server.

    Args:
        host: Interface to bind
        port: TCP port (0 picks a free one, see ``address``)
        dao: Data access object handed to every worker
        pool: Connection pool closed on shutdown
        max_workers: Concurrent worker threads allowed
        read_timeout: Seconds a worker waits for the request
        backlog: listen() backlog
    """

    def __init__(
        self,
        host: str,
        port: int,
        dao: Dao,
        pool: ConnectionPool,
        max_workers: int = 64,
        read_timeout: Optional[float] = 30.0,
        backlog: int = 128,
    ):
        self.host = host
        self.port = port
        self.dao = dao
        self.pool = pool
        self.read_timeout = read_timeout
        self.backlog = backlog

        self.state = ServerState.STOPPED
        self._socket: Optional[socket.socket] = None
        self._stop_requested = threading.Event()
        self._listening = threading.Event()
        self._stopped = threading.Event()
        self._slots = threading.BoundedSemaphore(max_workers)
        self._workers: Dict[threading.Thread, Worker] = {}
        self._workers_lock = threading.Lock()
        self._spawned = 0
        self._pool_closed = False

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); only meaningful once listening."""
        if self._socket is None:
            return self.host, self.port
        return self._socket.getsockname()[:2]

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            logger.error("Failed to bind to %s:%s: %s", self.host, self.port, e)
            raise
        sock.listen(self.backlog)
        sock.settimeout(POLL_INTERVAL)
        return sock

    def serve_forever(self) -> None:
        """
        Accepts connections until :meth:`stop` is called or accept fails.

        Blocks. Shutdown (join workers, close pool) runs before returning.

        Raises:
            OSError: The listening socket could not be bound
        """
        self._socket = self._create_socket()
        self.state = ServerState.LISTENING
        self._listening.set()
        logger.info("Server listening on %s:%s", *self.address)

        try:
            self._accept_loop()
        except Exception:
            logger.exception("Accept loop failed")
        finally:
            self._shutdown()

    def _accept_loop(self) -> None:
        while not self._stop_requested.is_set():
            if not self._slots.acquire(timeout=POLL_INTERVAL):
                continue
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                self._slots.release()
                continue
            except OSError as e:
                self._slots.release()
                if not self._stop_requested.is_set():
                    logger.error("Accept error: %s", e)
                break

            logger.info("Client connected from %s:%s", *client_address[:2])
            self._spawn(client_socket, client_address)

    def _spawn(self, client_socket: socket.socket, client_address) -> None:
        worker = Worker(client_socket, client_address, self.dao, self.read_timeout)
        self._spawned += 1
        thread = threading.Thread(
            target=self._run_worker,
            args=(worker,),
            name=f"worker-{self._spawned}",
            daemon=True,
        )
        with self._workers_lock:
            self._prune_finished()
            self._workers[thread] = worker
        try:
            thread.start()
        except RuntimeError:
            logger.exception("Could not start worker thread for %s", client_address)
            with self._workers_lock:
                self._workers.pop(thread, None)
            client_socket.close()
            self._slots.release()

    def _run_worker(self, worker: Worker) -> None:
        try:
            worker.run()
        finally:
            self._slots.release()

    def _prune_finished(self) -> None:
        for thread in [t for t in self._workers if t.ident is not None and not t.is_alive()]:
            del self._workers[thread]

    @property
    def active_workers(self) -> int:
        with self._workers_lock:
            return sum(1 for thread in self._workers if thread.is_alive())

    def stop(self) -> None:
        """Requests shutdown; safe to call from any thread, more than once."""
        if not self._stop_requested.is_set():
            logger.info("Shutdown requested")
        self._stop_requested.set()

    def _shutdown(self) -> None:
        self.state = ServerState.STOPPING
        self._stop_requested.set()

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed

        with self._workers_lock:
            registered = list(self._workers.items())

        for thread, worker in registered:
            if thread.is_alive():
                worker.interrupt()

        for thread, _ in registered:
            if thread.ident is not None:
                self._join(thread)

        self._close_pool()
        self.state = ServerState.STOPPED
        self._stopped.set()
        logger.info("Server stopped")

    @staticmethod
    def _join(thread: threading.Thread) -> None:
        while True:
            try:
                thread.join()
                return
            except KeyboardInterrupt:
                logger.warning("Interrupted while waiting for %s; still waiting", thread.name)

    def _close_pool(self) -> None:
        if self._pool_closed:
            return
        self._pool_closed = True
        self.pool.close_all()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._listening.wait(timeout)

    def wait_until_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

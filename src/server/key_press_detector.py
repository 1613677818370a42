"""
Console trigger: ENTER on stdin asks the server to stop.
"""

import logging
import sys
import threading
from typing import Callable, Optional, TextIO


logger = logging.getLogger(__name__)


class KeyPressDetector(threading.Thread):
    def __init__(self, on_enter: Callable[[], None], stream: Optional[TextIO] = None):
        super().__init__(name="key-press-detector", daemon=True)
        self.on_enter = on_enter
        self.stream = stream or sys.stdin
        self._stopped = threading.Event()

    def run(self) -> None:
        try:
            while not self._stopped.is_set():
                line = self.stream.readline()
                if self._stopped.is_set():
                    return
                if line == "":
                    # stdin closed (daemonized); nothing more to wait for
                    logger.debug("Console input closed")
                    return
                if line.endswith("\n"):
                    logger.info("<ENTER> detected, stopping server")
                    self.on_enter()
                    return
        except (OSError, ValueError) as e:
            logger.error("Error reading console input: %s", e)

    def stop(self) -> None:
        """Ignore further input; a pending read still has to return first."""
        self._stopped.set()

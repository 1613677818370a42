import logging
from contextlib import AbstractContextManager

from mysql.connector import Error


logger = logging.getLogger(__name__)


class UnitOfWork(AbstractContextManager):
   """
   One transaction on one borrowed connection.

   Autocommit is switched off on enter. Work is kept only by an explicit
   ``commit()``; leaving the block any other way rolls back. On exit the
   cursor is closed and autocommit restored, so the connection goes back
   to the pool in the state it was taken out.

   When the rollback on exit fails, autocommit stays off (switching it on
   would commit the open transaction) and ``rollback_failed`` is set. Such
   a connection must be discarded, never returned to the pool.
   """

   def __init__(self, connection):
      self.connection = connection
      self._cursor = None
      self._committed = False
      self.rollback_failed = False

   def __enter__(self):
      self.connection.autocommit = False
      self._cursor = self.connection.cursor()
      return self

   @property
   def cursor(self):
      return self._cursor

   def commit(self):
      self.connection.commit()
      self._committed = True

   def rollback(self) -> bool:
      """Roll back; a failure is logged, never raised."""
      try:
         self.connection.rollback()
         return True
      except Error as e:
         logger.error("Rollback failed: %s", e)
         return False

   def __exit__(self, exc_type, exc, tb):
      try:
         if not self._committed and not self.rollback():
            self.rollback_failed = True
      finally:
         if self._cursor:
            try:
               self._cursor.close()
            except Error as e:
               logger.warning("Error closing cursor: %s", e)
         if self.rollback_failed:
            logger.error("Transaction still open after failed rollback, autocommit left off")
         else:
            try:
               self.connection.autocommit = True
            except Error as e:
               logger.warning("Could not restore autocommit: %s", e)
      return False

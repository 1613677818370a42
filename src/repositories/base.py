from typing import Any, Optional, Sequence


class BaseRepository:
   def __init__(self, uow_or_cursor):
      """Initialize repository with either UnitOfWork or raw DB cursor.

      Args:
         uow_or_cursor: UnitOfWork instance (with .cursor attribute) or a raw DB cursor
      """
      if hasattr(uow_or_cursor, "execute"):
         self.uow = None
         self.cursor = uow_or_cursor
      else:
         self.uow = uow_or_cursor
         self.cursor = uow_or_cursor.cursor

   def _insert(self, sql: str, params: Sequence[Any]) -> Optional[int]:
      """Run an INSERT and return the generated id (None if no row was written)."""
      self.cursor.execute(sql, tuple(params))
      return self.cursor.lastrowid or None

   def _fetch_one(self, sql: str, params: Sequence[Any]):
      self.cursor.execute(sql, tuple(params))
      return self.cursor.fetchone()

   def _fetch_all(self, sql: str, params: Sequence[Any]) -> list:
      self.cursor.execute(sql, tuple(params))
      return list(self.cursor.fetchall())

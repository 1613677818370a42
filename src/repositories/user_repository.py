from typing import Optional

from repositories.base import BaseRepository
from repositories.error_handling import handle_repository_errors
from domain.user import User


INSERT_PARTNER_SQL = (
   """INSERT INTO res_partner
      (company_id, name, display_name, street, zip, city, email)
      VALUES (1, %s, %s, %s, %s, %s, %s)"""
)

INSERT_CREDENTIALS_SQL = (
   """INSERT INTO res_users
      (company_id, partner_id, active, login, password, notification_type)
      VALUES (1, %s, %s, %s, %s, 'email')"""
)

SELECT_BY_LOGIN_SQL = (
   """SELECT u.id, u.login, u.password, u.active, p.name, p.street, p.zip, p.city
      FROM res_users u
      JOIN res_partner p ON u.partner_id = p.id
      WHERE u.login = %s"""
)


class UserRepository(BaseRepository):
   """res_partner + res_users, the two rows behind one User."""

   @handle_repository_errors("insert partner")
   def insert_partner(self, user: User) -> Optional[int]:
      return self._insert(
         INSERT_PARTNER_SQL,
         (user.name, user.name, user.street, user.zip_code, user.city, user.login),
      )

   @handle_repository_errors("insert credentials")
   def insert_credentials(self, partner_id: int, user: User, password_hash: str) -> Optional[int]:
      return self._insert(
         INSERT_CREDENTIALS_SQL,
         (partner_id, bool(user.active), user.login, password_hash),
      )

   @handle_repository_errors("find user by login")
   def find_by_login(self, login: str) -> Optional[dict]:
      """Joined credentials + partner row, or None."""
      row = self._fetch_one(SELECT_BY_LOGIN_SQL, (login,))
      if not row:
         return None
      user_id, row_login, password_hash, active, name, street, zip_code, city = row
      return {
         "user_id": user_id,
         "login": row_login,
         "password_hash": password_hash,
         "active": bool(active),
         "name": name,
         "street": street,
         "zip_code": zip_code,
         "city": city,
      }

from repositories.base import BaseRepository
from repositories.error_handling import handle_repository_errors


SELECT_REGION_NAMES_SQL = (
   """SELECT s.name
      FROM res_country_state s
      JOIN res_country c ON s.country_id = c.id
      WHERE c.code = %s
      ORDER BY s.name"""
)


class RegionRepository(BaseRepository):
   @handle_repository_errors("list regions")
   def list_names(self, country_code: str) -> list[str]:
      return [row[0] for row in self._fetch_all(SELECT_REGION_NAMES_SQL, (country_code,))]

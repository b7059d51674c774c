"""Role persistence."""

from gatekeeper.models import Role
from gatekeeper.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    model = Role
    search_columns = ("name", "description")

    def get_by_code(self, code: str) -> Role | None:
        return self.get_by("code", code)

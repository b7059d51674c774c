"""Permission persistence."""

from gatekeeper.models import Permission
from gatekeeper.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    model = Permission
    search_columns = ("name", "description")

    def get_by_code(self, code: str) -> Permission | None:
        return self.get_by("code", code)

"""User persistence."""

from gatekeeper.models import User
from gatekeeper.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User
    search_columns = ("username", "email")

    def get_by_username(self, username: str) -> User | None:
        return self.get_by("username", username)

"""
User Registry

Owns every registered user, keyed by username. Ids are assigned as
max(existing) + 1, so they are monotonic across a session and across
reloads.
"""

from typing import Optional

from ledger.errors import PasswordMismatchError, UserAlreadyExistsError, UserNotFoundError
from ledger.models.entities import User


class UserRegistry:
    """Usernames are unique and case-sensitive; passwords are opaque."""

    def __init__(self):
        self._users: dict[str, User] = {}

    def __len__(self) -> int:
        return len(self._users)

    def _next_id(self) -> int:
        return max((u.id for u in self._users.values()), default=0) + 1

    def register(self, username: str, password: str) -> User:
        """
        Register a new user.

        Raises:
            UserAlreadyExistsError: If the username is taken
        """
        if username in self._users:
            raise UserAlreadyExistsError(f"User '{username}' already exists")
        user = User(id=self._next_id(), username=username, password=password)
        self._users[username] = user
        return user.model_copy(deep=True)

    def login(self, username: str, password: str) -> User:
        """
        Return a copy of the user when the password matches.

        Raises:
            UserNotFoundError: Unknown username
            PasswordMismatchError: Wrong password
        """
        user = self._users.get(username)
        if user is None:
            raise UserNotFoundError(f"User '{username}' does not exist")
        if user.password != password:
            raise PasswordMismatchError("Incorrect password")
        return user.model_copy(deep=True)

    def find_by_id(self, user_id: int) -> Optional[User]:
        for user in self._users.values():
            if user.id == user_id:
                return user.model_copy(deep=True)
        return None

    def get_preferences(self, user_id: int) -> dict[str, str]:
        user = self.find_by_id(user_id)
        return dict(user.preferences) if user else {}

    def save_preferences(self, user_id: int, preferences: dict[str, str]) -> dict[str, str]:
        """
        Merge preferences into the user's map; existing keys are overwritten.

        Raises:
            UserNotFoundError: Unknown user id
        """
        for user in self._users.values():
            if user.id == user_id:
                user.preferences.update(preferences)
                return dict(user.preferences)
        raise UserNotFoundError(f"User {user_id} does not exist")

    def load(self, users: list[User]) -> None:
        self._users = {u.username: u.model_copy(deep=True) for u in users}

    def dump(self) -> list[User]:
        return [u.model_copy(deep=True) for u in sorted(self._users.values(), key=lambda u: u.id)]

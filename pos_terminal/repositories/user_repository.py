# ==============================================================================
# USER REPOSITORY
# ==============================================================================
# Terminal operators: {user_id: User}
# Password checks and role rules live in UserService, not here.
# ==============================================================================

import uuid
from typing import List, Optional

from pos_terminal.models import Role, User
from pos_terminal.repositories.base import DictRepository


class UserRepository(DictRepository[User]):
    """Repository for users."""

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def get_by_username(self, username: str) -> Optional[User]:
        """
        Finds a user by exact username.

        Args:
            username: Login name

        Returns:
            User or None
        """
        return self.find_first(lambda u: u.username == username)

    def username_taken(self, username: str, exclude_id: Optional[str] = None) -> bool:
        user = self.get_by_username(username)
        return user is not None and user.id != exclude_id

    def get_by_role(self, role: Role) -> List[User]:
        return self.find_all(lambda u: u.role == role)

# ==============================================================================
# USER SERVICE
# ==============================================================================
# Centralizes the business logic for terminal operators.
#
# - Passwords are stored as Werkzeug hashes only
# - Roles are a flat set (admin, manager, cashier): no role implies another.
#   Each route lists the roles it accepts.
# - Validation happens HERE, not in the routes
# ==============================================================================

import logging
from typing import Iterable, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from pos_terminal.errors import AuthenticationError, UserNotFoundError, ValidationError
from pos_terminal.models import Role, User, utcnow
from pos_terminal.repositories import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _parse_role(role) -> Role:
    try:
        return Role(role)
    except ValueError:
        valid = ', '.join(r.value for r in Role)
        raise ValidationError(f"Invalid role '{role}'. Use one of: {valid}")


def _clean_field(value, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip()


class UserService:
    """
    Service for user management.

    Responsibilities:
    - Authentication
    - User CRUD
    - Password changes
    - Role checks
    """

    VALID_ROLES = frozenset(r.value for r in Role)

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(self, username: str, password: str) -> User:
        """
        Checks credentials.

        Args:
            username: Login name
            password: Plain password

        Returns:
            The authenticated User

        Raises:
            AuthenticationError: unknown user or wrong password (same message)
        """
        user = self.user_repo.get_by_username((username or '').strip())
        if user is None or not check_password_hash(user.password_hash, password or ''):
            logger.warning("Failed login for username '%s'", username)
            raise AuthenticationError()
        logger.info("User %s logged in", user.username)
        return user

    def check_permission(self, user_role, required_roles: Iterable) -> bool:
        """
        True when the role is one of the listed roles.

        Args:
            user_role: Role or its string value
            required_roles: Roles accepted by the route
        """
        if user_role is None:
            return False
        try:
            role = Role(user_role)
        except ValueError:
            return False
        return role in {Role(r) for r in required_roles}

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_users(self) -> List[User]:
        return self.user_repo.get_all()

    def get_user(self, user_id: str) -> User:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.user_repo.get_by_username(username)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_user(self, username: str, email: str, role, password: str) -> User:
        """
        Creates a user with a hashed password.

        Raises:
            ValidationError: missing field, taken username, unknown role or
                short password
        """
        username = _clean_field(username or '', 'Username')
        email = _clean_field(email or '', 'Email')
        if not username or not email or not role or not password:
            raise ValidationError("Username, email, role and password are required")

        parsed_role = _parse_role(role)
        self._validate_password(password)

        with self.user_repo.locked():
            if self.user_repo.username_taken(username):
                raise ValidationError(f"Username '{username}' already exists")

            user = User(
                id=self.user_repo.next_id(),
                username=username,
                email=email,
                role=parsed_role,
                password_hash=generate_password_hash(password),
                created_at=utcnow()
            )
            self.user_repo.add(user.id, user)

        logger.info("User created: %s (%s)", username, parsed_role.value)
        return user

    def update_user(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        role=None
    ) -> User:
        """
        Edits username, email or role. Omitted values are kept.

        Raises:
            UserNotFoundError: unknown id
            ValidationError: blank value, taken username or unknown role
        """
        parsed_role = _parse_role(role) if role is not None else None
        if email is not None:
            email = _clean_field(email, 'Email')
            if not email:
                raise ValidationError("Email cannot be blank")

        with self.user_repo.locked():
            user = self.get_user(user_id)

            if username is not None:
                username = _clean_field(username, 'Username')
                if not username:
                    raise ValidationError("Username cannot be blank")
                if self.user_repo.username_taken(username, exclude_id=user_id):
                    raise ValidationError(f"Username '{username}' already exists")
                user.username = username

            if email is not None:
                user.email = email
            if parsed_role is not None:
                user.role = parsed_role

            self.user_repo.update(user_id, user)

        logger.info("User updated: %s", user.username)
        return user

    def delete_user(self, user_id: str) -> User:
        removed = self.user_repo.delete(user_id)
        if removed is None:
            raise UserNotFoundError(user_id)
        logger.info("User deleted: %s", removed.username)
        return removed

    def change_password(self, user_id: str, new_password: str, confirm_password: str) -> None:
        """
        Replaces a user's password.

        Raises:
            UserNotFoundError: unknown id
            ValidationError: empty, mismatched or too short
        """
        if not new_password or not confirm_password:
            raise ValidationError("New password and confirmation are required")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        self._validate_password(new_password)

        with self.user_repo.locked():
            user = self.get_user(user_id)
            user.password_hash = generate_password_hash(new_password)
            self.user_repo.update(user_id, user)

        logger.info("Password changed for %s", user.username)

    @staticmethod
    def _validate_password(password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

"""Convenience imports for Alembic metadata discovery."""

from ams.models.role import Role, user_roles
from ams.models.user import User
from ams.models.api_key import ApiKey
from ams.models.refresh_token import RefreshToken

__all__ = ["ApiKey", "RefreshToken", "Role", "User", "user_roles"]

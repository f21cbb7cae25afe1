"""Authentication module."""

from src.auth.dependencies import Permission, get_current_actor, require_permission
from src.auth.jwt import create_access_token, verify_token

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_actor",
    "require_permission",
    "Permission",
]

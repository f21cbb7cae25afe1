"""
JWT token management.

Tokens are issued by the surrounding platform; this module only needs
to verify them. create_access_token exists for tests and tooling.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt

from src.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    person_id: int,
    permissions: Iterable[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        person_id: Person the token is issued to
        permissions: Granted permission names (e.g. "manage_commissions")
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)

    payload = {
        "sub": str(person_id),
        "permissions": sorted(set(permissions)),
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": datetime.now(timezone.utc),
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        Dict with 'person_id' and 'permissions', or None if the token
        is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )

        # Validate token type
        if payload.get("type") != TOKEN_TYPE:
            return None

        person_id = payload.get("sub")
        permissions = payload.get("permissions")

        if not person_id or not isinstance(permissions, list):
            return None

        return {
            "person_id": int(person_id),
            "permissions": [str(p) for p in permissions],
        }

    except (JWTError, ValueError):
        return None


def get_token_from_request(request) -> Optional[str]:
    """
    Extract the JWT from the httpOnly cookie, falling back to an
    ``Authorization: Bearer`` header.
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None

"""
FastAPI dependencies for authentication.
"""

from enum import Enum
from typing import Callable

from fastapi import Depends, HTTPException, Request, status

from src.auth.jwt import get_token_from_request, verify_token
from src.schemas.auth import TokenPayload


class Permission(str, Enum):
    """Permission names carried in the token."""
    MANAGE_COMMISSIONS = "manage_commissions"
    CREATE_DEALS = "create_deals"
    MANAGE_PAY_PLANS = "manage_pay_plans"


async def get_current_actor(request: Request) -> TokenPayload:
    """
    Get the authenticated caller from the request token.

    Raises 401 if no valid token is present.
    """
    token = get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return TokenPayload(**payload)


def require_permission(*permissions: Permission) -> Callable:
    """
    Dependency factory: the caller must hold at least one of the
    given permissions.

    Raises 403 otherwise.
    """
    wanted = [p.value for p in permissions]

    async def checker(
        actor: TokenPayload = Depends(get_current_actor),
    ) -> TokenPayload:
        if not actor.has_any(*wanted):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of: {', '.join(wanted)}",
            )
        return actor

    return checker

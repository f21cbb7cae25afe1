"""Authentication schemas."""

from typing import List

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """Verified JWT claims of the caller."""

    person_id: int
    permissions: List[str] = Field(default_factory=list)

    def has_any(self, *permissions: str) -> bool:
        return any(p in self.permissions for p in permissions)

"""Org snapshot audit endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import Permission, require_permission
from src.db import get_db
from src.models import OrgSnapshot
from src.schemas.auth import TokenPayload
from src.schemas.commission import OrgSnapshotResponse
from src.services.errors import NotFound

router = APIRouter(prefix="/org-snapshots", tags=["Commissions"])


@router.get("/{snapshot_id}", response_model=OrgSnapshotResponse)
async def get_org_snapshot(
    snapshot_id: int,
    db: AsyncSession = Depends(get_db),
    actor: TokenPayload = Depends(require_permission(Permission.MANAGE_COMMISSIONS)),
):
    """Reporting chain exactly as it was captured for a calculation."""
    snapshot = await db.get(OrgSnapshot, snapshot_id)
    if snapshot is None:
        raise NotFound("org snapshot", snapshot_id)
    return OrgSnapshotResponse.model_validate(snapshot)

"""Deal commission API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import Permission, require_permission
from src.db import get_db
from src.models import Commission, Deal
from src.schemas.auth import TokenPayload
from src.schemas.commission import CommissionResponse, RecalculationResponse
from src.services.errors import NotFound
from src.services.recalculation import recalculate

router = APIRouter(prefix="/deals", tags=["Commissions"])


@router.post("/{deal_id}/calculate", response_model=RecalculationResponse)
async def calculate_deal(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    actor: TokenPayload = Depends(
        require_permission(Permission.MANAGE_COMMISSIONS, Permission.CREATE_DEALS)
    ),
):
    """
    Recalculate every commission for a deal.

    Approved, paid and void commissions are left as they are; any
    disagreement with them is reported under ``discrepancies``.
    """
    result = await recalculate(db, deal_id, actor_id=actor.person_id)

    return RecalculationResponse(
        deal_id=result.deal_id,
        commission_count=result.commission_count,
        commissions=[CommissionResponse.model_validate(c) for c in result.commissions],
        discrepancies=result.discrepancies,
        org_snapshot_ids=result.org_snapshot_ids,
    )


@router.get("/{deal_id}/commissions", response_model=list[CommissionResponse])
async def list_deal_commissions(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    actor: TokenPayload = Depends(require_permission(Permission.MANAGE_COMMISSIONS)),
):
    """List commission rows for a deal, oldest first."""
    deal = await db.get(Deal, deal_id)
    if deal is None:
        raise NotFound("deal", deal_id)

    result = await db.execute(
        select(Commission)
        .where(Commission.deal_id == deal_id)
        .order_by(Commission.id)
    )
    return [CommissionResponse.model_validate(c) for c in result.scalars().all()]

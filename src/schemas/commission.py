"""
Commission schemas.

CalcDetails is the tagged audit record stored in
Commission.calc_details. It is discriminated on ``kind`` so every line
item is either a base or an override record with the fields that kind
requires; decimals are serialised as strings to round-trip exactly.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from src.models.commission import CommissionStatus
from src.models.commission_rule import CalcMethod, OverrideSource

Participant = Literal["setter", "closer", "self_gen"]


class CalcInputs(BaseModel):
    """Deal attributes the amount was computed from."""

    deal_value: Decimal
    deal_type: str
    system_size_kw: Optional[Decimal] = None
    ppw: Optional[Decimal] = None
    setter_tier: Optional[str] = None
    override_level: Optional[int] = None
    override_source: Optional[OverrideSource] = None


class _CalcDetailsCommon(BaseModel):
    org_snapshot_id: int
    rule_id: int
    rule_name: Optional[str] = None
    pay_plan_id: int
    calc_method: CalcMethod
    rule_amount: Decimal
    formula: str
    matched_at: datetime
    inputs: CalcInputs


class BaseCalcDetails(_CalcDetailsCommon):
    """Audit record for a setter/closer/self-gen base commission."""

    kind: Literal["base"] = "base"
    participant: Participant


class OverrideCalcDetails(_CalcDetailsCommon):
    """Audit record for an upline override commission."""

    kind: Literal["override"] = "override"
    override_level: int = Field(..., ge=1)
    override_source: OverrideSource


CalcDetails = Annotated[
    Union[BaseCalcDetails, OverrideCalcDetails],
    Field(discriminator="kind"),
]

calc_details_adapter: TypeAdapter[Union[BaseCalcDetails, OverrideCalcDetails]] = TypeAdapter(CalcDetails)


def parse_calc_details(raw: dict[str, Any]) -> Union[BaseCalcDetails, OverrideCalcDetails]:
    """Load a stored calc_details blob back into its tagged record."""
    return calc_details_adapter.validate_python(raw)


class Discrepancy(BaseModel):
    """
    Warning attached to a recalculation result.

    Attached whenever a freshly computed line collides with a protected
    (approved/paid/void) row for the same person and rule. The new line
    is skipped, never written. amount_changed is False when the
    recomputed amount matches the protected one.
    """

    kind: Literal["discrepancy_detected"] = "discrepancy_detected"
    person_id: int
    commission_rule_id: Optional[int]
    commission_type: str
    protected_commission_id: int
    protected_status: CommissionStatus
    protected_amount: Decimal
    computed_amount: Decimal
    amount_changed: bool = True
    note: str


class CommissionResponse(BaseModel):
    """Commission row as returned by the API."""

    id: int
    deal_id: int
    person_id: int
    commission_type: str
    amount: Decimal
    status: CommissionStatus
    pay_plan_id: Optional[int]
    commission_rule_id: Optional[int]
    calc_details: dict[str, Any]
    status_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RecalculationResponse(BaseModel):
    """Result of POST /api/deals/{deal_id}/calculate."""

    deal_id: int
    commission_count: int = Field(..., description="Rows written by this run")
    commissions: List[CommissionResponse]
    discrepancies: List[Discrepancy] = []
    org_snapshot_ids: List[int] = []


class OrgChainEntry(BaseModel):
    person_id: int
    level: int
    role_id: Optional[int] = None
    reports_to_id: Optional[int] = None
    setter_tier: Optional[str] = None


class OrgSnapshotResponse(BaseModel):
    """Audit view of one captured reporting chain."""

    id: int
    root_person_id: int
    snapshot_date: date
    chain: List[OrgChainEntry]
    captured_at: datetime

    model_config = {"from_attributes": True}

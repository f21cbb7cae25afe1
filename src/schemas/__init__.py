"""Pydantic schemas for request/response validation."""

from src.schemas.auth import TokenPayload
from src.schemas.commission import (
    BaseCalcDetails,
    CalcDetails,
    CommissionResponse,
    Discrepancy,
    OrgSnapshotResponse,
    OverrideCalcDetails,
    RecalculationResponse,
    parse_calc_details,
)
from src.schemas.pay_plan import (
    CommissionRuleCreate,
    CommissionRuleResponse,
    PayPlanAssignmentResponse,
    PayPlanAssignRequest,
    RuleConditions,
)

__all__ = [
    # Auth
    "TokenPayload",
    # Commission
    "BaseCalcDetails",
    "OverrideCalcDetails",
    "CalcDetails",
    "parse_calc_details",
    "CommissionResponse",
    "Discrepancy",
    "RecalculationResponse",
    "OrgSnapshotResponse",
    # Pay plan
    "PayPlanAssignRequest",
    "PayPlanAssignmentResponse",
    "CommissionRuleCreate",
    "CommissionRuleResponse",
    "RuleConditions",
]

"""Pay plan and commission rule schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.commission_rule import CalcMethod, OverrideSource, RuleType


class PayPlanAssignRequest(BaseModel):
    """Request to move a person onto a pay plan from a given date."""

    pay_plan_id: int
    effective_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_range(self) -> "PayPlanAssignRequest":
        if self.end_date is not None and self.end_date <= self.effective_date:
            raise ValueError("end_date must be after effective_date")
        return self


class PayPlanAssignmentResponse(BaseModel):
    id: int
    person_id: int
    pay_plan_id: int
    effective_date: date
    end_date: Optional[date]
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class RuleConditions(BaseModel):
    """Extra thresholds a deal must meet for a rule to apply."""

    setter_tier: Optional[Union[str, List[str]]] = None
    min_kw: Optional[Decimal] = Field(None, ge=0)
    ppw_floor: Optional[Decimal] = Field(None, ge=0)

    model_config = {"extra": "forbid"}


class CommissionRuleCreate(BaseModel):
    """
    New commission rule.

    Override rules need both override_level (>= 1) and
    override_source; base rules must have neither.
    """

    name: Optional[str] = Field(None, max_length=100)
    rule_type: RuleType
    calc_method: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., ge=0)
    applies_to_role_id: Optional[int] = None
    override_level: Optional[int] = Field(None, ge=1)
    override_source: Optional[OverrideSource] = None
    deal_types: Optional[List[str]] = None
    conditions: Optional[RuleConditions] = None
    sort_order: int = 0
    is_active: bool = True

    @field_validator("calc_method")
    @classmethod
    def check_calc_method(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {m.value for m in CalcMethod}:
            raise ValueError(f"unknown calc_method '{v}'")
        return v

    @model_validator(mode="after")
    def check_override_fields(self) -> "CommissionRuleCreate":
        if self.rule_type == RuleType.OVERRIDE:
            if self.override_level is None or self.override_source is None:
                raise ValueError("override rules require override_level and override_source")
        elif self.override_level is not None or self.override_source is not None:
            raise ValueError("base rules cannot set override_level or override_source")
        if self.deal_types:
            self.deal_types = [t.strip().lower() for t in self.deal_types if t.strip()]
        return self


class CommissionRuleResponse(BaseModel):
    id: int
    pay_plan_id: int
    name: Optional[str]
    rule_type: RuleType
    calc_method: str
    amount: Decimal
    applies_to_role_id: Optional[int]
    override_level: Optional[int]
    override_source: Optional[OverrideSource]
    deal_types: Optional[List[str]]
    conditions: Optional[dict[str, Any]] = None
    sort_order: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

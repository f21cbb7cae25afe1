"""
Database models for Payline.

All models are exported here for convenient imports:
    from src.models import Deal, Person, Commission, etc.
"""

from src.models.activity import ActivityAction, ActivityLog
from src.models.base import Base, TimestampMixin
from src.models.commission import PROTECTED_STATUSES, Commission, CommissionStatus
from src.models.commission_rule import CalcMethod, CommissionRule, OverrideSource, RuleType
from src.models.deal import Deal, DealStatus, DealType
from src.models.org_snapshot import OrgSnapshot
from src.models.pay_plan import PayPlan, PersonPayPlanAssignment
from src.models.person import Person, Role

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # People
    "Person",
    "Role",
    # Deal
    "Deal",
    "DealStatus",
    "DealType",
    # Pay plans
    "PayPlan",
    "PersonPayPlanAssignment",
    # Rules
    "CommissionRule",
    "RuleType",
    "CalcMethod",
    "OverrideSource",
    # Snapshots
    "OrgSnapshot",
    # Commission
    "Commission",
    "CommissionStatus",
    "PROTECTED_STATUSES",
    # Activity
    "ActivityLog",
    "ActivityAction",
]

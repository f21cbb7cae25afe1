"""Business logic services."""

from src.services.commission import CommissionEvaluator, evaluate
from src.services.org_snapshot import build_snapshot, walk_chain
from src.services.pay_plans import assign_pay_plan, resolve_active_plan
from src.services.recalculation import RecalculationResult, recalculate
from src.services.rule_matcher import match_rules

__all__ = [
    "CommissionEvaluator",
    "evaluate",
    "build_snapshot",
    "walk_chain",
    "assign_pay_plan",
    "resolve_active_plan",
    "RecalculationResult",
    "recalculate",
    "match_rules",
]

"""
Commission rule matching.

Selects the rules of a pay plan that apply to a deal and a target
person, in a fully deterministic order. The matcher never picks a
winner; the evaluator takes the first match.

Filters (all must pass):
- rule is active
- rule_type matches
- deal_types is empty or contains the deal's type
- applies_to_role_id is empty or equals the target's role
- override rules: override_source (and override_level, if asked) match
- conditions (setter tier, minimum kW, price-per-watt floor) are met
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

from src.models.commission_rule import CommissionRule, OverrideSource, RuleType

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def applies_to_deal_type(rule: CommissionRule, deal_type: str) -> bool:
    if not rule.deal_types:
        return True
    wanted = deal_type.lower()
    return any(t.lower() == wanted for t in rule.deal_types)


def _threshold(value: Any) -> Decimal:
    # JSON thresholds may arrive as numbers or strings
    return Decimal(str(value))


def meets_conditions(rule: CommissionRule, deal, setter_tier: Optional[str] = None) -> bool:
    """
    Check a rule's threshold conditions against a deal.

    setter_tier (one name or a list) must include the setter's tier.
    min_kw and ppw_floor are lower bounds on the deal's system size and
    price per watt; a deal without the value counts as 0.
    """
    conditions = rule.conditions or {}

    tiers = conditions.get("setter_tier")
    if tiers:
        if isinstance(tiers, str):
            tiers = [tiers]
        if setter_tier is None or setter_tier.lower() not in {t.lower() for t in tiers}:
            return False

    min_kw = conditions.get("min_kw")
    if min_kw is not None and Decimal(deal.system_size_kw or 0) < _threshold(min_kw):
        return False

    ppw_floor = conditions.get("ppw_floor")
    if ppw_floor is not None and Decimal(deal.ppw or 0) < _threshold(ppw_floor):
        return False

    return True


def rule_sort_key(rule: CommissionRule) -> tuple:
    """sort_order, then oldest first, then id."""
    created = rule.created_at or _EPOCH
    if created.tzinfo is None:
        # SQLite hands back naive timestamps
        created = created.replace(tzinfo=timezone.utc)
    return (rule.sort_order or 0, created, rule.id or 0)


def filter_rules(
    rules: Sequence[CommissionRule],
    deal,
    rule_type: RuleType,
    role_id: Optional[int] = None,
    override_source: Optional[OverrideSource] = None,
    override_level: Optional[int] = None,
    setter_tier: Optional[str] = None,
) -> list[CommissionRule]:
    """Apply every filter and return the survivors in evaluation order."""
    wanted_type = _enum_value(rule_type)
    wanted_source = _enum_value(override_source)

    matched = []
    for rule in rules:
        if not rule.is_active:
            continue
        if _enum_value(rule.rule_type) != wanted_type:
            continue
        if not applies_to_deal_type(rule, deal.deal_type):
            continue
        if rule.applies_to_role_id is not None and rule.applies_to_role_id != role_id:
            continue
        if wanted_type == RuleType.OVERRIDE.value:
            if wanted_source is not None and _enum_value(rule.override_source) != wanted_source:
                continue
            if override_level is not None and rule.override_level != override_level:
                continue
        if not meets_conditions(rule, deal, setter_tier):
            continue
        matched.append(rule)

    return sorted(matched, key=rule_sort_key)


def match_rules(
    pay_plan,
    deal,
    rule_type: RuleType,
    *,
    role_id: Optional[int] = None,
    override_source: Optional[OverrideSource] = None,
    override_level: Optional[int] = None,
    setter_tier: Optional[str] = None,
) -> list[CommissionRule]:
    """
    Rules of a pay plan applicable to a deal, in evaluation order.

    Args:
        pay_plan: PayPlan with its rules loaded
        deal: Deal (deal_type, system_size_kw and ppw are read)
        rule_type: base or override
        role_id: Role of the person who would be paid
        override_source: Whose upline the override rides on
        override_level: Distance from the participant (1 = direct manager)
        setter_tier: Tier of the deal's setter, for tier-conditioned rules

    Returns:
        Ordered list, possibly empty
    """
    rules = filter_rules(
        pay_plan.rules,
        deal,
        rule_type,
        role_id=role_id,
        override_source=override_source,
        override_level=override_level,
        setter_tier=setter_tier,
    )
    logger.debug(
        f"Plan {pay_plan.id} deal {deal.id} {_enum_value(rule_type)}"
        f" role={role_id} source={_enum_value(override_source)} level={override_level}:"
        f" matched {[r.id for r in rules]}"
    )
    return rules


def first_match(
    pay_plan,
    deal,
    rule_type: RuleType,
    **filters: Any,
) -> Optional[CommissionRule]:
    """First rule in evaluation order, or None."""
    rules = match_rules(pay_plan, deal, rule_type, **filters)
    return rules[0] if rules else None

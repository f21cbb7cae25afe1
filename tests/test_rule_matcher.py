"""
Tests for commission rule matching.

Covers:
- Deal type, role, active and rule type filters
- Override source/level filters
- Threshold conditions: setter tier, minimum kW, price-per-watt floor
- Deterministic ordering: sort_order, created_at, id
"""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from src.models.commission_rule import OverrideSource, RuleType
from src.services.rule_matcher import (
    applies_to_deal_type,
    filter_rules,
    first_match,
    match_rules,
    meets_conditions,
    rule_sort_key,
)


def _make_rule(rule_id, **kwargs):
    defaults = {
        "id": rule_id,
        "rule_type": RuleType.BASE,
        "calc_method": "flat",
        "amount": Decimal("100"),
        "applies_to_role_id": None,
        "override_level": None,
        "override_source": None,
        "deal_types": None,
        "conditions": None,
        "sort_order": 0,
        "is_active": True,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _make_override(rule_id, level=1, source=OverrideSource.SETTER, **kwargs):
    return _make_rule(
        rule_id,
        rule_type=RuleType.OVERRIDE,
        override_level=level,
        override_source=source,
        **kwargs,
    )


def _plan(*rules):
    return SimpleNamespace(id=1, rules=list(rules))


DEAL = SimpleNamespace(id=10, deal_type="solar", system_size_kw=Decimal("8.000"), ppw=Decimal("3.1000"))


# ── Filters ───────────────────────────────────────────────


class TestDealTypeFilter:
    def test_empty_list_matches_everything(self):
        assert applies_to_deal_type(_make_rule(1, deal_types=[]), "hvac")
        assert applies_to_deal_type(_make_rule(1, deal_types=None), "hvac")

    def test_case_insensitive(self):
        assert applies_to_deal_type(_make_rule(1, deal_types=["Solar"]), "SOLAR")

    def test_excluded_type(self):
        assert not applies_to_deal_type(_make_rule(1, deal_types=["roofing", "hvac"]), "solar")


class TestFilterRules:
    def test_base_filters(self):
        rules = [
            _make_rule(1),
            _make_rule(2, is_active=False),
            _make_rule(3, applies_to_role_id=7),
            _make_rule(4, applies_to_role_id=8),
            _make_rule(5, deal_types=["hvac"]),
            _make_override(6),
        ]
        matched = filter_rules(rules, DEAL, RuleType.BASE, role_id=7)
        assert [r.id for r in matched] == [1, 3]

    def test_role_specific_rule_needs_a_role(self):
        matched = filter_rules([_make_rule(1, applies_to_role_id=7)], DEAL, RuleType.BASE, role_id=None)
        assert matched == []

    def test_override_source_and_level(self):
        rules = [
            _make_override(1, level=1, source=OverrideSource.SETTER),
            _make_override(2, level=2, source=OverrideSource.SETTER),
            _make_override(3, level=1, source=OverrideSource.CLOSER),
            _make_rule(4),
        ]
        matched = filter_rules(
            rules, DEAL, RuleType.OVERRIDE,
            override_source=OverrideSource.SETTER, override_level=1,
        )
        assert [r.id for r in matched] == [1]

    def test_string_values_compare_like_enums(self):
        rule = _make_override(1, source="closer")
        rule.rule_type = "override"
        matched = filter_rules([rule], DEAL, RuleType.OVERRIDE, override_source=OverrideSource.CLOSER)
        assert [r.id for r in matched] == [1]


class TestConditions:
    def test_no_conditions(self):
        assert meets_conditions(_make_rule(1), DEAL)
        assert meets_conditions(_make_rule(1, conditions={}), DEAL)

    def test_setter_tier_single(self):
        rule = _make_rule(1, conditions={"setter_tier": "Veteran"})
        assert meets_conditions(rule, DEAL, setter_tier="Veteran")
        assert meets_conditions(rule, DEAL, setter_tier="veteran")
        assert not meets_conditions(rule, DEAL, setter_tier="Rookie")
        assert not meets_conditions(rule, DEAL)

    def test_setter_tier_list(self):
        rule = _make_rule(1, conditions={"setter_tier": ["Veteran", "Team Lead"]})
        assert meets_conditions(rule, DEAL, setter_tier="Team Lead")
        assert not meets_conditions(rule, DEAL, setter_tier="Rookie")

    def test_min_kw(self):
        assert meets_conditions(_make_rule(1, conditions={"min_kw": 8}), DEAL)
        assert not meets_conditions(_make_rule(1, conditions={"min_kw": "8.5"}), DEAL)

    def test_min_kw_without_size(self):
        deal = SimpleNamespace(id=11, deal_type="solar", system_size_kw=None, ppw=None)
        assert not meets_conditions(_make_rule(1, conditions={"min_kw": "0.5"}), deal)
        assert meets_conditions(_make_rule(1, conditions={"min_kw": "0"}), deal)

    def test_ppw_floor(self):
        assert meets_conditions(_make_rule(1, conditions={"ppw_floor": "3.10"}), DEAL)
        assert not meets_conditions(_make_rule(1, conditions={"ppw_floor": 3.25}), DEAL)

    def test_all_conditions_must_pass(self):
        rule = _make_rule(1, conditions={"setter_tier": "Veteran", "min_kw": "5", "ppw_floor": "4"})
        assert not meets_conditions(rule, DEAL, setter_tier="Veteran")

    def test_filter_skips_unmet_rule(self):
        rules = [
            _make_rule(1, sort_order=1, conditions={"setter_tier": "Veteran"}),
            _make_rule(2, sort_order=2),
        ]
        assert [r.id for r in filter_rules(rules, DEAL, RuleType.BASE, setter_tier="Rookie")] == [2]
        assert [r.id for r in filter_rules(rules, DEAL, RuleType.BASE, setter_tier="Veteran")] == [1, 2]


# ── Ordering ──────────────────────────────────────────────


class TestOrdering:
    def test_sort_order_first(self):
        rules = [_make_rule(1, sort_order=5), _make_rule(2, sort_order=1)]
        assert [r.id for r in filter_rules(rules, DEAL, RuleType.BASE)] == [2, 1]

    def test_oldest_wins_a_tie(self):
        rules = [
            _make_rule(1, created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)),
            _make_rule(2, created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)),
        ]
        assert [r.id for r in filter_rules(rules, DEAL, RuleType.BASE)] == [2, 1]

    def test_id_breaks_full_tie(self):
        rules = [_make_rule(9), _make_rule(3), _make_rule(5)]
        assert [r.id for r in filter_rules(rules, DEAL, RuleType.BASE)] == [3, 5, 9]

    def test_naive_and_missing_timestamps(self):
        naive = _make_rule(1, created_at=datetime(2024, 1, 1))
        missing = _make_rule(2, created_at=None)
        # Comparable without TypeError; missing sorts first
        assert sorted([naive, missing], key=rule_sort_key) == [missing, naive]

    def test_order_does_not_depend_on_input_order(self):
        rules = [_make_rule(i, sort_order=i % 3) for i in range(1, 10)]
        forward = [r.id for r in filter_rules(rules, DEAL, RuleType.BASE)]
        backward = [r.id for r in filter_rules(list(reversed(rules)), DEAL, RuleType.BASE)]
        assert forward == backward


# ── match_rules / first_match ─────────────────────────────


class TestMatchRules:
    def test_match_reads_plan_and_deal(self):
        plan = _plan(_make_rule(1, deal_types=["hvac"]), _make_rule(2))
        assert [r.id for r in match_rules(plan, DEAL, RuleType.BASE)] == [2]

    def test_first_match(self):
        plan = _plan(_make_rule(1, sort_order=2), _make_rule(2, sort_order=1))
        assert first_match(plan, DEAL, RuleType.BASE).id == 2

    def test_first_match_none(self):
        plan = _plan(_make_override(1))
        assert first_match(plan, DEAL, RuleType.BASE) is None

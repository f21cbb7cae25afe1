"""
Commission evaluation for a deal.

Rules:
- Setter and closer each get at most one base commission: the first
  matching base rule of their pay plan for their role
- A self-gen deal (setter closed it) gets a single self-gen base line
- Each level of the setter's and the closer's upline gets at most one
  override commission: the first override rule of the upline person's
  plan for that source, level and role
- A level with no plan or no rule pays nothing, and the walk goes on
- Rule conditions on setter tier read the deal setter's tier; the
  closer's base line is matched without a tier
- Amounts are Decimal, rounded half-up to cents once, at creation
"""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from src.models import (
    CalcMethod,
    Commission,
    CommissionRule,
    CommissionStatus,
    OrgSnapshot,
    OverrideSource,
    PayPlan,
    RuleType,
)
from src.schemas.commission import BaseCalcDetails, CalcInputs, OverrideCalcDetails
from src.services.errors import UnrecognizedCalcMethod
from src.services.rule_matcher import first_match

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_currency(value: Decimal) -> Decimal:
    """Round to cents, half-up. Stable: round_currency(round_currency(x)) == round_currency(x)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _calc_method(rule: CommissionRule) -> CalcMethod:
    try:
        return CalcMethod(rule.calc_method)
    except ValueError:
        raise UnrecognizedCalcMethod(rule.id, rule.calc_method) from None


def calculate_amount(rule: CommissionRule, deal) -> Decimal:
    """
    Commission amount for a rule applied to a deal.

    Raises:
        UnrecognizedCalcMethod: rule.calc_method is not a CalcMethod
    """
    method = _calc_method(rule)
    amount = Decimal(rule.amount)

    if method == CalcMethod.FLAT:
        raw = amount
    elif method == CalcMethod.PERCENT_OF_DEAL_VALUE:
        raw = amount / HUNDRED * Decimal(deal.deal_value)
    else:
        raw = amount * Decimal(deal.system_size_kw or 0)

    return round_currency(raw)


def build_formula(rule: CommissionRule, deal, result: Decimal) -> str:
    """Human-readable formula shown to a rep disputing a line."""
    method = _calc_method(rule)
    amount = Decimal(rule.amount).normalize()

    if method == CalcMethod.FLAT:
        return f"${result}"
    if method == CalcMethod.PERCENT_OF_DEAL_VALUE:
        return f"{amount:f}% × ${round_currency(deal.deal_value)} = ${result}"
    kw = Decimal(deal.system_size_kw or 0).normalize()
    return f"${amount:f}/kW × {kw:f} kW = ${result}"


def _inputs(deal, override_level: Optional[int] = None,
            override_source: Optional[OverrideSource] = None,
            setter_tier: Optional[str] = None) -> CalcInputs:
    return CalcInputs(
        deal_value=Decimal(deal.deal_value),
        deal_type=deal.deal_type,
        system_size_kw=Decimal(deal.system_size_kw) if deal.system_size_kw is not None else None,
        ppw=Decimal(deal.ppw) if deal.ppw is not None else None,
        setter_tier=setter_tier,
        override_level=override_level,
        override_source=override_source,
    )


class CommissionEvaluator:
    """
    Turns a deal, its org snapshots and the resolved pay plans into
    unpersisted Commission rows.

    Pure: no database access. A (person, rule) pair is produced at
    most once per evaluation.
    """

    def __init__(
        self,
        deal,
        snapshots: Mapping[str, OrgSnapshot],
        plans: Mapping[int, Optional[PayPlan]],
        matched_at: Optional[datetime] = None,
    ):
        self.deal = deal
        self.snapshots = snapshots
        self.plans = plans
        self.matched_at = matched_at or datetime.now(timezone.utc)
        self.lines: list[Commission] = []
        self._seen: set[tuple[int, int]] = set()
        # Tier-conditioned rules read the deal setter's tier, whoever is paid
        self.setter_tier = snapshots["setter"].root_setter_tier

    def evaluate(self) -> list[Commission]:
        deal = self.deal
        if deal.self_generated:
            self._base("self_gen", deal.setter_id, self.snapshots["setter"])
        else:
            self._base("setter", deal.setter_id, self.snapshots["setter"])
            self._base("closer", deal.closer_id, self.snapshots["closer"])

        self._overrides(OverrideSource.SETTER, self.snapshots["setter"])
        self._overrides(OverrideSource.CLOSER, self.snapshots["closer"])

        logger.info(
            f"Deal {deal.id}: evaluated {len(self.lines)} commission lines "
            f"totalling {sum((c.amount for c in self.lines), Decimal('0'))}"
        )
        return self.lines

    def _base(self, participant: str, person_id: int, snapshot: OrgSnapshot) -> None:
        plan = self.plans.get(person_id)
        if plan is None:
            logger.info(f"Deal {self.deal.id}: {participant} {person_id} has no pay plan, no base commission")
            return

        setter_tier = None if participant == "closer" else self.setter_tier
        rule = first_match(
            plan,
            self.deal,
            RuleType.BASE,
            role_id=snapshot.root_role_id,
            setter_tier=setter_tier,
        )
        if rule is None:
            logger.info(f"Deal {self.deal.id}: no base rule in plan {plan.id} for {participant} {person_id}")
            return

        amount = calculate_amount(rule, self.deal)
        details = BaseCalcDetails(
            participant=participant,
            **self._common_details(rule, plan, snapshot, amount),
            inputs=_inputs(self.deal, setter_tier=setter_tier),
        )
        label = "self-gen" if participant == "self_gen" else participant
        self._emit(person_id, rule, plan, amount, f"{label} base", details.model_dump(mode="json"))

    def _overrides(self, source: OverrideSource, snapshot: OrgSnapshot) -> None:
        for entry in snapshot.upline:
            level = entry["level"]
            person_id = entry["person_id"]

            plan = self.plans.get(person_id)
            if plan is None:
                logger.debug(f"Deal {self.deal.id}: {source.value} L{level} person {person_id} has no pay plan")
                continue

            rule = first_match(
                plan,
                self.deal,
                RuleType.OVERRIDE,
                role_id=entry["role_id"],
                override_source=source,
                override_level=level,
                setter_tier=self.setter_tier,
            )
            if rule is None:
                continue

            amount = calculate_amount(rule, self.deal)
            details = OverrideCalcDetails(
                override_level=level,
                override_source=source,
                **self._common_details(rule, plan, snapshot, amount),
                inputs=_inputs(self.deal, level, source, self.setter_tier),
            )
            self._emit(
                person_id, rule, plan, amount,
                f"{source.value} override L{level}",
                details.model_dump(mode="json"),
            )

    def _common_details(self, rule: CommissionRule, plan: PayPlan,
                        snapshot: OrgSnapshot, amount: Decimal) -> dict:
        return {
            "org_snapshot_id": snapshot.id,
            "rule_id": rule.id,
            "rule_name": rule.name,
            "pay_plan_id": plan.id,
            "calc_method": _calc_method(rule),
            "rule_amount": Decimal(rule.amount),
            "formula": build_formula(rule, self.deal, amount),
            "matched_at": self.matched_at,
        }

    def _emit(self, person_id: int, rule: CommissionRule, plan: PayPlan,
              amount: Decimal, commission_type: str, calc_details: dict) -> None:
        key = (person_id, rule.id)
        if key in self._seen:
            logger.warning(
                f"Deal {self.deal.id}: rule {rule.id} already paid person {person_id}, "
                f"skipping duplicate '{commission_type}'"
            )
            return
        self._seen.add(key)

        self.lines.append(Commission(
            deal_id=self.deal.id,
            person_id=person_id,
            commission_type=commission_type,
            amount=amount,
            status=CommissionStatus.PENDING,
            pay_plan_id=plan.id,
            commission_rule_id=rule.id,
            calc_details=calc_details,
        ))


def evaluate(
    deal,
    snapshots: Mapping[str, OrgSnapshot],
    plans: Mapping[int, Optional[PayPlan]],
    *,
    matched_at: Optional[datetime] = None,
) -> list[Commission]:
    """
    Compute every commission line for a deal.

    Args:
        deal: The deal being paid out
        snapshots: {"setter": OrgSnapshot, "closer": OrgSnapshot}
        plans: Resolved plan (or None) for every person in the snapshots
        matched_at: Timestamp recorded in calc_details

    Returns:
        Unpersisted Commission rows in evaluation order

    Raises:
        UnrecognizedCalcMethod: a matched rule cannot be computed
    """
    return CommissionEvaluator(deal, snapshots, plans, matched_at).evaluate()

"""
Commission engine error taxonomy.

Every error carries a machine-readable ``kind`` so the API layer (or any
other caller) can map it without string matching. Only
ConcurrentRecalculation is retryable; the data-integrity and
configuration errors mean the *data* is broken, not the request.
"""

from datetime import date
from typing import Any, Optional


class CommissionEngineError(Exception):
    """Base class for all engine errors."""

    kind: str = "engine_error"
    retryable: bool = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
        }


class NotFound(CommissionEngineError):
    """A deal, person or pay plan does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} not found: {entity_id}", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class AmbiguousAssignment(CommissionEngineError):
    """More than one pay plan assignment is active for a person on a date."""

    kind = "ambiguous_assignment"

    def __init__(self, person_id: int, as_of: date, assignment_ids: list[int]):
        super().__init__(
            f"Person {person_id} has {len(assignment_ids)} pay plan assignments active on "
            f"{as_of.isoformat()} (ids: {assignment_ids})",
            person_id=person_id,
            as_of=as_of,
            assignment_ids=assignment_ids,
        )
        self.person_id = person_id
        self.assignment_ids = assignment_ids


class CyclicHierarchy(CommissionEngineError):
    """The reports_to chain revisits a person or exceeds the depth cap."""

    kind = "cyclic_hierarchy"

    def __init__(self, root_person_id: int, path: list[int], reason: str):
        super().__init__(
            f"Reporting chain of person {root_person_id} is invalid ({reason}): "
            + " -> ".join(str(p) for p in path),
            root_person_id=root_person_id,
            path=path,
        )
        self.root_person_id = root_person_id
        self.path = path


class UnrecognizedCalcMethod(CommissionEngineError):
    """A matched rule uses a calc_method the evaluator does not know."""

    kind = "unrecognized_calc_method"

    def __init__(self, rule_id: int, calc_method: str):
        super().__init__(
            f"Commission rule {rule_id} has unrecognized calc_method '{calc_method}'",
            rule_id=rule_id,
            calc_method=calc_method,
        )
        self.rule_id = rule_id
        self.calc_method = calc_method


class ConcurrentRecalculation(CommissionEngineError):
    """Another recalculation of the same deal holds the lock."""

    kind = "concurrent_recalculation"
    retryable = True

    def __init__(self, deal_id: int):
        super().__init__(
            f"Deal {deal_id} is already being recalculated; retry shortly",
            deal_id=deal_id,
        )
        self.deal_id = deal_id


class OverlappingAssignment(CommissionEngineError):
    """A new pay plan assignment would overlap an existing one."""

    kind = "overlapping_assignment"

    def __init__(self, person_id: int, conflicting_ids: list[int]):
        super().__init__(
            f"Pay plan assignment for person {person_id} overlaps existing assignments {conflicting_ids}",
            person_id=person_id,
            conflicting_ids=conflicting_ids,
        )
        self.person_id = person_id
        self.conflicting_ids = conflicting_ids


class InvalidAssignment(CommissionEngineError):
    """A pay plan assignment request is malformed (bad range, inactive plan)."""

    kind = "invalid_assignment"

    def __init__(self, message: str, person_id: Optional[int] = None):
        super().__init__(message, person_id=person_id)
        self.person_id = person_id

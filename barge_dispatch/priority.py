# barge-dispatch/barge_dispatch/priority.py
"""
Priority ranker for pending refueling requests.

A PriorityRuleSet is an ordered list of comparator rule names. The ranker
applies them lexicographically: a later rule only breaks ties left by the
earlier ones, and an implicit final rule keeps the original request order.
Reordering the list (e.g. by drag-and-drop in a UI) changes the ranking,
nothing else.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .errors import InputValidationError
from .models import PriorityRuleSet, RefuelingRequest

Comparator = Callable[[RefuelingRequest, RefuelingRequest], int]


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def earlier_contractual_date(a: RefuelingRequest, b: RefuelingRequest) -> int:
    return _cmp(a.contractual_date, b.contractual_date)


def earlier_window_end(a: RefuelingRequest, b: RefuelingRequest) -> int:
    return _cmp(a.window_end, b.window_end)


def earlier_window_start(a: RefuelingRequest, b: RefuelingRequest) -> int:
    return _cmp(a.window_start, b.window_start)


def larger_total_quantity(a: RefuelingRequest, b: RefuelingRequest) -> int:
    return _cmp(b.total_quantity, a.total_quantity)


# Rule lookup table
RULES: Dict[str, Comparator] = {
    "contractual_date": earlier_contractual_date,
    "window_end": earlier_window_end,
    "window_start": earlier_window_start,
    "total_quantity": larger_total_quantity,
}

RULE_DESCRIPTIONS: Dict[str, str] = {
    "contractual_date": "Earlier contractual date first",
    "window_end": "Earlier window end first",
    "window_start": "Earlier window start first",
    "total_quantity": "Larger total requested quantity first",
}


def normalize_rule_name(name: str) -> str:
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def build_rule_set(names: Iterable[str]) -> PriorityRuleSet:
    """
    Build a rule set from rule names, keeping their order.

    Raises:
        InputValidationError: On an unknown rule name
    """
    rules = []
    for name in names:
        key = normalize_rule_name(name)
        if key not in RULES:
            raise InputValidationError(
                f"Unknown priority rule '{name}'. Options: {', '.join(RULES)}"
            )
        rules.append(key)
    return PriorityRuleSet(rules=tuple(rules))


class PriorityRanker:
    """
    Orders pending requests according to a PriorityRuleSet.

    The original position of each request is captured once so the implicit
    final rule stays stable while the pending set shrinks.
    """

    def __init__(self, rule_set: PriorityRuleSet, requests: Sequence[RefuelingRequest]) -> None:
        self.rule_set = build_rule_set(rule_set.rules)
        self._comparators: List[Comparator] = [RULES[name] for name in self.rule_set.rules]
        self._position: Dict[str, int] = {r.request_id: i for i, r in enumerate(requests)}

    def compare(self, a: RefuelingRequest, b: RefuelingRequest) -> int:
        for comparator in self._comparators:
            result = comparator(a, b)
            if result != 0:
                return result
        return _cmp(self._position.get(a.request_id, 0), self._position.get(b.request_id, 0))

    def rank(self, pending: Iterable[RefuelingRequest]) -> List[RefuelingRequest]:
        return sorted(pending, key=cmp_to_key(self.compare))

    def top(self, pending: Iterable[RefuelingRequest]) -> Optional[RefuelingRequest]:
        """Highest-ranked request, or None if nothing is pending."""
        ranked = self.rank(pending)
        return ranked[0] if ranked else None

"""Ordered, first-match-wins endpoint dispatch.

Several endpoint patterns are substrings of others (``/financial-metrics/``
and ``/financial-metrics/snapshot/``), so rules are kept in a list and
evaluated top to bottom. The first predicate that accepts the endpoint wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar

H = TypeVar("H")

Predicate = Callable[[str], bool]


def contains(fragment: str) -> Predicate:
    def _match(endpoint: str) -> bool:
        return fragment in endpoint

    _match.__name__ = f"contains({fragment!r})"
    return _match


def exactly(path: str) -> Predicate:
    def _match(endpoint: str) -> bool:
        return endpoint == path

    _match.__name__ = f"exactly({path!r})"
    return _match


@dataclass(frozen=True, slots=True)
class Rule(Generic[H]):
    predicate: Predicate
    handler: H

    @property
    def description(self) -> str:
        return getattr(self.predicate, "__name__", repr(self.predicate))


def first_match(rules: Iterable[Rule[H]], endpoint: str) -> Optional[Rule[H]]:
    for rule in rules:
        if rule.predicate(endpoint):
            return rule
    return None


__all__ = ["Predicate", "Rule", "contains", "exactly", "first_match"]

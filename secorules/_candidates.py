from __future__ import annotations

import bisect
from typing import Iterable
from typing import Iterator

from secorules.rules import Rule


def _descending_key(rule: Rule) -> tuple:
    return tuple(-value for value in rule.sort_key())


class CandidateSet:
    """Live candidate rules of the refinement search kept sorted best first.
    Structurally equal rules are stored only once.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: list[Rule] = []
        self._members: set[Rule] = set()
        for rule in rules:
            self.add(rule)

    def add(self, rule: Rule) -> bool:
        if rule in self._members:
            return False
        bisect.insort(self._rules, rule, key=_descending_key)
        self._members.add(rule)
        return True

    def remove(self, rule: Rule):
        if rule not in self._members:
            return
        self._members.discard(rule)
        self._rules = [r for r in self._rules if r != rule]

    def remove_all(self, rules: Iterable[Rule]):
        removed: set[Rule] = self._members.intersection(rules)
        if not removed:
            return
        self._members -= removed
        self._rules = [r for r in self._rules if r not in removed]

    def first(self) -> Rule:
        return self._rules[0]

    def to_list(self) -> list[Rule]:
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __contains__(self, rule: Rule) -> bool:
        return rule in self._members

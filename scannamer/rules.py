"""
Rule store: the ordered list of naming rules and the active-rule policy.
"""

import logging
import threading
import uuid
from typing import Iterable, Optional

from .models import RenamingRule, RuleKind

logger = logging.getLogger(__name__)


# Used whenever no stored rule is active
FALLBACK_RULE = RenamingRule(
    name="Fallback - First Line",
    kind=RuleKind.FIRST_LINE,
    active=True,
)


def default_rules() -> list[RenamingRule]:
    """Rules installed when nothing else is configured."""
    return [
        RenamingRule(name="Smart Document Detection", kind=RuleKind.SMART, active=True),
        RenamingRule(name="First Line Clean", kind=RuleKind.FIRST_LINE, active=False),
        RenamingRule(
            name="Invoice Pattern",
            kind=RuleKind.REGEX,
            pattern=r"Invoice\s*#?\s*(\d+)",
            replacement="Invoice_$1",
            active=False,
        ),
    ]


class RuleStore:
    """
    Thread-safe ordered collection of renaming rules.

    Selection policy: the first rule, in insertion order, whose ``active``
    flag is set governs naming. Later active rules are ignored. When no
    rule is active, ``FALLBACK_RULE`` is used.
    """

    def __init__(self, rules: Optional[Iterable[RenamingRule]] = None):
        self._lock = threading.Lock()
        self._rules: list[RenamingRule] = []
        for rule in rules or ():
            self.add(rule)

    @classmethod
    def with_defaults(cls) -> "RuleStore":
        return cls(default_rules())

    def add(self, rule: RenamingRule) -> None:
        """
        Append a rule.

        Raises:
            ValueError: If a rule with the same id is already stored.
        """
        with self._lock:
            if any(existing.id == rule.id for existing in self._rules):
                raise ValueError(f"Rule already present: {rule.id}")
            self._rules.append(rule)
        logger.debug(f"Rule added: {rule.name} ({rule.kind.value})")

    def remove(self, rule_id: uuid.UUID) -> Optional[RenamingRule]:
        """Remove a rule by id. Returns the removed rule, or None if unknown."""
        with self._lock:
            for index, rule in enumerate(self._rules):
                if rule.id == rule_id:
                    del self._rules[index]
                    break
            else:
                return None
        logger.debug(f"Rule removed: {rule.name}")
        return rule

    def list(self) -> list[RenamingRule]:
        """Snapshot of the rules in insertion order."""
        with self._lock:
            return list(self._rules)

    def active_rule(self) -> RenamingRule:
        with self._lock:
            for rule in self._rules:
                if rule.active:
                    return rule
        return FALLBACK_RULE

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

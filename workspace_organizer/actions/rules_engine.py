"""
Rules Engine
============

Matches inbox entry names against the configured clean rules.
Patterns are compiled once when the engine is built; rules are tried in
configured order and the first match wins.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from workspace_organizer.config.settings import CleanRule
from workspace_organizer.utils.exceptions import RuleCompileError
from workspace_organizer.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """A clean rule together with its compiled pattern.

    Attributes:
        rule: The configured rule.
        regex: Compiled form of ``rule.pattern``.
        position: Index of the rule in the configured list.
    """
    rule: CleanRule
    regex: re.Pattern
    position: int

    @property
    def target(self) -> str:
        return self.rule.target

    def matches(self, filename: str) -> bool:
        """Check whether the pattern occurs anywhere in ``filename``.

        Matching is case-sensitive and unanchored unless the pattern
        itself says otherwise.
        """
        return self.regex.search(filename) is not None


class RulesEngine:
    """Ordered, compiled rule set.

    Invalid patterns are dropped individually and reported through
    ``errors``; the remaining rules keep their relative order.
    """

    def __init__(self, rules: Iterable[CleanRule]):
        """Compile the rule set.

        Args:
            rules: Rules in priority order.
        """
        self._rules: List[CompiledRule] = []
        self.errors: List[RuleCompileError] = []

        for position, rule in enumerate(rules):
            try:
                regex = re.compile(rule.pattern)
            except re.error as e:
                error = RuleCompileError(
                    f"Invalid regex pattern '{rule.pattern}': {e}",
                    pattern=rule.pattern,
                    cause=e,
                )
                logger.warning(error.message)
                self.errors.append(error)
                continue
            self._rules.append(CompiledRule(rule=rule, regex=regex, position=position))

        logger.debug(
            f"Compiled {len(self._rules)} rules ({len(self.errors)} rejected)"
        )

    def match(self, filename: str) -> Optional[CompiledRule]:
        """Find the first rule matching a filename.

        Args:
            filename: Base name of the inbox entry.

        Returns:
            The selected rule, or None if no rule matches.
        """
        for compiled in self._rules:
            if compiled.matches(filename):
                return compiled
        return None

    def get_rules(self) -> List[CompiledRule]:
        """Active rules in evaluation order."""
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

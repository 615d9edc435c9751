"""Two watched literals propagation.

Every rule with at least two literals is watched by two of them. A rule
only needs to be looked at when one of its watched literals becomes false:
either another watch can be found, the other watched literal has to be
decided true, or the rule is in conflict.
"""

from typing import Dict, List, Optional, TYPE_CHECKING

from .rules import Rule

if TYPE_CHECKING:
    from .decisions import Decisions


class RuleWatchNode:
    """A rule plus the two literals currently watching it."""

    def __init__(self, rule: Rule):
        self.rule = rule
        literals = rule.literals
        self.watch1 = literals[0] if len(literals) > 0 else 0
        self.watch2 = literals[1] if len(literals) > 1 else 0

    def watch2_on_highest(self, decisions: 'Decisions'):
        """Move the second watch to the literal decided on the highest level."""
        literals = self.rule.literals

        # with two literals both are watched anyway
        if len(literals) < 3:
            return

        watch_level = -1
        for literal in literals:
            level = decisions.decision_level(literal)
            if level > watch_level:
                self.watch2 = literal
                watch_level = level

    def other_watch(self, literal: int) -> int:
        return self.watch2 if self.watch1 == literal else self.watch1

    def move_watch(self, from_literal: int, to_literal: int):
        if self.watch1 == from_literal:
            self.watch1 = to_literal
        else:
            self.watch2 = to_literal


class RuleWatchGraph:
    """Literal -> watch nodes, most recently added first."""

    def __init__(self):
        self._chains: Dict[int, List[RuleWatchNode]] = {}

    def add(self, node: RuleWatchNode):
        if node.rule.is_assertion:
            return
        for literal in (node.watch1, node.watch2):
            self._chains.setdefault(literal, []).insert(0, node)

    def propagate_literal(self, decided_literal: int, level: int,
                          decisions: 'Decisions') -> Optional[Rule]:
        """Propagate a decision through the rules watching its negation.

        Returns:
            The conflicting rule, or None
        """
        # A decided, so (-A|B) rules now need B
        literal = -decided_literal
        chain = self._chains.get(literal)
        if not chain:
            return None

        for node in list(chain):
            other_watch = node.other_watch(literal)
            if not node.rule.enabled or decisions.is_satisfy(other_watch):
                continue

            alternatives = [
                rule_literal for rule_literal in node.rule.literals
                if rule_literal != literal and rule_literal != other_watch
                and not decisions.is_conflict(rule_literal)
            ]

            if alternatives:
                to_literal = alternatives[0]
                node.move_watch(literal, to_literal)
                chain.remove(node)
                self._chains.setdefault(to_literal, []).insert(0, node)
                continue

            if decisions.is_conflict(other_watch):
                return node.rule

            decisions.decide(other_watch, level, node.rule)

        return None

"""Tests for watched literal propagation"""

import pytest

from depsolve.core.repository import Repository
from depsolve.core.resolution import Pool
from depsolve.core.resolution.decisions import Decisions
from depsolve.core.resolution.rules import Reason, Rule
from depsolve.core.resolution.watchgraph import RuleWatchGraph, RuleWatchNode

from helpers import make_package


@pytest.fixture
def decisions():
    pool = Pool()
    pool.add_repository(Repository([make_package(name, "1.0") for name in ("a", "b", "c")]))
    return Decisions(pool)


class TestRuleWatchNode:

    def test_initial_watches(self):
        node = RuleWatchNode(Rule([-1, 2, 3], Reason.UNDEFINED))
        assert (node.watch1, node.watch2) == (-1, 2)
        assert node.other_watch(-1) == 2
        assert node.other_watch(2) == -1

    def test_watch2_on_highest(self, decisions):
        node = RuleWatchNode(Rule([-1, 2, 3], Reason.UNDEFINED))
        decisions.decide(1, 1, None)
        decisions.decide(-3, 2, None)

        node.watch2_on_highest(decisions)
        assert node.watch2 == 3

    def test_move_watch(self):
        node = RuleWatchNode(Rule([-1, 2, 3], Reason.UNDEFINED))
        node.move_watch(2, 3)
        assert (node.watch1, node.watch2) == (-1, 3)


class TestRuleWatchGraph:

    def test_watch_moves_to_undecided_literal(self, decisions):
        graph = RuleWatchGraph()
        node = RuleWatchNode(Rule([-1, 2, 3], Reason.UNDEFINED))
        graph.add(node)

        decisions.decide(1, 1, None)
        assert graph.propagate_literal(1, 1, decisions) is None
        assert (node.watch1, node.watch2) == (3, 2)
        assert decisions.is_undecided(2)

    def test_unit_propagation(self, decisions):
        graph = RuleWatchGraph()
        rule = Rule([-1, 2, 3], Reason.UNDEFINED)
        graph.add(RuleWatchNode(rule))

        decisions.decide(1, 1, None)
        graph.propagate_literal(1, 1, decisions)
        decisions.decide(-3, 1, None)
        assert graph.propagate_literal(-3, 1, decisions) is None

        assert decisions.is_satisfy(2)
        assert decisions.decision_reason(2) is rule

    def test_conflict(self, decisions):
        graph = RuleWatchGraph()
        rule = Rule([-1, 2], Reason.UNDEFINED)
        graph.add(RuleWatchNode(rule))

        decisions.decide(-2, 1, None)
        decisions.decide(1, 1, None)
        assert graph.propagate_literal(1, 1, decisions) is rule

    def test_disabled_rules_are_skipped(self, decisions):
        graph = RuleWatchGraph()
        rule = Rule([-1, 2], Reason.UNDEFINED)
        rule.disable()
        graph.add(RuleWatchNode(rule))

        decisions.decide(1, 1, None)
        assert graph.propagate_literal(1, 1, decisions) is None
        assert decisions.is_undecided(2)

    def test_assertions_are_not_watched(self, decisions):
        graph = RuleWatchGraph()
        graph.add(RuleWatchNode(Rule([-1], Reason.UNDEFINED)))

        decisions.decide(1, 1, None)
        assert graph.propagate_literal(1, 1, decisions) is None

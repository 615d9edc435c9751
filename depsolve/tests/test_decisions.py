"""Tests for the decision trail"""

import pytest

from depsolve.core.errors import SolverBugError
from depsolve.core.repository import Repository
from depsolve.core.resolution import Pool
from depsolve.core.resolution.decisions import Decisions
from depsolve.core.resolution.rules import Reason, Rule

from helpers import make_package


@pytest.fixture
def decisions():
    pool = Pool()
    pool.add_repository(Repository([make_package(name, "1.0") for name in ("a", "b", "c")]))
    return Decisions(pool)


class TestDecisions:

    def test_decide(self, decisions):
        rule = Rule([1], Reason.JOB_INSTALL)
        decisions.decide(1, 0, rule)
        decisions.decide(-2, 1, None)

        assert decisions.is_satisfy(1)
        assert decisions.is_conflict(-1)
        assert decisions.is_satisfy(-2)
        assert decisions.is_decided_install(1)
        assert not decisions.is_decided_install(2)
        assert decisions.is_undecided(3)
        assert decisions.decision_level(-2) == 1
        assert decisions.decision_level(3) == -1
        assert decisions.decision_reason(1) is rule
        assert decisions.decision_reason(3) is None
        assert len(decisions) == 2

    def test_decide_twice(self, decisions):
        decisions.decide(1, 1, None)
        with pytest.raises(SolverBugError, match="previously decided as 1"):
            decisions.decide(-1, 2, None)

    def test_iteration_is_most_recent_first(self, decisions):
        decisions.decide(1, 1, None)
        decisions.decide(-2, 2, None)
        decisions.decide(3, 2, None)

        assert [literal for literal, _ in decisions] == [3, -2, 1]
        assert decisions[0] == (1, None)
        assert decisions.last_literal() == 3
        assert str(decisions) == "[1:1,2:-2,2:3]"

    def test_revert_to_position(self, decisions):
        decisions.decide(1, 1, None)
        decisions.decide(-2, 2, None)
        decisions.decide(3, 2, None)

        decisions.revert_to_position(0)

        assert len(decisions) == 1
        assert decisions.is_decided(1)
        assert decisions.is_undecided(2)
        assert decisions.is_undecided(3)

    def test_revert_last(self, decisions):
        decisions.decide(1, 1, None)
        decisions.decide(2, 1, None)
        decisions.revert_last()

        assert decisions.is_undecided(2)
        assert decisions.contains_at(0)
        assert not decisions.contains_at(1)

    def test_revert(self, decisions):
        decisions.decide(1, 1, None)
        decisions.revert()
        assert len(decisions) == 0
        assert decisions.is_undecided(1)

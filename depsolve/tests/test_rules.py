"""Tests for rules and rule sets"""

import pytest

from depsolve.core.repository import Repository
from depsolve.core.resolution import Pool
from depsolve.core.resolution.rules import Literal, Reason, Rule, RuleSet, RuleType

from helpers import link, make_package


class TestRule:
    """Tests for Rule."""

    def test_literals_sorted_and_distinct(self):
        rule = Rule([3, -1, 2, 3], Reason.UNDEFINED)
        assert rule.literals == (-1, 2, 3)

    def test_equality_ignores_reason(self):
        assert Rule([1, 2], Reason.JOB_INSTALL) == Rule([2, 1], Reason.PACKAGE_REQUIRES)
        assert Rule([1, 2], Reason.UNDEFINED) != Rule([1, 3], Reason.UNDEFINED)
        assert hash(Rule([1, 2], Reason.UNDEFINED)) == hash(Rule([2, 1], Reason.UNDEFINED))

    def test_str(self):
        rule = Rule([1, -2], Reason.UNDEFINED)
        assert str(rule) == "(-2|1)"
        rule.disable()
        assert str(rule) == "disabled(-2|1)"
        rule.enable()
        assert rule.enabled

    def test_is_assertion(self):
        assert Rule([1], Reason.UNDEFINED).is_assertion
        assert not Rule([1, 2], Reason.UNDEFINED).is_assertion

    def test_require_package_name(self):
        requires = link("foo", "bar", ">=", "1.0")
        assert Rule([-1, 2], Reason.PACKAGE_REQUIRES, requires).require_package_name == "bar"
        assert Rule([1], Reason.JOB_INSTALL, "foo").require_package_name == "foo"
        assert Rule([-1, -2], Reason.PACKAGE_CONFLICT, requires).require_package_name is None

    def test_literal_tuple(self):
        assert Literal.from_int(-3) == Literal(3, False)
        assert int(Literal(3, True)) == 3
        assert int(Literal(3, False)) == -3


class TestRulePrettyString:
    """Tests for Rule.pretty_string()."""

    @pytest.fixture
    def pool(self):
        pool = Pool()
        pool.add_repository(Repository([
            make_package("foo", "1.0", requires=[link("foo", "bar", ">=", "1.0")]),
            make_package("bar", "1.0"),
            make_package("bar", "1.1"),
        ]))
        return pool

    def test_requires(self, pool):
        rule = Rule([-1, 2, 3], Reason.PACKAGE_REQUIRES, pool.package_by_id(1).requires[0])
        assert rule.pretty_string(pool) == "foo 1.0 requires bar >= 1.0 -> satisfiable by bar[1.0, 1.1]."

    def test_requires_without_candidates(self, pool):
        requires = link("foo", "baz", ">=", "1.0")
        rule = Rule([-1], Reason.PACKAGE_REQUIRES, requires)
        assert rule.pretty_string(pool) == "foo 1.0 requires baz >= 1.0 -> no matching package found."

    def test_requires_filtered_candidates(self, pool):
        requires = pool.package_by_id(1).requires[0]
        rule = Rule([-1], Reason.PACKAGE_REQUIRES, requires)
        assert rule.pretty_string(pool) == (
            "foo 1.0 requires bar >= 1.0 -> satisfiable by bar[1.0, 1.1] "
            "but these conflict with your requirements or minimum-stability.")

    def test_same_name(self, pool):
        rule = Rule([-2, -3], Reason.PACKAGE_SAME_NAME)
        assert rule.pretty_string(pool) == "Can only install one of: bar[1.1, 1.0]."

    def test_job_rules(self, pool):
        assert Rule([1], Reason.JOB_INSTALL, "foo").pretty_string(pool) == "Install command rule (install foo 1.0)"
        assert Rule([-1], Reason.JOB_UNINSTALL, "foo").pretty_string(pool) == \
            "Uninstall command rule (don't install foo 1.0)"

    def test_installed_literals(self, pool):
        installed = {1: pool.package_by_id(1)}
        rule = Rule([-1, 2], Reason.INTERNAL_ALLOW_UPDATE)
        assert rule.pretty_string(pool, installed) == "uninstall foo 1.0 | install bar 1.0"

    def test_learned(self, pool):
        assert Rule([-1, 2], Reason.LEARNED).pretty_string(pool) == \
            "Conclusion: don't install foo 1.0 | install bar 1.0"


class TestRuleSet:
    """Tests for RuleSet."""

    def test_add_assigns_ids_and_types(self):
        rules = RuleSet()
        first = Rule([1], Reason.JOB_INSTALL)
        second = Rule([-1, 2], Reason.PACKAGE_REQUIRES)

        assert rules.add(first, RuleType.JOB)
        assert rules.add(second, RuleType.PACKAGE)

        assert (first.id, first.type) == (0, RuleType.JOB)
        assert (second.id, second.type) == (1, RuleType.PACKAGE)
        assert rules.rule_by_id(1) is second
        assert len(rules) == 2

    def test_add_skips_duplicates_and_none(self):
        rules = RuleSet()
        assert rules.add(Rule([-1, 2], Reason.PACKAGE_REQUIRES), RuleType.PACKAGE)
        assert not rules.add(Rule([2, -1], Reason.PACKAGE_CONFLICT), RuleType.JOB)
        assert not rules.add(None, RuleType.PACKAGE)
        assert len(rules) == 1
        assert rules[RuleType.JOB] == []

    def test_iteration_by_type(self):
        rules = RuleSet()
        learned = Rule([3], Reason.LEARNED)
        job = Rule([1], Reason.JOB_INSTALL)
        package = Rule([-1, 2], Reason.PACKAGE_REQUIRES)
        rules.add(learned, RuleType.LEARNED)
        rules.add(job, RuleType.JOB)
        rules.add(package, RuleType.PACKAGE)

        assert list(rules) == [package, job, learned]
        assert list(rules.iter_for(RuleType.JOB, RuleType.LEARNED)) == [job, learned]
        assert list(rules.iter_without(RuleType.LEARNED)) == [package, job]

    def test_pretty_string_without_pool(self):
        rules = RuleSet()
        rules.add(Rule([1], Reason.JOB_INSTALL), RuleType.JOB)
        assert str(rules) == "\nPackage : \n\nJob     : (1)\n\n\nLearned : \n\n"

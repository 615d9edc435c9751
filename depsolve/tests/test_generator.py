"""Tests for rule generation"""

import pytest

from depsolve.core.constraint import Constraint
from depsolve.core.repository import InstalledRepository, Repository
from depsolve.core.resolution import Job, JobCommand, Pool, Reason, RuleSetGenerator, RuleType

from helpers import link, make_alias, make_package


def install(name, constraint=None):
    return Job(JobCommand.INSTALL, name, constraint)


def pretty_rules(rules, pool):
    return [rules.rule_by_id(i).pretty_string(pool) for i in range(len(rules))]


class TestRuleSetGenerator:
    """Rule generation for a small dependency chain: unity -> helper -> core."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.pool = Pool()
        provides_logger = [link("acme.core", "logger", "==", "6.8", "provides")]
        self.pool.add_repository(Repository([
            make_package("acme.core", "2.2", provides=provides_logger),
            make_package("acme.helper", "1.6", requires=[link("acme.helper", "acme.core", ">=", "2.0")]),
            make_package("unity", "1.6", requires=[link("unity", "acme.helper", ">=", "1.0")]),
            make_package("logger", "6.8"),
            make_package("acme.core", "3.6", provides=provides_logger),
            make_package("acme.core", "5.2", provides=provides_logger),
        ]))
        self.unity = install("unity", Constraint('>', '1.0.0.0'))

    def test_get_rules_for(self):
        rules = RuleSetGenerator(self.pool).get_rules_for([self.unity], {})

        assert pretty_rules(rules, self.pool) == [
            "unity 1.6 requires acme.helper >= 1.0 -> satisfiable by acme.helper[1.6].",
            "acme.helper 1.6 requires acme.core >= 2.0 -> satisfiable by acme.core[2.2, 3.6, 5.2].",
            "Can only install one of: acme.core[3.6, 2.2].",
            "Can only install one of: acme.core[5.2, 2.2].",
            "Can only install one of: acme.core[5.2, 3.6].",
            "Install command rule (install unity 1.6)",
        ]
        assert len(rules[RuleType.JOB]) == 1

    def test_conflict_rules(self):
        self.pool.add_repository(Repository([
            make_package("acme.conflict", "2.2",
                         conflicts=[link("acme.conflict", "acme.core", "<", "5.0", "conflicts")]),
        ]))
        jobs = [self.unity, install("acme.conflict", Constraint('>', '2.0.0.0'))]

        rules = RuleSetGenerator(self.pool).get_rules_for(jobs, {})

        assert pretty_rules(rules, self.pool) == [
            "unity 1.6 requires acme.helper >= 1.0 -> satisfiable by acme.helper[1.6].",
            "acme.helper 1.6 requires acme.core >= 2.0 -> satisfiable by acme.core[2.2, 3.6, 5.2].",
            "Can only install one of: acme.core[3.6, 2.2].",
            "Can only install one of: acme.core[5.2, 2.2].",
            "Can only install one of: acme.core[5.2, 3.6].",
            "Install command rule (install unity 1.6)",
            "Install command rule (install acme.conflict 2.2)",
            "acme.conflict 2.2 conflicts with acme.core[2.2].",
            "acme.conflict 2.2 conflicts with acme.core[3.6].",
        ]

    def test_replace_rules(self):
        self.pool.add_repository(Repository([
            make_package("acme.replace.helper", "2.6",
                         replaces=[link("acme.replace.helper", "acme.helper", "==", "1.6", "replaces")]),
            make_package("replace.foo", "2.8",
                         requires=[link("replace.foo", "acme.replace.helper", ">=", "1.0")]),
        ]))
        jobs = [self.unity, install("replace.foo", Constraint('>', '2.0.0.0'))]

        rules = RuleSetGenerator(self.pool).get_rules_for(jobs, {})

        assert pretty_rules(rules, self.pool) == [
            "unity 1.6 requires acme.helper >= 1.0 -> satisfiable by acme.helper[1.6], acme.replace.helper[2.6].",
            "acme.helper 1.6 requires acme.core >= 2.0 -> satisfiable by acme.core[2.2, 3.6, 5.2].",
            "don't install acme.replace.helper 2.6 | don't install acme.helper 1.6",
            "Can only install one of: acme.core[3.6, 2.2].",
            "Can only install one of: acme.core[5.2, 2.2].",
            "Can only install one of: acme.core[5.2, 3.6].",
            "Install command rule (install unity 1.6)",
            "replace.foo 2.8 requires acme.replace.helper >= 1.0 -> satisfiable by acme.replace.helper[2.6].",
            "Install command rule (install replace.foo 2.8)",
        ]

    def test_uninstall_rule(self):
        installed = {i: self.pool.package_by_id(i) for i in range(1, len(self.pool) + 1)}
        job = Job(JobCommand.UNINSTALL, "unity", Constraint('>', '1.0.0.0'))

        rules = RuleSetGenerator(self.pool).get_rules_for([job], installed)

        assert pretty_rules(rules, self.pool) == [
            "Can only install one of: acme.core[3.6, 2.2].",
            "Can only install one of: acme.core[5.2, 2.2].",
            "acme.helper 1.6 requires acme.core >= 2.0 -> satisfiable by acme.core[2.2, 3.6, 5.2].",
            "Can only install one of: acme.core[5.2, 3.6].",
            "unity 1.6 requires acme.helper >= 1.0 -> satisfiable by acme.helper[1.6].",
            "Uninstall command rule (don't install unity 1.6)",
        ]

    def test_unknown_package_adds_no_job_rule(self):
        rules = RuleSetGenerator(self.pool).get_rules_for([install("missing")], {})
        assert len(rules) == 0


class TestRuleSetGeneratorExtras:
    """Aliases, updates, fixed jobs and platform requirements."""

    def test_alias_requires_its_target(self):
        pool = Pool()
        repository = Repository()
        package = make_package("foo", "1.0")
        repository.add_package(package)
        alias = make_alias(package, "1.1")
        pool.add_repository(repository)

        rules = RuleSetGenerator(pool).get_rules_for([install("foo", Constraint('==', '1.1.0.0'))], {})

        alias_rules = [rule for rule in rules if rule.reason is Reason.PACKAGE_ALIAS]
        assert [rule.literals for rule in alias_rules] == [(-alias.id, package.id)]
        # an alias never conflicts with its own target
        assert not any(rule.reason is Reason.PACKAGE_SAME_NAME for rule in rules)

    def test_allow_update_rule(self):
        pool = Pool()
        installed = make_package("foo", "1.0")
        update = make_package("foo", "2.0")
        pool.add_repository(InstalledRepository([installed]))
        pool.add_repository(Repository([update]))

        rules = RuleSetGenerator(pool).get_rules_for([], {installed.id: installed}, [installed.id])

        job_rules = rules[RuleType.JOB]
        assert len(job_rules) == 1
        assert job_rules[0].reason is Reason.INTERNAL_ALLOW_UPDATE
        assert job_rules[0].literals == (installed.id, update.id)

    def test_fixed_job_pins_installed_package(self):
        pool = Pool()
        installed = make_package("foo", "1.0")
        pool.add_repository(InstalledRepository([installed]))
        pool.add_repository(Repository([make_package("foo", "2.0")]))
        job = Job(JobCommand.INSTALL, "foo", None, fixed=True)

        rules = RuleSetGenerator(pool).get_rules_for([job], {installed.id: installed})

        assertions = [rule for rule in rules[RuleType.JOB] if rule.is_assertion]
        assert [rule.literals for rule in assertions] == [(installed.id,)]

    def test_ignore_platform_requirements(self):
        pool = Pool()
        foo = make_package("foo", "1.0", requires=[link("foo", "php", ">=", "7.0")])
        pool.add_repository(Repository([foo]))

        rules = RuleSetGenerator(pool).get_rules_for([install("foo"), install("ext-json")], {},
                                                     ignore_platform_reqs=True)

        assert [rule.reason for rule in rules] == [Reason.JOB_INSTALL]

    def test_missing_requirement_gives_assertion(self):
        pool = Pool()
        foo = make_package("foo", "1.0", requires=[link("foo", "bar", ">=", "1.0")])
        pool.add_repository(Repository([foo]))

        rules = RuleSetGenerator(pool).get_rules_for([install("foo")], {})

        assert rules.rule_by_id(0).literals == (-foo.id,)
        assert rules.rule_by_id(0).pretty_string(pool) == \
            "foo 1.0 requires bar >= 1.0 -> no matching package found."

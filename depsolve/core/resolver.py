"""
SAT based dependency solver.

The solver works on the rules produced by RuleSetGenerator:

1. assertion rules (single literal) are decided on level 0
2. install jobs are fulfilled, the policy picks among candidates
3. every remaining rule with an open choice is fulfilled
4. the solution is minimized by retrying older alternatives

Conflicts are analyzed to learn a new rule and backjump. A conflict on
level 0 proves the request unsolvable and produces a Problem.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from .config import SolverConfig
from .constraint import Constraint
from .errors import SolverBugError, SolverProblemsError
from .operations import Operation
from .package import Package, is_platform_package
from .repository import CompositeRepository, InstalledRepository, PlatformRepository, Repository, RootAlias
from .resolution import (
    Decisions, DefaultPolicy, Job, JobCommand, Pool, Problem, Reason, Request, Rule,
    RuleSet, RuleSetGenerator, RuleType, RuleWatchGraph, RuleWatchNode,
)
from .resolution.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class Branch:
    """Alternatives not taken when the policy picked a literal."""
    literals: List[int]
    level: int


class Solver:
    """CDCL solver over package rules."""

    def __init__(self, policy: DefaultPolicy, pool: Pool, installed: Repository,
                 config: Optional[SolverConfig] = None):
        """Initialize solver.

        Args:
            policy: Candidate selection policy
            pool: Pool holding the installed and candidate packages
            installed: Repository of installed packages (already in the pool)
            config: Solver configuration (default: SolverConfig())
        """
        self.policy = policy
        self.pool = pool
        self.installed = installed
        self.config = config or SolverConfig()

        self.rule_set_generator = RuleSetGenerator(pool)
        self.rules = RuleSet()
        self.decisions = Decisions(pool)
        self.watch_graph = RuleWatchGraph()
        self.installed_map: Dict[int, Package] = {}
        self.update_map: Set[int] = set()
        self.problems: List[Problem] = []
        self.branches: List[Branch] = []
        self.learned_pool: List[List[Rule]] = []
        self.jobs: List[Job] = []
        self.propagate_index = 0

        # set once learning asserted a literal derived from a negative decision
        self.learned_positive_literal = False

    @property
    def rule_set_size(self) -> int:
        return len(self.rules)

    def solve(self, request: Request, ignore_platform_reqs: Optional[bool] = None) -> List[Operation]:
        """Solve a request.

        Args:
            request: Jobs to fulfil
            ignore_platform_reqs: Skip platform requirements (default: from config)

        Returns:
            Ordered list of operations

        Raises:
            SolverProblemsError: If the request cannot be fulfilled
        """
        if ignore_platform_reqs is None:
            ignore_platform_reqs = self.config.ignore_platform_reqs

        self.jobs = request.jobs()
        self.problems = []
        self.branches = []
        self.learned_pool = []

        self._setup_installed_map()
        self._setup_update_map()

        self.rules = self.rule_set_generator.get_rules_for(
            self.jobs, self.installed_map, self.update_map, ignore_platform_reqs)
        self._check_for_root_require_problems(ignore_platform_reqs)

        self.decisions = Decisions(self.pool)
        self.watch_graph = RuleWatchGraph()
        for rule in self.rules:
            self.watch_graph.add(RuleWatchNode(rule))

        self._setup_assertion_rule_decisions()

        logger.debug("Resolving requires through SAT")
        start = time.monotonic()
        self._run_sat()
        logger.debug(f"Dependency resolution completed in {time.monotonic() - start:.2f} seconds")

        # installed packages nobody decided on are removed
        for package_id in self.installed_map:
            if self.decisions.is_undecided(package_id):
                self.decisions.decide(-package_id, 0, None)

        if self.problems:
            raise SolverProblemsError(self.problems, self.installed_map)

        transaction = Transaction(self.policy, self.pool, self.installed_map, self.decisions)
        return transaction.get_operations()

    def _setup_installed_map(self):
        self.installed_map = {package.id: package for package in self.installed.packages}

    def _setup_update_map(self):
        self.update_map = set()
        for job in self.jobs:
            if job.command is JobCommand.UPDATE:
                for package in self.pool.what_provides(job.package_name, job.constraint,
                                                       bypass_filters=True):
                    if package.id in self.installed_map:
                        self.update_map.add(package.id)
            elif job.command is JobCommand.UPDATE_ALL:
                self.update_map.update(self.installed_map)

    def _check_for_root_require_problems(self, ignore_platform_reqs: bool):
        for job in self.jobs:
            if job.command is not JobCommand.INSTALL:
                continue
            if ignore_platform_reqs and is_platform_package(job.package_name):
                continue
            if self.pool.what_provides(job.package_name, job.constraint):
                continue

            problem = Problem(self.pool)
            problem.add_rule(Rule([], Reason.UNDEFINED, None, job))
            self.problems.append(problem)

    def _setup_assertion_rule_decisions(self):
        decision_start = len(self.decisions) - 1

        rule_index = 0
        while rule_index < len(self.rules):
            rule = self.rules.rule_by_id(rule_index)
            rule_index += 1
            if not rule.is_assertion or not rule.enabled:
                continue

            literal = rule.literals[0]

            if not self.decisions.is_decided(literal):
                self.decisions.decide(literal, 0, rule)
                continue

            if self.decisions.is_satisfy(literal):
                continue

            if rule.type is RuleType.LEARNED:
                rule.disable()
                continue

            conflict = self.decisions.decision_reason(literal)
            problem = Problem(self.pool)
            problem.add_rule(rule)
            problem.add_rule(conflict)

            if conflict is not None and conflict.type is RuleType.PACKAGE:
                self._disable_problem(rule)
                self.problems.append(problem)
                continue

            # conflict with another job
            for assert_rule in self.rules.iter_for(RuleType.JOB):
                if not assert_rule.enabled or not assert_rule.is_assertion:
                    continue
                if abs(literal) != abs(assert_rule.literals[0]):
                    continue
                problem.add_rule(assert_rule)
                self._disable_problem(assert_rule)

            self.problems.append(problem)
            self.decisions.revert_to_position(decision_start)
            rule_index = 0

    def _disable_problem(self, why: Rule):
        job = why.job
        if job is None:
            why.disable()
            return

        # disable every rule of that job
        for rule in self.rules:
            if rule.job == job:
                rule.disable()

    def _propagate(self, level: int) -> Optional[Rule]:
        while self.decisions.contains_at(self.propagate_index):
            literal, _ = self.decisions.at(self.propagate_index)
            conflict = self.watch_graph.propagate_literal(literal, level, self.decisions)
            self.propagate_index += 1
            if conflict is not None:
                return conflict
        return None

    def _revert(self, level: int):
        while len(self.decisions):
            literal = self.decisions.last_literal()
            if self.decisions.is_undecided(literal):
                break
            if self.decisions.decision_level(literal) <= level:
                break
            self.decisions.revert_last()
            self.propagate_index = len(self.decisions)

        while self.branches and self.branches[-1].level >= level:
            self.branches.pop()

    def _set_propagate_learn(self, level: int, literal: int, rule: Optional[Rule]) -> Optional[int]:
        """Decide a literal one level up and propagate, learning from conflicts.

        Returns:
            The new level, or None when the request proved unsolvable
        """
        level += 1
        self.decisions.decide(literal, level, rule)

        while True:
            rule = self._propagate(level)
            if rule is None:
                break

            if level == 0:
                self._analyze_unsolvable(rule)
                return None

            learn_literal, new_level, new_rule, why = self._analyze(level, rule)

            if new_level < 0 or new_level >= level:
                raise SolverBugError(f"Trying to revert to invalid level {new_level} from level {level}.")
            if new_rule is None:
                raise SolverBugError(f"No rule was learned from analyzing {rule} at level {level}.")

            level = new_level
            self._revert(level)
            self.rules.add(new_rule, RuleType.LEARNED)
            logger.debug(f"Learned {new_rule}, backjumping to level {level}")

            node = RuleWatchNode(new_rule)
            node.watch2_on_highest(self.decisions)
            self.watch_graph.add(node)
            self.decisions.decide(learn_literal, level, new_rule)

        return level

    def _select_and_install(self, level: int, decision_queue: List[int], rule: Rule) -> Optional[int]:
        literals = self.policy.select_preferred_packages(
            self.pool, self.installed_map, decision_queue, rule.require_package_name)

        selected = literals[0]
        if len(literals) > 1:
            self.branches.append(Branch(literals[1:], level))

        return self._set_propagate_learn(level, selected, rule)

    def _analyze(self, level: int, rule: Rule) -> Tuple[int, int, Rule, int]:
        """Derive a learned rule from a conflict.

        Walks the decisions backwards until only one literal of the
        conflict level is left (first unique implication point).

        Returns:
            (literal to decide, level to backjump to, learned rule, learned pool index)
        """
        analyzed_rule = rule
        rule_level = 0
        num = 0
        level0_num = 0
        seen: Set[int] = set()
        learned_literals = [0]

        decision_id = len(self.decisions)
        learned_pool_rules: List[Rule] = []
        self.learned_pool.append(learned_pool_rules)

        done = False
        while not done:
            learned_pool_rules.append(rule)

            for literal in rule.literals:
                # skip the one true literal
                if self.decisions.is_satisfy(literal) or abs(literal) in seen:
                    continue
                seen.add(abs(literal))

                decision_level = self.decisions.decision_level(literal)
                if decision_level == 0:
                    level0_num += 1
                elif decision_level == level:
                    num += 1
                else:
                    # neither level 0 nor the conflict level
                    learned_literals.append(literal)
                    if decision_level > rule_level:
                        rule_level = decision_level

            retry = True
            while retry and not done:
                retry = False
                if num == 0:
                    level0_num -= 1
                    if level0_num == 0:
                        done = True
                        break

                while True:
                    if decision_id <= 0:
                        raise SolverBugError(
                            f"Reached invalid decision id {decision_id} while looking through {rule} "
                            f"for a literal present in the analyzed rule {analyzed_rule}.")
                    decision_id -= 1
                    literal, _ = self.decisions.at(decision_id)
                    if abs(literal) in seen:
                        break

                seen.discard(abs(literal))

                if num > 0:
                    num -= 1
                    if num == 0:
                        if literal < 0:
                            self.learned_positive_literal = True

                        learned_literals[0] = -literal
                        if level0_num == 0:
                            done = True
                            break

                        for learned_literal in learned_literals[1:]:
                            seen.discard(abs(learned_literal))

                        # only level 0 marks left
                        level0_num += 1
                        retry = True

            if not done:
                rule = self.decisions.at(decision_id)[1]

        why = len(self.learned_pool) - 1
        if learned_literals[0] == 0:
            raise SolverBugError(f"Did not find a learnable literal in analyzed rule {analyzed_rule}.")

        new_rule = Rule(learned_literals, Reason.LEARNED, why)
        return learned_literals[0], rule_level, new_rule, why

    def _analyze_unsolvable_rule(self, problem: Problem, conflict_rule: Rule):
        stack = [conflict_rule]
        while stack:
            rule = stack.pop()
            if rule.type is RuleType.LEARNED:
                # expand in order
                stack.extend(reversed(self.learned_pool[rule.reason_data]))
                continue
            if rule.type is RuleType.PACKAGE:
                # package rules are never part of a problem
                continue
            problem.next_section()
            problem.add_rule(rule)

    def _analyze_unsolvable(self, conflict_rule: Rule):
        problem = Problem(self.pool)
        problem.add_rule(conflict_rule)
        self._analyze_unsolvable_rule(problem, conflict_rule)
        self.problems.append(problem)

        seen: Set[int] = set()

        def add_seen(literals):
            for literal in literals:
                # skip the one true literal
                if self.decisions.is_satisfy(literal):
                    continue
                seen.add(abs(literal))

        add_seen(conflict_rule.literals)

        for literal, reason in self.decisions:
            if abs(literal) not in seen or reason is None:
                continue
            problem.add_rule(reason)
            self._analyze_unsolvable_rule(problem, reason)
            add_seen(reason.literals)

    def _run_sat(self):
        self.propagate_index = 0

        # main loop:
        # 1. propagate new decisions (only needed once)
        # 2. fulfill jobs
        # 3. fulfill all unresolved rules
        # 4. minimize the solution if there were choices
        # a conflict rewinds to a safe level and restarts with step 1
        level = 0
        system_level = level + 1

        while True:
            if level == 0:
                conflict_rule = self._propagate(level)
                if conflict_rule is not None:
                    self._analyze_unsolvable(conflict_rule)
                    return

            # job rules
            if level < system_level:
                job_rules = self.rules[RuleType.JOB]
                jobs_left = False
                for index, rule in enumerate(job_rules):
                    if not rule.enabled:
                        continue

                    decision_queue = []
                    none_satisfied = True
                    for literal in rule.literals:
                        if self.decisions.is_satisfy(literal):
                            none_satisfied = False
                            break
                        if literal > 0 and self.decisions.is_undecided(literal):
                            decision_queue.append(literal)

                    if none_satisfied and decision_queue and len(self.installed) != len(self.update_map):
                        # keep installed versions unless an update was requested
                        pruned = []
                        for literal in decision_queue:
                            if abs(literal) not in self.installed_map:
                                continue
                            pruned.append(literal)
                            if abs(literal) in self.update_map:
                                pruned = decision_queue
                                break
                        decision_queue = pruned

                    if none_satisfied and decision_queue:
                        old_level = level
                        level = self._select_and_install(level, decision_queue, rule)
                        if level is None:
                            return
                        if level <= old_level:
                            jobs_left = index + 1 < len(job_rules)
                            break

                system_level = level + 1
                if jobs_left:
                    continue

            if level < system_level:
                system_level = level

            rules_count = len(self.rules)
            passes = 1
            i = 0
            n = 0
            while n < rules_count:
                if i == rules_count:
                    logger.debug(f"Something's changed, looking at all rules again (pass #{passes})")
                    i = 0
                    passes += 1

                rule = self.rules.rule_by_id(i)
                i += 1
                n += 1
                if not rule.enabled:
                    continue

                # all negative literals installed and no positive one:
                # only the positive literals are left to decide on
                decision_queue = []
                fulfilled = False
                for literal in rule.literals:
                    if literal <= 0:
                        if not self.decisions.is_decided_install(literal):
                            fulfilled = True
                            break
                    else:
                        if self.decisions.is_decided_install(literal):
                            fulfilled = True
                            break
                        if self.decisions.is_undecided(literal):
                            decision_queue.append(literal)

                # need at least two candidates to pick from
                if fulfilled or len(decision_queue) < 2:
                    continue

                level = self._select_and_install(level, decision_queue, rule)
                if level is None:
                    return

                # something changed, look at all rules again
                rules_count = len(self.rules)
                n = 0

            logger.debug("Looked at all rules")

            if level < system_level:
                continue

            # minimization
            if not self.branches:
                break

            last_literal = 0
            last_level = 0
            last_branch_index = 0
            last_branch_offset = 0
            for branch_index in range(len(self.branches) - 1, -1, -1):
                branch = self.branches[branch_index]
                for offset, literal in enumerate(branch.literals):
                    if literal <= 0 or self.decisions.decision_level(literal) <= branch.level + 1:
                        continue
                    last_literal = literal
                    last_branch_index = branch_index
                    last_branch_offset = offset
                    last_level = branch.level

            if last_literal == 0:
                break

            del self.branches[last_branch_index].literals[last_branch_offset]

            level = last_level
            self._revert(level)
            reason = self.decisions.last_reason() if len(self.decisions) else None
            level = self._set_propagate_learn(level, last_literal, reason)
            if level is None:
                return


@dataclass
class Resolution:
    """Result of dependency resolution."""
    success: bool
    operations: List[Operation]
    problems: List[str]
    message: str = ""
    exit_code: int = 0


class Resolver:
    """Pool and solver set up around a set of repositories."""

    def __init__(self, repositories: List[Repository], installed: Optional[InstalledRepository] = None,
                 platform: Optional[PlatformRepository] = None, config: Optional[SolverConfig] = None,
                 root_aliases: Optional[List[RootAlias]] = None):
        """Initialize resolver.

        Args:
            repositories: Remote repositories, highest priority first
            installed: Installed packages (default: none)
            platform: Platform packages (default: none)
            config: Solver configuration
            root_aliases: Aliases requested by the root manifest
        """
        self.repositories = list(repositories)
        self.installed = installed if installed is not None else InstalledRepository()
        self.platform = platform
        self.config = config or SolverConfig()
        self.root_aliases = list(root_aliases or [])
        self.pool: Optional[Pool] = None

    def create_pool(self) -> Pool:
        """Build a pool: installed first, then platform, then repositories."""
        pool = Pool.from_config(self.config)
        pool.add_repository(self.installed, self.root_aliases)
        if self.platform is not None:
            pool.add_repository(self.platform)
        for repository in self.repositories:
            pool.add_repository(repository, self.root_aliases)
        return pool

    def resolve(self, request: Request) -> Resolution:
        """Resolve a request.

        Args:
            request: Jobs to fulfil

        Returns:
            Resolution with the ordered operations, or the problems found
        """
        # the whitelist and query cache belong to a single solve
        self.pool = self.create_pool()

        policy = DefaultPolicy.from_config(self.config)
        installed: Repository = self.installed
        if self.platform is not None:
            installed = CompositeRepository([self.installed, self.platform])
            request = self._fix_platform_packages(request)
        solver = Solver(policy, self.pool, installed, self.config)

        try:
            operations = solver.solve(request)
        except SolverProblemsError as e:
            problems = [problem.pretty_string(e.installed_map) for problem in e.problems]
            return Resolution(False, [], problems, message=str(e), exit_code=e.exit_code)

        logger.debug(f"Resolved {len(request)} jobs into {len(operations)} operations")
        return Resolution(True, operations, [])

    def _fix_platform_packages(self, request: Request) -> Request:
        """Copy a request, pinning every platform package to its version."""
        fixed = Request()
        for job in request.jobs():
            fixed.add(job)

        # platform packages are never installed, updated or removed
        for package in self.platform:
            constraint = Constraint('==', package.version)
            constraint.set_pretty_string(package.pretty_version)
            fixed.fix(package.name, constraint)
        return fixed

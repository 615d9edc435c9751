"""Rule generation: turns packages and jobs into solver rules."""

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set

from ..package import AliasPackage, Link, Package, is_platform_package
from .pool import Pool, PoolMatch
from .request import Job, JobCommand
from .rules import Reason, Rule, RuleSet, RuleType

logger = logging.getLogger(__name__)


def create_require_rule(package: Package, providers: List[Package], reason: Reason,
                        reason_data=None) -> Optional[Rule]:
    """(-package | provider1 | provider2 ...), None if package provides itself."""
    literals = [-package.id]
    for provider in providers:
        if provider is package:
            return None
        literals.append(provider.id)
    return Rule(literals, reason, reason_data)


def create_two_literals_rule(issuer: Package, provider: Package, reason: Reason,
                             reason_data=None) -> Optional[Rule]:
    """(-issuer | -provider), None if both are the same package."""
    if issuer is provider:
        return None
    return Rule([-issuer.id, -provider.id], reason, reason_data)


def is_obsolete_impossible_for_alias(package: Package, provider: Package) -> bool:
    """An alias never obsoletes its own target or another alias of it."""
    package_alias = isinstance(package, AliasPackage)
    provider_alias = isinstance(provider, AliasPackage)
    return ((package_alias and package.alias_of is provider)
            or (provider_alias and provider.alias_of is package)
            or (package_alias and provider_alias and package.alias_of is provider.alias_of))


class RuleSetGenerator:
    """Builds the RuleSet for a request."""

    def __init__(self, pool: Pool):
        self.pool = pool
        self.rules = RuleSet()
        self._added_packages: Dict[int, Package] = {}
        self._added_packages_by_names: Dict[str, List[Package]] = {}
        self._installed_map: Dict[int, Package] = {}

    def get_rules_for(self, jobs: List[Job], installed_map: Dict[int, Package],
                      update_map: Iterable[int] = (), ignore_platform_reqs: bool = False) -> RuleSet:
        """Generate every rule needed to solve the jobs.

        Args:
            jobs: Request jobs
            installed_map: Installed packages by id
            update_map: Ids of installed packages allowed to be updated
            ignore_platform_reqs: Skip requirements on platform packages

        Returns:
            Generated rules
        """
        self.rules = RuleSet()
        self._installed_map = installed_map
        update_map = set(update_map)

        self.pool.set_whitelist(None)
        installed = list(installed_map.values())
        whitelist = self._whitelist_from_packages(installed)
        self._whitelist_from_jobs(jobs, whitelist)
        for package_id in update_map:
            self._whitelist_from_packages(
                self.pool.what_provides(installed_map[package_id].name, None, must_match_name=True),
                whitelist)
        self.pool.set_whitelist(whitelist)
        logger.debug(f"Whitelisted {len(whitelist)} of {len(self.pool)} packages")

        self._add_rules_for_packages(installed, ignore_platform_reqs)
        self._add_rules_for_jobs(jobs, update_map, ignore_platform_reqs)
        self._add_conflict_rules()

        self._added_packages.clear()
        self._added_packages_by_names.clear()

        logger.debug(f"Generated {len(self.rules)} rules "
                     f"({len(self.rules[RuleType.PACKAGE])} package, {len(self.rules[RuleType.JOB])} job)")
        return self.rules

    def _whitelist_from_packages(self, packages: Iterable[Package],
                                 whitelist: Optional[Set[int]] = None) -> Set[int]:
        whitelist = whitelist if whitelist is not None else set()
        queue = deque(packages)
        while queue:
            package = queue.popleft()
            if package.id in whitelist:
                continue
            whitelist.add(package.id)

            for link in package.requires:
                queue.extend(self.pool.what_provides(link.target, link.constraint, must_match_name=True))

            if isinstance(package, AliasPackage):
                for provider in self.pool.what_provides(package.name, None, must_match_name=True):
                    if provider is package.alias_of:
                        queue.append(provider)
        return whitelist

    def _whitelist_from_jobs(self, jobs: List[Job], whitelist: Set[int]) -> Set[int]:
        for job in jobs:
            if job.command is not JobCommand.INSTALL:
                continue
            packages = self.pool.what_provides(job.package_name, job.constraint, must_match_name=True)
            self._whitelist_from_packages(packages, whitelist)
        return whitelist

    def _add_rules_for_packages(self, packages: Iterable[Package], ignore_platform_reqs: bool):
        # each package is fully expanded before the next one starts
        for root in packages:
            self._add_rules_for_package(root, ignore_platform_reqs)

    def _add_rules_for_package(self, root: Package, ignore_platform_reqs: bool):
        queue = deque([root])
        while queue:
            package = queue.popleft()
            if package.id in self._added_packages:
                continue
            self._added_packages[package.id] = package

            for name in package.names:
                self._added_packages_by_names.setdefault(name, []).append(package)

            for link in package.requires:
                if ignore_platform_reqs and is_platform_package(link.target):
                    continue
                possible = self.pool.what_provides(link.target, link.constraint)
                self.rules.add(create_require_rule(package, possible, Reason.PACKAGE_REQUIRES, link),
                               RuleType.PACKAGE)
                queue.extend(possible)

            for provider in self.pool.what_provides(package.name):
                if provider is package:
                    continue
                if isinstance(package, AliasPackage) and package.alias_of is provider:
                    self.rules.add(create_require_rule(package, [provider], Reason.PACKAGE_ALIAS, package),
                                   RuleType.PACKAGE)
                elif not is_obsolete_impossible_for_alias(package, provider):
                    if package.name == provider.name:
                        reason = Reason.PACKAGE_SAME_NAME
                    else:
                        reason = Reason.PACKAGE_IMPLICIT_OBSOLETES
                    self.rules.add(create_two_literals_rule(package, provider, reason, package),
                                   RuleType.PACKAGE)

    def _add_rules_for_jobs(self, jobs: List[Job], update_map: Set[int], ignore_platform_reqs: bool):
        uninstalled: Set[int] = set()

        for job in jobs:
            if job.command is JobCommand.INSTALL:
                if not job.fixed and ignore_platform_reqs and is_platform_package(job.package_name):
                    continue

                packages = self.pool.what_provides(job.package_name, job.constraint)
                if not packages:
                    continue

                # requirements first
                self._add_rules_for_packages(packages, ignore_platform_reqs)
                rule = Rule([p.id for p in packages], Reason.JOB_INSTALL, job.package_name, job)
                self.rules.add(rule, RuleType.JOB)

                if job.fixed:
                    for package in packages:
                        if package.id in self._installed_map:
                            self.rules.add(Rule([package.id], Reason.JOB_INSTALL, job.package_name, job),
                                           RuleType.JOB)

            elif job.command is JobCommand.UNINSTALL:
                # every match, installed or not, so none is picked as a replacement
                for package in self.pool.what_provides(job.package_name, job.constraint):
                    uninstalled.add(package.id)
                    self.rules.add(Rule([-package.id], Reason.JOB_UNINSTALL, job.package_name, job),
                                   RuleType.JOB)

        for package_id, package in self._installed_map.items():
            if package_id not in update_map or package_id in uninstalled:
                continue

            updates = [c for c in self.pool.what_provides(package.name) if c is not package]
            if not updates:
                continue

            self._add_rules_for_packages(updates, ignore_platform_reqs)
            rule = Rule([package_id] + [u.id for u in updates], Reason.INTERNAL_ALLOW_UPDATE, package)
            self.rules.add(rule, RuleType.JOB)

    def _add_conflict_rules(self):
        for package in list(self._added_packages.values()):
            for link in package.conflicts:
                for candidate in self._added_packages_by_names.get(link.target, []):
                    match = self.pool.match(candidate, link.target, link.constraint, bypass_filters=True)
                    if match in (PoolMatch.MATCH, PoolMatch.REPLACE):
                        self.rules.add(create_two_literals_rule(package, candidate, Reason.PACKAGE_CONFLICT, link),
                                       RuleType.PACKAGE)

            # replaced packages can not be installed next to their replacer
            is_installed = package.id in self._installed_map
            for link in package.replaces:
                for provider in self._added_packages_by_names.get(link.target, []):
                    if provider is package or is_obsolete_impossible_for_alias(package, provider):
                        continue
                    reason = Reason.INSTALLED_PACKAGE_OBSOLETES if is_installed else Reason.PACKAGE_OBSOLETES
                    self.rules.add(create_two_literals_rule(package, provider, reason, link),
                                   RuleType.PACKAGE)

"""Package pool: id assignment and "what provides" queries."""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..constraint import BaseConstraint, Constraint, EmptyConstraint
from ..errors import UnknownRepositoryError
from ..package import AliasPackage, Package, is_platform_package
from ..repository import InstalledRepository, PlatformRepository, Repository, RootAlias
from ..version import Stability
from .rules import Literal

logger = logging.getLogger(__name__)


class PoolMatch(Enum):
    """How a candidate package relates to a queried name."""
    NAME = "name"            # right name, constraint not satisfied
    NONE = "none"            # unrelated
    MATCH = "match"          # right name and version
    PROVIDE = "provide"      # provides the name
    REPLACE = "replace"      # replaces the name
    FILTERED = "filtered"    # matched, then rejected by filter_requires


class Pool:
    """Index of every candidate package known to the resolver.

    Packages get sequential ids starting at 1 in the order repositories
    and their packages are added. Repositories added first have the
    highest priority.
    """

    def __init__(self, minimum_stability: Stability = Stability.STABLE,
                 stability_flags: Optional[Dict[str, Stability]] = None,
                 filter_requires: Optional[Dict[str, BaseConstraint]] = None):
        """Initialize pool.

        Args:
            minimum_stability: Least stable tier accepted for remote packages
            stability_flags: Per package name stability overrides
            filter_requires: Per package name constraint applied to every
                query, platform names are ignored
        """
        self.minimum_stability = minimum_stability
        self.stability_flags = {k.lower(): v for k, v in (stability_flags or {}).items()}
        self.filter_requires = {
            k.lower(): v for k, v in (filter_requires or {}).items()
            if not is_platform_package(k)
        }

        self.packages: List[Package] = []
        self.repositories: List[Repository] = []
        self._by_name: Dict[str, List[Package]] = {}
        self._by_name_exact: Dict[str, List[Package]] = {}
        self._provider_cache: Dict[Tuple[str, bool, Optional[str]], List[Package]] = {}
        self._whitelist: Optional[set] = None

    @classmethod
    def from_config(cls, config) -> 'Pool':
        """Build a pool from a SolverConfig."""
        return cls(config.minimum_stability, config.stability_flags, config.filter_requires)

    def __len__(self):
        return len(self.packages)

    def set_whitelist(self, whitelist: Optional[Iterable[int]]):
        """Restrict what_provides() results to the given package ids."""
        self._whitelist = set(whitelist) if whitelist is not None else None
        self._provider_cache.clear()

    def _index(self, package: Package):
        package.id = len(self.packages) + 1
        self.packages.append(package)
        self._by_name_exact.setdefault(package.name, []).append(package)
        for name in package.names:
            self._by_name.setdefault(name, []).append(package)

    def add_repository(self, repository: Repository, root_aliases: Optional[List[RootAlias]] = None):
        """Add a repository and index its packages.

        Args:
            repository: Repository to add
            root_aliases: Aliases requested by the root manifest; a matching
                package gets an extra AliasPackage right after it
        """
        self.repositories.append(repository)
        aliases = {(a.package.lower(), a.version): a for a in (root_aliases or [])}

        # root aliases left in the repository by an earlier pool are reused
        created = {(id(p.alias_of), p.version): p for p in repository.packages
                   if isinstance(p, AliasPackage) and p.is_root_package_alias}

        for package in repository.packages:
            if self._is_requested_root_alias(package, aliases):
                continue
            self._index(package)

            alias = aliases.get((package.name, package.version))
            if alias is None:
                continue

            original = package.alias_of if isinstance(package, AliasPackage) else package
            alias_package = created.get((id(original), alias.alias_normalized))
            if alias_package is None:
                alias_package = AliasPackage(original, alias.alias_normalized, alias.alias)
                alias_package.is_root_package_alias = True
                original.repository.add_package(alias_package)
                logger.debug(f"Added root alias {alias_package} for {original}")
            self._index(alias_package)

        logger.debug(f"Added {type(repository).__name__} with {len(repository)} packages, "
                     f"pool now holds {len(self.packages)}")

    @staticmethod
    def _is_requested_root_alias(package: Package, aliases: Dict[Tuple[str, str], RootAlias]) -> bool:
        """A root alias is indexed right after its target, never on its own."""
        if not isinstance(package, AliasPackage) or not package.is_root_package_alias:
            return False
        alias = aliases.get((package.alias_of.name, package.alias_of.version))
        return alias is not None and alias.alias_normalized == package.version

    def get_priority(self, repository: Repository) -> int:
        """Get the priority of a repository, 0 is the highest."""
        for index, repo in enumerate(self.repositories):
            if repo is repository:
                return -index
        raise UnknownRepositoryError(
            "Could not determine repository priority. "
            "The repository was not registered in the pool.")

    def package_by_id(self, package_id: int) -> Package:
        return self.packages[package_id - 1]

    def package_by_literal(self, literal: int) -> Package:
        return self.package_by_id(abs(literal))

    def literal_to_pretty_string(self, literal: int, installed_map: Optional[Dict[int, Package]] = None) -> str:
        lit = Literal.from_int(literal)
        package = self.package_by_id(lit.package_id)
        if installed_map is not None and package.id in installed_map:
            prefix = "keep" if lit.positive else "uninstall"
        else:
            prefix = "install" if lit.positive else "don't install"
        return f"{prefix} {package.pretty_string}"

    def is_package_acceptable(self, stability: Stability, names: Iterable[str]) -> bool:
        """Check a stability against the minimum stability and per name flags."""
        for name in names:
            flag = self.stability_flags.get(name)
            if flag is None:
                if stability <= self.minimum_stability:
                    return True
            elif stability <= flag:
                return True
        return False

    @staticmethod
    def _is_exempt(package: Package) -> bool:
        return isinstance(package.repository, (InstalledRepository, PlatformRepository))

    def match(self, candidate: Package, name: str, constraint: Optional[BaseConstraint] = None,
              bypass_filters: bool = False) -> PoolMatch:
        """Check how a candidate matches a name and constraint."""
        require_filter = None
        if not bypass_filters and not candidate.is_dev and not isinstance(candidate, AliasPackage):
            require_filter = self.filter_requires.get(name)
        if require_filter is None:
            require_filter = EmptyConstraint()

        if candidate.name == name:
            package_constraint = Constraint('==', candidate.version)
            if constraint is None or constraint.matches(package_constraint):
                if require_filter.matches(package_constraint):
                    return PoolMatch.MATCH
                return PoolMatch.FILTERED
            return PoolMatch.NAME

        for link in candidate.provides:
            if link.target == name and (constraint is None or constraint.matches(link.constraint)):
                if require_filter.matches(link.constraint):
                    return PoolMatch.PROVIDE
                return PoolMatch.FILTERED

        for link in candidate.replaces:
            if link.target == name and (constraint is None or constraint.matches(link.constraint)):
                if require_filter.matches(link.constraint):
                    return PoolMatch.REPLACE
                return PoolMatch.FILTERED

        return PoolMatch.NONE

    def what_provides(self, name: str, constraint: Optional[BaseConstraint] = None,
                      must_match_name: bool = False, bypass_filters: bool = False) -> List[Package]:
        """Find packages providing a name.

        Args:
            name: Package name or virtual name to search for
            constraint: Constraint every result must match
            must_match_name: Only return packages with exactly this name
            bypass_filters: Ignore whitelist, stability and filter_requires

        Returns:
            Matching packages; providers are dropped when a package
            with that exact name exists
        """
        name = name.lower()
        if bypass_filters:
            return self._compute_what_provides(name, constraint, must_match_name, True)

        key = (name, must_match_name, str(constraint) if constraint is not None else None)
        cached = self._provider_cache.get(key)
        if cached is None:
            cached = self._compute_what_provides(name, constraint, must_match_name, False)
            self._provider_cache[key] = cached
        return cached

    def _compute_what_provides(self, name: str, constraint: Optional[BaseConstraint],
                               must_match_name: bool, bypass_filters: bool) -> List[Package]:
        if must_match_name:
            candidates = self._by_name_exact.get(name, [])
        else:
            candidates = self._by_name.get(name, [])

        name_match = False
        matches = []
        provides = []
        for candidate in candidates:
            if not bypass_filters:
                if self._whitelist is not None:
                    target = candidate.alias_of if isinstance(candidate, AliasPackage) else candidate
                    if target.id not in self._whitelist:
                        continue
                if not self._is_exempt(candidate) and \
                        not self.is_package_acceptable(candidate.stability, candidate.names):
                    continue

            result = self.match(candidate, name, constraint, bypass_filters)
            if result is PoolMatch.NAME:
                name_match = True
            elif result is PoolMatch.MATCH:
                name_match = True
                matches.append(candidate)
            elif result is PoolMatch.PROVIDE:
                provides.append(candidate)
            elif result is PoolMatch.REPLACE:
                matches.append(candidate)

        # a package with the exact name hides mere providers
        if name_match:
            return matches
        return matches + provides

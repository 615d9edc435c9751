"""Package selection policy.

When the solver has to choose between several candidates, the policy
orders them: installed packages first, then repository priority, then the
best version (highest, or lowest with prefer_lowest).
"""

from functools import cmp_to_key
from typing import Dict, List, Optional

from ..constraint import Constraint
from ..package import AliasPackage, Package
from .pool import Pool


class DefaultPolicy:
    """Default candidate ordering."""

    def __init__(self, prefer_stable: bool = False, prefer_lowest: bool = False):
        self.prefer_stable = prefer_stable
        self.prefer_lowest = prefer_lowest

    @classmethod
    def from_config(cls, config) -> 'DefaultPolicy':
        return cls(config.prefer_stable, config.prefer_lowest)

    def version_compare(self, left: Package, op: str, right: Package) -> bool:
        """Compare two packages' versions, stability first with prefer_stable."""
        if self.prefer_stable and left.stability != right.stability:
            return left.stability < right.stability

        constraint = Constraint(op, right.version)
        return constraint.match_specific(Constraint('==', left.version), True)

    def find_update_packages(self, pool: Pool, installed_map: Dict[int, Package],
                             package: Package) -> List[Package]:
        """Packages that could replace an installed package."""
        return [candidate for candidate in pool.what_provides(package.name)
                if candidate is not package]

    def select_preferred_packages(self, pool: Pool, installed_map: Dict[int, Package],
                                  literals: List[int],
                                  require_package_name: Optional[str] = None) -> List[int]:
        """Order candidate literals, most preferred first.

        Args:
            pool: Package pool
            installed_map: Installed packages by id
            literals: Candidate literals
            require_package_name: Name being required, used to prefer
                replacers from the same vendor

        Returns:
            Pruned and sorted literals
        """
        groups = self._group_by_name_prefer_installed(pool, installed_map, literals)

        group_key = cmp_to_key(self._comparator(pool, installed_map, require_package_name, True))
        selected = []
        for group in groups.values():
            group.sort(key=group_key)
            group = self._prune_to_highest_priority_or_installed(pool, installed_map, group)
            group = self._prune_to_best_version(pool, group)
            group = self._prune_remote_aliases(pool, group)
            selected.extend(group)

        # sort across names again so replaces are respected
        selected.sort(key=cmp_to_key(self._comparator(pool, installed_map, require_package_name)))
        return selected

    @staticmethod
    def _group_by_name_prefer_installed(pool: Pool, installed_map: Dict[int, Package],
                                        literals: List[int]) -> Dict[str, List[int]]:
        groups: Dict[str, List[int]] = {}
        for literal in literals:
            name = pool.package_by_literal(literal).name
            group = groups.setdefault(name, [])
            if abs(literal) in installed_map:
                group.insert(0, literal)
            else:
                group.append(literal)
        return groups

    @staticmethod
    def _prune_to_highest_priority_or_installed(pool: Pool, installed_map: Dict[int, Package],
                                                literals: List[int]) -> List[int]:
        selected = []
        priority = None
        for literal in literals:
            package = pool.package_by_literal(literal)
            if package.id in installed_map:
                selected.append(literal)
                continue

            # candidates are sorted, the first one has the highest priority
            package_priority = pool.get_priority(package.repository)
            if priority is None:
                priority = package_priority
            if package_priority != priority:
                break

            selected.append(literal)
        return selected

    def _prune_to_best_version(self, pool: Pool, literals: List[int]) -> List[int]:
        op = '<' if self.prefer_lowest else '>'
        best_literals = [literals[0]]
        best_package = pool.package_by_literal(literals[0])

        for literal in literals[1:]:
            package = pool.package_by_literal(literal)
            if self.version_compare(package, op, best_package):
                best_package = package
                best_literals = [literal]
            elif self.version_compare(package, '==', best_package):
                best_literals.append(literal)

        return best_literals

    @staticmethod
    def _prune_remote_aliases(pool: Pool, literals: List[int]) -> List[int]:
        for literal in literals:
            package = pool.package_by_literal(literal)
            if isinstance(package, AliasPackage) and package.is_root_package_alias:
                return [literal]
        return literals

    @staticmethod
    def _comparator(pool: Pool, installed_map: Dict[int, Package],
                    require_package_name: Optional[str] = None, ignore_replace: bool = False):
        def replaces(source: Package, target: Package) -> bool:
            return any(link.target == target.name for link in source.replaces)

        def compare(x: int, y: int) -> int:
            left = pool.package_by_literal(x)
            right = pool.package_by_literal(y)

            if left.repository is not right.repository:
                if left.id in installed_map:
                    return -1
                if right.id in installed_map:
                    return 1
                if pool.get_priority(left.repository) > pool.get_priority(right.repository):
                    return -1
                return 1

            # aliases before the original package
            if left.name == right.name:
                left_alias = isinstance(left, AliasPackage)
                right_alias = isinstance(right, AliasPackage)
                if left_alias and not right_alias:
                    return -1
                if right_alias and not left_alias:
                    return 1

            if not ignore_replace:
                # the replaced package goes first
                if replaces(left, right):
                    return 1
                if replaces(right, left):
                    return -1

                # then replacers from the vendor of the required package
                if require_package_name and '/' in require_package_name:
                    position = require_package_name.index('/')
                    vendor = require_package_name[:position]
                    left_same = len(left.name) > position and left.name[:position] == vendor
                    right_same = len(right.name) > position and right.name[:position] == vendor
                    if left_same != right_same:
                        return -1 if left_same else 1

            return (left.id > right.id) - (left.id < right.id)

        return compare

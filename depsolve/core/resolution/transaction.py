"""Turns solver decisions into an ordered list of operations."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..operations import (
    InstallOperation, MarkAliasInstalledOperation, MarkAliasUninstalledOperation, Operation,
    UninstallOperation, UpdateOperation,
)
from ..package import AliasPackage, Package
from .decisions import Decisions
from .policy import DefaultPolicy
from .pool import Pool
from .rules import Rule


@dataclass
class _Pending:
    package: Package
    reason: Optional[Rule]
    source: Optional[Package] = None


class Transaction:
    """Operation ordering.

    A positive literal on an installed package means keep, on any other
    package install. A negative literal on an installed package means
    uninstall, on any other package don't install.
    """

    def __init__(self, policy: DefaultPolicy, pool: Pool, installed_map: Dict[int, Package],
                 decisions: Decisions):
        self.policy = policy
        self.pool = pool
        self.installed_map = installed_map
        self.decisions = decisions
        self._operations: List[Operation] = []

    def get_operations(self) -> List[Operation]:
        install_means_update = self._find_updates()

        ignore_uninstall = set()
        install_map: Dict[int, _Pending] = {}
        update_map: Dict[int, _Pending] = {}
        uninstall_map: Dict[int, _Pending] = {}

        for literal, reason in self.decisions:
            package = self.pool.package_by_literal(literal)

            # keep or don't install
            if (literal > 0) == (package.id in self.installed_map):
                continue
            if literal <= 0:
                continue

            source = install_means_update.get(package.id)
            if source is not None and not isinstance(package, AliasPackage):
                update_map[package.id] = _Pending(package, reason, source)
                # one update per installed package
                del install_means_update[package.id]
                ignore_uninstall.add(source.id)
            else:
                install_map[package.id] = _Pending(package, reason)

        for literal, reason in self.decisions:
            package = self.pool.package_by_literal(literal)
            if literal <= 0 and package.id in self.installed_map and package.id not in ignore_uninstall:
                uninstall_map[package.id] = _Pending(package, reason)

        self._operations = []
        self._from_maps(install_map, update_map, uninstall_map)
        return self._operations

    def _from_maps(self, install_map: Dict[int, _Pending], update_map: Dict[int, _Pending],
                   uninstall_map: Dict[int, _Pending]):
        stack = [pending.package for pending in self._find_root_packages(install_map, update_map).values()]
        visited = set()

        # dependencies are emitted before their dependents
        while stack:
            package = stack.pop()
            if package.id not in visited:
                stack.append(package)
                visited.add(package.id)

                if isinstance(package, AliasPackage):
                    stack.append(package.alias_of)
                    continue

                for link in package.requires:
                    stack.extend(self.pool.what_provides(link.target, link.constraint))
                continue

            pending = install_map.pop(package.id, None)
            if pending is not None:
                self._install(pending.package, pending.reason)

            pending = update_map.pop(package.id, None)
            if pending is not None:
                self._operations.append(UpdateOperation(pending.source, pending.package, pending.reason))

        for pending in uninstall_map.values():
            self._uninstall(pending.package, pending.reason)

    def _find_root_packages(self, install_map: Dict[int, _Pending],
                            update_map: Dict[int, _Pending]) -> Dict[int, _Pending]:
        roots = dict(install_map)
        for package_id, pending in update_map.items():
            roots.setdefault(package_id, pending)

        for package_id, pending in list(roots.items()):
            if package_id not in roots:
                continue
            package = pending.package
            for link in package.requires:
                for required in self.pool.what_provides(link.target, link.constraint):
                    if required is not package:
                        roots.pop(required.id, None)
        return roots

    def _find_updates(self) -> Dict[int, Package]:
        """Map update candidate ids to the installed package they replace."""
        install_means_update: Dict[int, Package] = {}

        for literal, _ in self.decisions:
            package = self.pool.package_by_literal(literal)
            if isinstance(package, AliasPackage):
                continue
            # keep, install or don't install
            if literal > 0 or package.id not in self.installed_map:
                continue

            updates = self.policy.find_update_packages(self.pool, self.installed_map, package)
            for candidate in [package] + updates:
                install_means_update.setdefault(candidate.id, package)
        return install_means_update

    def _install(self, package: Package, reason: Optional[Rule]):
        if isinstance(package, AliasPackage):
            self._operations.append(MarkAliasInstalledOperation(package, reason))
        else:
            self._operations.append(InstallOperation(package, reason))

    def _uninstall(self, package: Package, reason: Optional[Rule]):
        if isinstance(package, AliasPackage):
            self._operations.append(MarkAliasUninstalledOperation(package, reason))
        else:
            self._operations.append(UninstallOperation(package, reason))

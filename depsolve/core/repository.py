"""
Package repositories.

A repository is an ordered collection of packages. The pool decides the
repository priority from the order repositories are added in.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .constraint import BaseConstraint, Constraint
from .package import Package


class Repository:
    """In-memory list of packages."""

    def __init__(self, packages: Iterable[Package] = ()):
        self._packages: List[Package] = []
        for package in packages:
            self.add_package(package)

    def add_package(self, package: Package):
        package.repository = self
        self._packages.append(package)

    @property
    def packages(self) -> List[Package]:
        return list(self._packages)

    def find_packages(self, name: str, constraint: Optional[BaseConstraint] = None) -> List[Package]:
        """Find packages by name, optionally restricted by a constraint."""
        name = name.lower()
        found = []
        for package in self._packages:
            if package.name != name:
                continue
            if constraint is None or constraint.matches(Constraint('==', package.version)):
                found.append(package)
        return found

    def __len__(self):
        return len(self._packages)

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages)

    def __repr__(self):
        return f"<{type(self).__name__} ({len(self)} packages)>"


class InstalledRepository(Repository):
    """Packages currently installed on the system."""


class PlatformRepository(Repository):
    """Virtual packages describing the runtime platform (php, ext-*, lib-*)."""


@dataclass
class RootAlias:
    """Alias requested by the root manifest, e.g. "dev-master as 1.0.x-dev"."""
    package: str
    version: str
    alias: str
    alias_normalized: str


class CompositeRepository(Repository):
    """Read-only view over several repositories, e.g. installed + platform."""

    def __init__(self, repositories: Iterable[Repository] = ()):
        super().__init__()
        self.repositories: List[Repository] = []
        for repository in repositories:
            self.add_repository(repository)

    def add_repository(self, repository: Repository):
        # nested composites are flattened
        if isinstance(repository, CompositeRepository):
            self.repositories.extend(repository.repositories)
        else:
            self.repositories.append(repository)

    def add_package(self, package: Package):
        raise RuntimeError("Packages are added to the wrapped repositories, not to a composite")

    @property
    def packages(self) -> List[Package]:
        return [package for repository in self.repositories for package in repository.packages]

    def find_packages(self, name: str, constraint: Optional[BaseConstraint] = None) -> List[Package]:
        return [package for repository in self.repositories
                for package in repository.find_packages(name, constraint)]

    def __len__(self):
        return sum(len(repository) for repository in self.repositories)

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages)

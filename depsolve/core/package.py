"""
Package model: packages, links between packages and alias packages.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, TYPE_CHECKING

from .constraint import BaseConstraint, Constraint, EmptyConstraint
from .version import normalize, parse_stability, Stability

if TYPE_CHECKING:
    from .repository import Repository


PLATFORM_PACKAGE_REGEX = re.compile(
    r'^(?:php(?:-64bit|-ipv6|-zts|-debug)?|hhvm|(?:ext|lib)-[^/ ]+|depsolve-plugin-api)$',
    re.I)


def is_platform_package(name: str) -> bool:
    """Check if a name refers to the platform (runtime, extension, library)."""
    return bool(PLATFORM_PACKAGE_REGEX.match(name))


class Link:
    """Relation from a source package to a target name with a constraint."""

    def __init__(self, source: str, target: str, constraint: Optional[BaseConstraint] = None,
                 description: str = "relates to", pretty_constraint: Optional[str] = None):
        self.source = source.lower()
        self.target = target.lower()
        self.constraint = constraint if constraint is not None else EmptyConstraint()
        self.description = description
        self._pretty_constraint = pretty_constraint

    @property
    def pretty_constraint(self) -> str:
        if self._pretty_constraint is not None:
            return self._pretty_constraint
        return self.constraint.pretty_string

    def pretty_string(self, source_package: 'Package') -> str:
        """Human readable form, e.g. "foo 1.0 requires bar >= 2.0"."""
        return (f"{source_package.pretty_string} {self.description} "
                f"{self.target} {self.pretty_constraint}")

    def __str__(self):
        return f"{self.source} {self.description} {self.target} ({self.constraint})"

    def __repr__(self):
        return f"Link({self.source!r}, {self.target!r}, {str(self.constraint)!r})"


@dataclass
class Abandoned:
    """Marker stored in Package.extra for packages no longer maintained."""
    replacement: Optional[str] = None


class Package:
    """A single version of a package as seen by the resolver."""

    def __init__(self, name: str, version: str, pretty_version: Optional[str] = None,
                 requires: Iterable[Link] = (), conflicts: Iterable[Link] = (),
                 provides: Iterable[Link] = (), replaces: Iterable[Link] = (),
                 extra: Any = None):
        self.pretty_name = name
        self.name = name.lower()
        self.pretty_version = pretty_version if pretty_version is not None else version
        self.version = normalize(version)
        self.stability: Stability = parse_stability(self.version)
        self.is_dev = self.stability is Stability.DEV

        self.requires: List[Link] = list(requires)
        self.conflicts: List[Link] = list(conflicts)
        self.provides: List[Link] = list(provides)
        self.replaces: List[Link] = list(replaces)
        self.extra = extra

        # Assigned by the pool
        self.id = -1
        self._repository: Optional['Repository'] = None

    @property
    def names(self) -> List[str]:
        """Own name followed by every provided and replaced name."""
        names = [self.name]
        for link in self.provides + self.replaces:
            if link.target not in names:
                names.append(link.target)
        return names

    @property
    def repository(self) -> Optional['Repository']:
        return self._repository

    @repository.setter
    def repository(self, repository: 'Repository'):
        if self._repository is not None and self._repository is not repository:
            raise RuntimeError(
                f"A package can only be added to one repository, {self.pretty_string} "
                f"already belongs to another one")
        self._repository = repository

    @property
    def is_abandoned(self) -> bool:
        return isinstance(self.extra, Abandoned)

    @property
    def pretty_string(self) -> str:
        return f"{self.pretty_name} {self.pretty_version}"

    @property
    def unique_name(self) -> str:
        return f"{self.name}-{self.version}"

    def __str__(self):
        return self.unique_name

    def __repr__(self):
        return f"<{type(self).__name__} {self.unique_name} #{self.id}>"


class AliasPackage(Package):
    """A package exposed under another version, e.g. dev-master as 1.0.x-dev.

    Links constrained to "self.version" are rewritten to the alias version.
    """

    def __init__(self, alias_of: Package, version: str, pretty_version: str):
        super().__init__(alias_of.pretty_name, version, pretty_version)
        self.alias_of = alias_of
        self.is_root_package_alias = False

        self.requires = self._replace_self_version(alias_of.requires)
        self.conflicts = self._replace_self_version(alias_of.conflicts)
        self.provides = self._replace_self_version(alias_of.provides)
        self.replaces = self._replace_self_version(alias_of.replaces)
        self.extra = alias_of.extra

    def _replace_self_version(self, links: List[Link]) -> List[Link]:
        replaced = []
        for link in links:
            if link.pretty_constraint == 'self.version':
                link = Link(link.source, link.target, Constraint('==', self.version),
                            link.description, self.pretty_version)
            replaced.append(link)
        return replaced

    @property
    def repository(self) -> Optional['Repository']:
        return self.alias_of.repository

    @repository.setter
    def repository(self, repository: 'Repository'):
        if repository is not self.alias_of.repository:
            raise RuntimeError(
                f"Alias {self.pretty_string} must live in the repository of {self.alias_of.pretty_string}")

    def __str__(self):
        return f"{self.unique_name} (alias of {self.alias_of.version})"

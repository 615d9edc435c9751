"""
Operations produced by the solver.

The solver does not install anything itself. It returns an ordered list of
operations that an installer executes one by one: dependencies always come
before the packages that need them, removals come last.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

from .package import AliasPackage, Package
from .resolution.request import JobCommand

if TYPE_CHECKING:
    from .resolution.rules import Rule


class Operation:
    """Base class of all solver operations."""

    job_command: JobCommand

    def __init__(self, package: Package, reason: Optional['Rule'] = None):
        self._package = package
        self.reason = reason

    @property
    def package(self) -> Package:
        return self._package

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.job_command.value,
            'package': self.package.pretty_name,
            'version': self.package.pretty_version,
        }

    def __repr__(self):
        return f"<{type(self).__name__} {self}>"


class InstallOperation(Operation):
    job_command = JobCommand.INSTALL

    def __str__(self):
        return f"Installing {self.package.pretty_name} ({self.package.pretty_version})"


class UninstallOperation(Operation):
    job_command = JobCommand.UNINSTALL

    def __str__(self):
        return f"Uninstalling {self.package.pretty_name} ({self.package.pretty_version})"


class UpdateOperation(Operation):
    """Replace an installed package with another version (or package)."""

    job_command = JobCommand.UPDATE

    def __init__(self, initial: Package, target: Package, reason: Optional['Rule'] = None):
        super().__init__(target, reason)
        self.initial = initial
        self.target = target

    @property
    def package(self) -> Package:
        raise NotImplementedError("An update has two packages, use initial or target")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.job_command.value,
            'package': self.target.pretty_name,
            'version': self.target.pretty_version,
            'from_package': self.initial.pretty_name,
            'from_version': self.initial.pretty_version,
        }

    def __str__(self):
        return (f"Updating {self.initial.pretty_name} ({self.initial.pretty_version}) "
                f"to {self.target.pretty_name} ({self.target.pretty_version})")


class MarkAliasInstalledOperation(Operation):
    job_command = JobCommand.MARK_ALIAS_INSTALLED

    def __init__(self, package: AliasPackage, reason: Optional['Rule'] = None):
        super().__init__(package, reason)

    def __str__(self):
        alias_of = self.package.alias_of
        return (f"Marking {self.package.pretty_name} ({self.package.pretty_version}) as installed, "
                f"alias of {alias_of.pretty_name} ({alias_of.pretty_version})")


class MarkAliasUninstalledOperation(Operation):
    job_command = JobCommand.MARK_ALIAS_UNINSTALLED

    def __init__(self, package: AliasPackage, reason: Optional['Rule'] = None):
        super().__init__(package, reason)

    def __str__(self):
        alias_of = self.package.alias_of
        return (f"Marking {self.package.pretty_name} ({self.package.pretty_version}) as uninstalled, "
                f"alias of {alias_of.pretty_name} ({alias_of.pretty_version})")

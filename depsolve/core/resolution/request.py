"""Requests: the jobs a user asks the solver to fulfil."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..constraint import BaseConstraint


class JobCommand(Enum):
    """Kind of job (and of resulting operation)."""
    INSTALL = "install"
    UNINSTALL = "uninstall"
    UPDATE = "update"
    UPDATE_ALL = "update-all"
    MARK_ALIAS_INSTALLED = "mark-alias-installed"
    MARK_ALIAS_UNINSTALLED = "mark-alias-uninstalled"


@dataclass(frozen=True)
class Job:
    """A single request entry."""
    command: JobCommand
    package_name: Optional[str] = None
    constraint: Optional[BaseConstraint] = None
    fixed: bool = False

    def __str__(self):
        text = self.command.value
        if self.fixed:
            text += "(fixed)"
        text += f" {self.package_name or ''}"
        if self.constraint is not None:
            text += f" {self.constraint.pretty_string}"
        return text


class Request:
    """Ordered list of jobs."""

    def __init__(self):
        self._jobs: List[Job] = []

    def _add(self, command: JobCommand, name: str, constraint: Optional[BaseConstraint] = None,
             fixed: bool = False):
        self._jobs.append(Job(command, name.lower(), constraint, fixed))

    def install(self, name: str, constraint: Optional[BaseConstraint] = None):
        self._add(JobCommand.INSTALL, name, constraint)

    def update(self, name: str, constraint: Optional[BaseConstraint] = None):
        self._add(JobCommand.UPDATE, name, constraint)

    def uninstall(self, name: str, constraint: Optional[BaseConstraint] = None):
        self._add(JobCommand.UNINSTALL, name, constraint)

    def fix(self, name: str, constraint: Optional[BaseConstraint] = None):
        """Install a package and keep the installed version if there is one."""
        self._add(JobCommand.INSTALL, name, constraint, fixed=True)

    def update_all(self):
        self._jobs.append(Job(JobCommand.UPDATE_ALL))

    def add(self, job: Job):
        self._jobs.append(job)

    def jobs(self) -> List[Job]:
        return list(self._jobs)

    def __len__(self):
        return len(self._jobs)

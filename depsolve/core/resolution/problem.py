"""Problems: explanations of why a request cannot be fulfilled."""

import re
from typing import Dict, Iterator, List, Optional

from ..constraint import BaseConstraint
from ..package import Package
from .pool import Pool
from .request import Job, JobCommand
from .rules import Rule, format_packages_unique

PACKAGE_NAME_CHARS = r'[A-Za-z0-9_./-]+'


def _constraint_text(constraint: Optional[BaseConstraint]) -> str:
    return f" {constraint.pretty_string}" if constraint is not None else ""


class Problem:
    """Rules that together make a request unsolvable, grouped in sections."""

    def __init__(self, pool: Pool):
        self.pool = pool
        self._sections: List[List[Rule]] = []
        self._seen: set = set()
        self.next_section()

    def add_rule(self, rule: Optional[Rule]):
        if rule is None or id(rule) in self._seen:
            return
        self._seen.add(id(rule))
        self._sections[-1].append(rule)

    def next_section(self):
        self._sections.append([])

    def reasons(self) -> List[Rule]:
        """Rules of the problem, latest section first."""
        return [rule for section in reversed(self._sections) for rule in section]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.reasons())

    def __len__(self):
        return sum(len(section) for section in self._sections)

    def pretty_string(self, installed_map: Optional[Dict[int, Package]] = None) -> str:
        """Explain the problem, one "    - " prefixed line per rule."""
        prefix = "\n    - "
        rules = self.reasons()

        if len(rules) == 1:
            message = self._missing_package_message(rules[0])
            if message is not None:
                return prefix + message

        lines = []
        for rule in rules:
            if rule.job is None:
                lines.append(rule.pretty_string(self.pool, installed_map))
            else:
                lines.append(self._job_to_text(rule.job))
        return prefix + prefix.join(lines)

    def _missing_package_message(self, rule: Rule) -> Optional[str]:
        job = rule.job
        if job is None or job.command is not JobCommand.INSTALL:
            return None

        name = job.package_name
        constraint = job.constraint
        if self.pool.what_provides(name, constraint):
            return None

        if not re.match(f'^{PACKAGE_NAME_CHARS}$', name):
            illegal = re.sub(PACKAGE_NAME_CHARS, '', name)
            return (f"The requested package {name} could not be found, it looks like its name "
                    f"is invalid, \"{illegal}\" is not allowed in package names.")

        providers = self.pool.what_provides(name, constraint, must_match_name=True, bypass_filters=True)
        if providers:
            return (f"The requested package {name}{_constraint_text(constraint)} is satisfiable by "
                    f"{format_packages_unique(providers)} but these conflict with your "
                    f"requirements or minimum-stability.")

        providers = self.pool.what_provides(name, None, must_match_name=True, bypass_filters=True)
        if providers:
            return (f"The requested package {name}{_constraint_text(constraint)} exists as "
                    f"{format_packages_unique(providers)} but these are rejected by your constraint.")

        return (f"The requested package {name} could not be found in any version, "
                f"there may be a typo in the package name.")

    def _job_to_text(self, job: Job) -> str:
        name = job.package_name
        constraint = job.constraint

        if job.command is JobCommand.INSTALL:
            providers = self.pool.what_provides(name, constraint)
            if not providers:
                return f"No package found to satisfy install request for {name}{_constraint_text(constraint)}."
            return (f"Installation request for {name}{_constraint_text(constraint)} -> "
                    f"satisfiable by {format_packages_unique(providers)}.")

        if job.command is JobCommand.UPDATE:
            return f"Update request for {name}{_constraint_text(constraint)}."

        if job.command is JobCommand.UNINSTALL:
            return f"Uninstall request for {name}{_constraint_text(constraint)}."

        packages = self.pool.what_provides(name, constraint) if constraint is not None else []
        return f"Job(cmd={job.command.value}, target={name}, packages=[{format_packages_unique(packages)}])"

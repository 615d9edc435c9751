"""Exceptions raised by the resolver."""

from typing import Dict, List, Optional


class DepsolveError(Exception):
    """Base class for all depsolve errors."""
    exit_code = 1


class UnexpectedValueError(DepsolveError, ValueError):
    """Raised when a version or constraint string cannot be parsed."""


class UnknownRepositoryError(DepsolveError, RuntimeError):
    """Raised when a repository is queried before being added to a pool."""


class ManifestError(DepsolveError, ValueError):
    """Raised when a manifest or package description is malformed."""


class ConfigError(DepsolveError, ValueError):
    """Raised when a configuration file is missing or has an invalid value."""


class SolverBugError(DepsolveError, RuntimeError):
    """Raised when the solver reaches an inconsistent internal state."""

    def __init__(self, message: str):
        super().__init__(
            f"{message}\nThis is a bug in the dependency solver, "
            f"please report it together with the request that triggered it."
        )


POTENTIAL_CAUSES = (
    "\nPotential causes:\n"
    " - A typo in the package name\n"
    " - The package is not available in a stable-enough version according "
    "to your minimum-stability setting\n"
    " - It's a private package and you forgot to add a custom repository to find it\n"
)


class SolverProblemsError(DepsolveError):
    """Raised when a request cannot be satisfied.

    Carries one Problem per failing root job. No operation is ever produced
    alongside it.
    """
    exit_code = 2

    def __init__(self, problems: List, installed_map: Optional[Dict] = None):
        self.problems = list(problems)
        self.installed_map = installed_map or {}
        super().__init__(self._create_message())

    def _create_message(self) -> str:
        text = "\n"
        for i, problem in enumerate(self.problems, 1):
            text += f"  Problem {i}{problem.pretty_string(self.installed_map)}\n"

        if "could not be found" in text or "no matching package found" in text:
            text += POTENTIAL_CAUSES
        return text

"""
Version constraints.

A constraint is either a single operator/version pair, a conjunctive or
disjunctive combination of constraints, or the empty constraint which
matches every version.
"""

import re
from typing import List, Optional, Sequence

from .errors import UnexpectedValueError
from .version import (
    MODIFIER_REGEX, is_branch, compare_versions, normalize, parse_stability,
    Stability,
)


class BaseConstraint:
    """Common behaviour of all constraints."""

    _pretty_string: Optional[str] = None

    def matches(self, provider: 'BaseConstraint') -> bool:
        raise NotImplementedError

    @property
    def pretty_string(self) -> str:
        """Constraint as written by the user, falls back to str()."""
        if self._pretty_string is not None:
            return self._pretty_string
        return str(self)

    def set_pretty_string(self, pretty: Optional[str]):
        self._pretty_string = pretty


class Constraint(BaseConstraint):
    """Operator and normalized version, e.g. ">= 1.0.0.0"."""

    OPERATORS = ('==', '!=', '<', '<=', '>', '>=')
    ALIASES = {'=': '==', '<>': '!='}

    def __init__(self, op: str, version: str):
        op = self.ALIASES.get(op, op)
        if op not in self.OPERATORS:
            raise UnexpectedValueError(f'Invalid operator "{op}" given, '
                                       f'expected one of: {", ".join(self.OPERATORS)}')
        self.op = op
        self.version = version

    def matches(self, provider: BaseConstraint) -> bool:
        if isinstance(provider, Constraint):
            return self.match_specific(provider)
        # Multi and empty constraints know how to match a single one
        return provider.matches(self)

    def match_specific(self, provider: 'Constraint', compare_branches: bool = False) -> bool:
        """Check whether two single constraints can be satisfied together.

        Args:
            provider: Constraint of the providing side
            compare_branches: Allow "dev-*" branches to be ordered

        Returns:
            True if at least one version satisfies both constraints
        """
        no_equal_op = self.op.replace('=', '')
        provider_no_equal_op = provider.op.replace('=', '')

        is_equal_op = self.op == '=='
        is_non_equal_op = self.op == '!='
        is_provider_equal_op = provider.op == '=='
        is_provider_non_equal_op = provider.op == '!='

        # "!=" only excludes the exact version on the other side
        if is_non_equal_op or is_provider_non_equal_op:
            return ((not is_equal_op and not is_provider_equal_op)
                    or compare_versions(provider.version, self.version, '!=', compare_branches))

        # two ranges pointing the same direction always overlap
        if not is_equal_op and no_equal_op == provider_no_equal_op:
            return True

        if compare_versions(provider.version, self.version, self.op, compare_branches):
            # "< 1.0" against "<= 1.0" and similar only overlap when both include the bound
            if (provider.version == self.version
                    and provider.op == provider_no_equal_op
                    and self.op != no_equal_op):
                return False
            return True

        return False

    def __eq__(self, other):
        return (isinstance(other, Constraint)
                and self.op == other.op and self.version == other.version)

    def __hash__(self):
        return hash((self.op, self.version))

    def __str__(self):
        return f"{self.op} {self.version}"

    def __repr__(self):
        return f"Constraint({self.op!r}, {self.version!r})"


class MultiConstraint(BaseConstraint):
    """Several constraints that must all (or any) match."""

    def __init__(self, constraints: Sequence[BaseConstraint], conjunctive: bool = True):
        self.constraints = list(constraints)
        self.conjunctive = conjunctive

    def matches(self, provider: BaseConstraint) -> bool:
        if self.conjunctive:
            return all(c.matches(provider) for c in self.constraints)
        return any(c.matches(provider) for c in self.constraints)

    def __str__(self):
        glue = ' ' if self.conjunctive else ' || '
        return '[' + glue.join(str(c) for c in self.constraints) + ']'

    def __repr__(self):
        return f"MultiConstraint({self.constraints!r}, conjunctive={self.conjunctive})"


class EmptyConstraint(BaseConstraint):
    """Matches every version."""

    def matches(self, provider: BaseConstraint) -> bool:
        return True

    @property
    def pretty_string(self) -> str:
        if self._pretty_string is not None:
            return self._pretty_string
        return '*'

    def __str__(self):
        return '[]'

    def __repr__(self):
        return 'EmptyConstraint()'


_OR_SPLIT = re.compile(r'\s*\|\|?\s*')
_AND_SPLIT = re.compile(r'(?<!^)(?<![=>< ,]) *(?<!-)[, ](?!-) *(?!,|$)')
_STABILITY_FLAG = re.compile(r'^([^,\s]*?)@(stable|RC|beta|alpha|dev)$', re.I)
_TILDE = re.compile(
    r'^~>?v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?' + MODIFIER_REGEX + r'$', re.I)
_CARET = re.compile(
    r'^\^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?' + MODIFIER_REGEX + r'$', re.I)
_X_RANGE = re.compile(r'^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.[xX*])+$')
_OPERATOR = re.compile(r'^(<>|!=|>=?|<=?|==?)?\s*(.*)$')


def manipulate_version_string(matches: List[Optional[str]], position: int,
                              increment: int = 0, pad: str = '0') -> Optional[str]:
    """Build a four part version from regex groups, bumping one position.

    Parts after ``position`` are replaced by ``pad``. Returns None when a
    decrement would go below zero at the first part.
    """
    parts = [m if m is not None else '0' for m in matches[:4]]
    parts += ['0'] * (4 - len(parts))

    for i in range(3, -1, -1):
        if i > position:
            parts[i] = pad
        elif i == position and increment:
            value = int(parts[i]) + increment
            if value < 0:
                parts[i] = pad
                if i == 0:
                    return None
                increment = -1
                position -= 1
            else:
                parts[i] = str(value)

    return '.'.join(parts)


def _parse_constraint(constraint: str) -> List[BaseConstraint]:
    stability_modifier = ''
    match = _STABILITY_FLAG.match(constraint)
    if match:
        constraint = match.group(1) or '*'
        if match.group(2).lower() != 'stable':
            stability_modifier = match.group(2)

    if re.match(r'^v?[xX*](\.[xX*])*$', constraint):
        return [EmptyConstraint()]

    match = _TILDE.match(constraint)
    if match:
        groups = list(match.groups())
        if constraint.startswith('~>'):
            raise UnexpectedValueError(
                f'Could not parse version constraint {constraint}: '
                f'Invalid operator "~>", you probably meant to use the "~" operator')

        # the last given part may change, everything before it is fixed
        if groups[3] is not None:
            position = 3
        elif groups[2] is not None:
            position = 2
        elif groups[1] is not None:
            position = 1
        else:
            position = 0

        stability_suffix = ''
        if not groups[4] and not groups[6]:
            stability_suffix = '-dev'

        lower = normalize(constraint[1:] + stability_suffix)
        lower_bound = Constraint('>=', lower)

        # the upper bound bumps the part before the last given one
        upper_position = max(0, position - 1)
        upper = manipulate_version_string(groups, upper_position, 1)
        upper_bound = Constraint('<', upper + '-dev')
        return [lower_bound, upper_bound]

    match = _CARET.match(constraint)
    if match:
        groups = list(match.groups())
        if groups[0] != '0' or groups[1] is None:
            position = 0
        elif groups[1] != '0' or groups[2] is None:
            position = 1
        else:
            position = 2

        stability_suffix = ''
        if not groups[4] and not groups[6]:
            stability_suffix = '-dev'

        lower = normalize(constraint[1:] + stability_suffix)
        lower_bound = Constraint('>=', lower)

        upper = manipulate_version_string(groups, position, 1)
        upper_bound = Constraint('<', upper + '-dev')
        return [lower_bound, upper_bound]

    match = _X_RANGE.match(constraint)
    if match:
        groups = list(match.groups())
        if groups[2] is not None:
            position = 2
        elif groups[1] is not None:
            position = 1
        else:
            position = 0

        lower = manipulate_version_string(groups, position) + '-dev'
        upper = manipulate_version_string(groups, position, 1) + '-dev'

        if lower == '0.0.0.0-dev':
            return [Constraint('<', upper)]
        return [Constraint('>=', lower), Constraint('<', upper)]

    match = _OPERATOR.match(constraint)
    if match and match.group(2):
        op = match.group(1) or '=='
        text = match.group(2)
        try:
            version = normalize(text)
        except UnexpectedValueError:
            raise UnexpectedValueError(
                f'Could not parse version constraint {constraint}') from None

        if stability_modifier and parse_stability(version) is Stability.STABLE:
            version += '-' + stability_modifier
        elif (op in ('<', '>=') and not is_branch(version)
              and parse_stability(text) is Stability.STABLE):
            # "< 2.0" must exclude 2.0 pre-releases and ">= 2.0" include them
            version += '-dev'

        return [Constraint(op, version)]

    raise UnexpectedValueError(f'Could not parse version constraint {constraint}')


def parse_constraints(constraints: str) -> BaseConstraint:
    """Parse a constraint string such as ">=1.0,<2.0 || ^3.1".

    Args:
        constraints: Constraint string as written in a manifest

    Returns:
        The parsed constraint, its pretty string is the original text

    Raises:
        UnexpectedValueError: If the string cannot be parsed
    """
    pretty = constraints
    text = constraints.strip()
    if not text:
        raise UnexpectedValueError('Empty version constraint')

    # "1.0 as 2.0" aliases only constrain the real version
    match = re.match(r'^([^,\s]+) +as +[^,\s]+$', text)
    if match:
        text = match.group(1)

    or_groups = []
    for or_part in _OR_SPLIT.split(text):
        and_parts = [p for p in _AND_SPLIT.split(or_part) if p]
        if len(and_parts) > 1:
            parsed: List[BaseConstraint] = []
            for part in and_parts:
                parsed.extend(_parse_constraint(part))
            constraint: BaseConstraint = MultiConstraint(parsed)
        else:
            parsed = _parse_constraint(and_parts[0])
            constraint = parsed[0] if len(parsed) == 1 else MultiConstraint(parsed)
        or_groups.append(constraint)

    if len(or_groups) == 1:
        result = or_groups[0]
    else:
        result = MultiConstraint(or_groups, conjunctive=False)

    result.set_pretty_string(pretty)
    return result

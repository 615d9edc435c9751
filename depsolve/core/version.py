"""
Version string normalization, stability and comparison.

Every version handled by the resolver is normalized first so that packages
coming from different sources compare consistently:

- "1.0"            -> "1.0.0.0"
- "v2.1.3-beta2"   -> "2.1.3.0-beta2"
- "2.0-dev"        -> "2.0.0.0-dev"
- "2.0.x-dev"      -> "2.0.9999999.9999999-dev"
- "dev-master"     -> "9999999-dev"
- "dev-feature"    -> "dev-feature"

Ordering of normalized versions is delegated to packaging's Version class
after translating the stability suffixes to their PEP 440 spelling.
"""

import operator
import re
from enum import IntEnum
from functools import lru_cache

from packaging.version import InvalidVersion, Version

from .errors import UnexpectedValueError


class Stability(IntEnum):
    """Release maturity of a version, lower is more stable."""
    STABLE = 0
    RC = 5
    BETA = 10
    ALPHA = 15
    DEV = 20

    @classmethod
    def parse(cls, name: str) -> 'Stability':
        """Get a stability from its name ("stable", "RC", "beta", ...)."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise UnexpectedValueError(f'Invalid stability "{name}"') from None

    def __str__(self) -> str:
        return "RC" if self is Stability.RC else self.name.lower()


MODIFIER_REGEX = r'[._-]?(?:(stable|beta|b|RC|alpha|a|patch|pl|p)((?:[.-]?\d+)*)?)?([.-]?dev)?'

CLASSICAL_REGEX = re.compile(
    r'^v?(\d{1,5})(\.\d+)?(\.\d+)?(\.\d+)?' + MODIFIER_REGEX + r'$', re.I)
DATE_REGEX = re.compile(
    r'^v?(\d{4}(?:[.:-]?\d{2}){1,6}(?:[.:-]?\d{1,3})?)' + MODIFIER_REGEX + r'$', re.I)
BRANCH_REGEX = re.compile(
    r'^v?(\d+)(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?$')
STABILITY_REGEX = re.compile(MODIFIER_REGEX + r'(?:\+.*)?$', re.I)

# Highest component used for branch and wildcard versions
BRANCH_NUMBER = "9999999"

_EXPANDED_STABILITIES = {
    'a': 'alpha',
    'b': 'beta',
    'p': 'patch',
    'pl': 'patch',
    'rc': 'RC',
}

_OPERATORS = {
    '==': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
}


def expand_stability(stability: str) -> str:
    """Expand a short stability modifier ("b", "rc", ...) to its full name."""
    stability = stability.lower()
    return _EXPANDED_STABILITIES.get(stability, stability)


def normalize_branch(name: str) -> str:
    """Normalize a branch name such as "2.0.x" to "2.0.9999999.9999999-dev".

    Non numeric branch names are returned as "dev-<name>".
    """
    name = name.strip()
    if name.lower() in ('master', 'trunk', 'default'):
        return normalize(name)

    match = BRANCH_REGEX.match(name)
    if match:
        version = ''
        for i in range(1, 5):
            part = match.group(i)
            version += part.replace('*', 'x').replace('X', 'x') if part else '.x'
        return version.replace('x', BRANCH_NUMBER) + '-dev'

    return 'dev-' + name


def normalize(version: str) -> str:
    """Normalize a version string.

    Args:
        version: Version as written by the package author

    Returns:
        Normalized version string

    Raises:
        UnexpectedValueError: If the string is not a valid version
    """
    original = version
    version = version.strip()

    # "1.0.x-dev as 1.0.0" inline aliases keep the aliased version
    match = re.match(r'^([^,\s]+) +as +([^,\s]+)$', version)
    if match:
        version = match.group(1)

    if re.match(r'^(?:dev-)?(?:master|trunk|default)$', version, re.I):
        return BRANCH_NUMBER + '-dev'

    if version[:4].lower() == 'dev-':
        return 'dev-' + version[4:]

    # build metadata is ignored
    version = re.sub(r'\+[^\s]+$', '', version)

    match = CLASSICAL_REGEX.match(version)
    if match:
        normalized = match.group(1) + ''.join(match.group(i) or '.0' for i in range(2, 5))
        index = 5
    else:
        match = DATE_REGEX.match(version)
        if match:
            normalized = re.sub(r'\D', '.', match.group(1))
            index = 2

    if match:
        modifier = match.group(index)
        if modifier:
            if modifier == 'stable':
                return normalized
            number = (match.group(index + 1) or '').lstrip('.-')
            normalized += '-' + expand_stability(modifier) + number
        if match.group(index + 2):
            normalized += '-dev'
        return normalized

    match = re.match(r'^(.*?)[.-]?dev$', version, re.I)
    if match and BRANCH_REGEX.match(match.group(1)):
        return normalize_branch(match.group(1))

    raise UnexpectedValueError(f'Invalid version string "{original}"')


def parse_stability(version: str) -> Stability:
    """Get the stability of a (normalized or raw) version string."""
    version = re.sub(r'#.+$', '', version)

    if version.startswith('dev-') or version.endswith('-dev'):
        return Stability.DEV

    match = STABILITY_REGEX.search(version.lower())
    if not match:
        return Stability.STABLE
    if match.group(3):
        return Stability.DEV

    modifier = match.group(1)
    if modifier in ('beta', 'b'):
        return Stability.BETA
    if modifier in ('alpha', 'a'):
        return Stability.ALPHA
    if modifier == 'rc':
        return Stability.RC
    return Stability.STABLE


def is_branch(version: str) -> bool:
    """Check if a normalized version names a non numeric branch."""
    return version.startswith('dev-')


@lru_cache(maxsize=4096)
def version_key(version: str) -> Version:
    """Translate a normalized version into a comparable Version object.

    Non numeric branches sort below every numeric version.
    """
    if is_branch(version):
        return Version('0.dev0')

    match = re.match(
        r'^(\d+(?:\.\d+)*)(?:-(alpha|beta|RC|patch)(\d+)?(?:[.-]\d+)*)?(-dev)?$', version, re.I)
    if not match:
        raise UnexpectedValueError(f'Version "{version}" is not normalized')

    release, modifier, number, dev = match.groups()
    text = release
    if modifier:
        modifier = modifier.lower()
        number = number or '0'
        if modifier == 'patch':
            text += f'.post{number}'
        else:
            text += {'alpha': 'a', 'beta': 'b', 'rc': 'rc'}[modifier] + number
    if dev:
        text += '.dev0'

    try:
        return Version(text)
    except InvalidVersion:
        raise UnexpectedValueError(f'Version "{version}" cannot be compared') from None


def compare_versions(a: str, b: str, op: str, compare_branches: bool = False) -> bool:
    """Compare two normalized versions with an operator.

    Args:
        a: Left normalized version
        b: Right normalized version
        op: One of ==, !=, <, <=, >, >=
        compare_branches: Allow ordering of "dev-*" branches against
            numeric versions (they never match otherwise)
    """
    a_is_branch = is_branch(a)
    b_is_branch = is_branch(b)

    # a branch only differs from everything that is not the same branch
    if op == '!=' and (a_is_branch or b_is_branch):
        return a != b

    if a_is_branch and b_is_branch:
        return op == '==' and a == b

    if not compare_branches and (a_is_branch or b_is_branch):
        return False

    return _OPERATORS[op](version_key(a), version_key(b))

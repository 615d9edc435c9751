"""Rules (clauses) handled by the solver and the set that groups them."""

from enum import IntEnum
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, TYPE_CHECKING

from ..package import Link, Package

if TYPE_CHECKING:
    from .pool import Pool
    from .request import Job


class Reason(IntEnum):
    """Why a rule exists."""
    UNDEFINED = 0
    INTERNAL_ALLOW_UPDATE = 1
    JOB_INSTALL = 2
    JOB_UNINSTALL = 3
    PACKAGE_CONFLICT = 6
    PACKAGE_REQUIRES = 7
    PACKAGE_OBSOLETES = 8
    PACKAGE_SAME_NAME = 9
    PACKAGE_ALIAS = 10
    PACKAGE_IMPLICIT_OBSOLETES = 11
    INSTALLED_PACKAGE_OBSOLETES = 12
    LEARNED = 13


class RuleType(IntEnum):
    """Group a rule belongs to inside a RuleSet."""
    PACKAGE = 0
    JOB = 1
    LEARNED = 4


class Literal(NamedTuple):
    """Package id with a polarity, the signed int form is used internally."""
    package_id: int
    positive: bool

    @classmethod
    def from_int(cls, literal: int) -> 'Literal':
        return cls(abs(literal), literal > 0)

    def __int__(self):
        return self.package_id if self.positive else -self.package_id


def format_packages_unique(packages: Iterable[Package]) -> str:
    """Render packages grouped by name, e.g. "foo[1.0, 1.1], bar[2.0]"."""
    prepared: Dict[str, Dict[str, str]] = {}
    for package in packages:
        prepared.setdefault(package.name, {})[package.version] = package.pretty_version
    return ", ".join(f"{name}[{', '.join(versions.values())}]"
                     for name, versions in prepared.items())


class Rule:
    """A disjunction of literals.

    Literals are kept sorted and distinct, two rules with the same literals
    are equal.
    """

    def __init__(self, literals: Iterable[int], reason: Reason, reason_data: Any = None,
                 job: Optional['Job'] = None):
        self.literals = tuple(sorted(set(literals)))
        self.reason = reason
        self.reason_data = reason_data
        self.job = job
        # set by RuleSet.add
        self.type: RuleType = RuleType.PACKAGE
        self.enabled = True
        self.id = -1

    @property
    def is_assertion(self) -> bool:
        return len(self.literals) == 1

    def enable(self):
        self.enabled = True

    def disable(self):
        self.enabled = False

    @property
    def require_package_name(self) -> Optional[str]:
        """Name targeted by an install job or a requirement, if any."""
        if self.reason is Reason.JOB_INSTALL and isinstance(self.reason_data, str):
            return self.reason_data
        if self.reason is Reason.PACKAGE_REQUIRES and isinstance(self.reason_data, Link):
            return self.reason_data.target
        return None

    def __eq__(self, other):
        return isinstance(other, Rule) and self.literals == other.literals

    def __hash__(self):
        return hash(self.literals)

    def __str__(self):
        text = "(" + "|".join(str(literal) for literal in self.literals) + ")"
        return text if self.enabled else "disabled" + text

    def __repr__(self):
        return f"<Rule {self} {self.reason.name}>"

    def pretty_string(self, pool: 'Pool', installed_map: Optional[Dict[int, Package]] = None) -> str:
        """Explain the rule in words, used by problem reports."""
        rule_text = " | ".join(pool.literal_to_pretty_string(literal, installed_map)
                               for literal in self.literals)

        reason = self.reason
        if reason in (Reason.INTERNAL_ALLOW_UPDATE, Reason.PACKAGE_OBSOLETES,
                      Reason.INSTALLED_PACKAGE_OBSOLETES, Reason.PACKAGE_IMPLICIT_OBSOLETES,
                      Reason.PACKAGE_ALIAS):
            return rule_text
        if reason is Reason.LEARNED:
            return f"Conclusion: {rule_text}"
        if reason is Reason.PACKAGE_SAME_NAME:
            packages = [pool.package_by_literal(literal) for literal in self.literals]
            return f"Can only install one of: {format_packages_unique(packages)}."
        if reason is Reason.JOB_INSTALL:
            return f"Install command rule ({rule_text})"
        if reason is Reason.JOB_UNINSTALL:
            return f"Uninstall command rule ({rule_text})"
        if reason is Reason.PACKAGE_CONFLICT:
            package = pool.package_by_literal(self.literals[0])
            other = pool.package_by_literal(self.literals[1])
            return f"{package.pretty_string} conflicts with {format_packages_unique([other])}."
        if reason is Reason.PACKAGE_REQUIRES:
            return self._format_requires(pool)
        return f"({rule_text})"

    def _format_requires(self, pool: 'Pool') -> str:
        source = pool.package_by_literal(self.literals[0])
        requires = [pool.package_by_literal(literal) for literal in self.literals[1:]]
        link = self.reason_data

        text = link.pretty_string(source)
        if requires:
            return f"{text} -> satisfiable by {format_packages_unique(requires)}."

        providers = pool.what_provides(link.target, link.constraint, must_match_name=True,
                                       bypass_filters=True)
        if not providers:
            return f"{text} -> no matching package found."

        return (f"{text} -> satisfiable by {format_packages_unique(providers)} "
                f"but these conflict with your requirements or minimum-stability.")


class RuleSet:
    """Rules grouped by type, each with a global id."""

    TYPES = (RuleType.PACKAGE, RuleType.JOB, RuleType.LEARNED)

    _TYPE_NAMES = {
        RuleType.PACKAGE: "Package",
        RuleType.JOB: "Job",
        RuleType.LEARNED: "Learned",
    }

    def __init__(self):
        self._rules: Dict[RuleType, List[Rule]] = {t: [] for t in self.TYPES}
        self._by_id: List[Rule] = []
        self._seen: set = set()

    def add(self, rule: Optional[Rule], rule_type: RuleType) -> bool:
        """Add a rule to a group.

        Returns:
            False if the rule is None or an equal rule was already added
        """
        if rule is None or rule in self._seen:
            return False

        rule.type = rule_type
        rule.id = len(self._by_id)
        self._rules[rule_type].append(rule)
        self._by_id.append(rule)
        self._seen.add(rule)
        return True

    def rule_by_id(self, rule_id: int) -> Rule:
        return self._by_id[rule_id]

    def __getitem__(self, rule_type: RuleType) -> List[Rule]:
        return self._rules[rule_type]

    def __len__(self):
        return len(self._by_id)

    def __iter__(self) -> Iterator[Rule]:
        for rule_type in self.TYPES:
            yield from self._rules[rule_type]

    def iter_for(self, *types: RuleType) -> Iterator[Rule]:
        for rule_type in self.TYPES:
            if rule_type in types:
                yield from self._rules[rule_type]

    def iter_without(self, *types: RuleType) -> Iterator[Rule]:
        for rule_type in self.TYPES:
            if rule_type not in types:
                yield from self._rules[rule_type]

    def pretty_string(self, pool: Optional['Pool'] = None) -> str:
        text = "\n"
        for rule_type in self.TYPES:
            text += self._TYPE_NAMES[rule_type].ljust(8) + ": "
            for rule in self._rules[rule_type]:
                text += (rule.pretty_string(pool) if pool is not None else str(rule)) + "\n"
            text += "\n\n"
        return text

    def __str__(self):
        return self.pretty_string()

"""Builders shared by the test modules."""

from depsolve.core.constraint import Constraint
from depsolve.core.package import AliasPackage, Link, Package
from depsolve.core.version import normalize


def constraint(op, version):
    """Constraint on a normalized version, pretty printed as written."""
    result = Constraint(op, normalize(version))
    result.set_pretty_string(f"{op} {version}")
    return result


def link(source, target, op=None, version=None, description="requires"):
    return Link(source, target, constraint(op, version) if op else None, description)


def make_package(name, version, requires=(), conflicts=(), provides=(), replaces=()):
    return Package(name, version, version, requires=requires, conflicts=conflicts,
                   provides=provides, replaces=replaces)


def make_alias(package, version, root=False):
    """Alias a package and add the alias to the package's repository."""
    alias = AliasPackage(package, normalize(version), version)
    alias.is_root_package_alias = root
    if package.repository is not None:
        package.repository.add_package(alias)
    return alias

"""
Package and manifest loading.

Packages are described with plain dicts (usually read from JSON):

    {
        "name": "vendor/foo",
        "version": "1.2.0",
        "require": {"vendor/bar": "^2.0"},
        "conflict": {"vendor/baz": "<1.0"},
        "provide": {"vendor/foo-api": "1.0"},
        "replace": {"vendor/old-foo": "self.version"},
        "abandoned": "vendor/new-foo"
    }

A manifest groups repositories, installed and platform packages and the
request to solve.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .constraint import Constraint, parse_constraints
from .errors import ManifestError, UnexpectedValueError
from .package import Abandoned, Link, Package
from .repository import InstalledRepository, PlatformRepository, Repository, RootAlias
from .resolution.request import Request
from .version import normalize

logger = logging.getLogger(__name__)

# dict key -> link description
LINK_TYPES = {
    'require': 'requires',
    'conflict': 'conflicts',
    'provide': 'provides',
    'replace': 'replaces',
}

REQUEST_COMMANDS = ('install', 'update', 'uninstall', 'fix', 'update-all')


@dataclass
class Manifest:
    """Everything needed to run the resolver."""
    repositories: List[Repository] = field(default_factory=list)
    installed: InstalledRepository = field(default_factory=InstalledRepository)
    platform: PlatformRepository = field(default_factory=PlatformRepository)
    request: Request = field(default_factory=Request)
    root_aliases: List[RootAlias] = field(default_factory=list)


def _parse_links(name: str, version: str, description: str, data: Any) -> List[Link]:
    if not isinstance(data, dict):
        raise ManifestError(f"{name}: '{description}' must be an object of name: constraint")

    links = []
    for target, constraint_text in data.items():
        if constraint_text == 'self.version':
            constraint = Constraint('==', version)
        else:
            constraint = parse_constraints(str(constraint_text))
        links.append(Link(name, target, constraint, description, str(constraint_text)))
    return links


def package_from_dict(data: Dict[str, Any]) -> Package:
    """Create a package from its dict description.

    Raises:
        ManifestError: If a field is missing or invalid
    """
    if not isinstance(data, dict):
        raise ManifestError(f"Package description must be an object, got {type(data).__name__}")

    try:
        name = data['name']
        pretty_version = str(data['version'])
    except KeyError as e:
        raise ManifestError(f"Package description is missing {e}") from None

    try:
        version = normalize(pretty_version)
        links = {
            key: _parse_links(name, version, description, data.get(key, {}))
            for key, description in LINK_TYPES.items()
        }
    except UnexpectedValueError as e:
        raise ManifestError(f"{name}: {e}") from e

    extra = None
    abandoned = data.get('abandoned')
    if abandoned:
        extra = Abandoned(abandoned if isinstance(abandoned, str) else None)

    return Package(name, pretty_version, pretty_version,
               requires=links['require'], conflicts=links['conflict'],
               provides=links['provide'], replaces=links['replace'],
               extra=extra)


def _load_repository(items: Any, repository: Repository) -> Repository:
    if not isinstance(items, list):
        raise ManifestError("A repository must be a list of packages")
    for item in items:
        repository.add_package(package_from_dict(item))
    return repository


def _load_request(items: Any) -> Request:
    if not isinstance(items, list):
        raise ManifestError("'request' must be a list of jobs")

    request = Request()
    for item in items:
        command = item.get('command') if isinstance(item, dict) else None
        if command not in REQUEST_COMMANDS:
            raise ManifestError(f"Unknown request command: {command}")

        if command == 'update-all':
            request.update_all()
            continue

        name = item.get('package')
        if not name:
            raise ManifestError(f"'{command}' job needs a package")

        constraint = None
        if item.get('constraint'):
            try:
                constraint = parse_constraints(str(item['constraint']))
            except UnexpectedValueError as e:
                raise ManifestError(f"{name}: {e}") from e

        getattr(request, command)(name, constraint)
    return request


def _load_aliases(items: Any) -> List[RootAlias]:
    aliases = []
    for item in items or []:
        try:
            aliases.append(RootAlias(
                package=item['package'].lower(),
                version=normalize(item['version']),
                alias=item['alias'],
                alias_normalized=normalize(item['alias']),
            ))
        except (KeyError, TypeError) as e:
            raise ManifestError(f"Invalid alias {item!r}: {e}") from None
        except UnexpectedValueError as e:
            raise ManifestError(f"Invalid alias {item!r}: {e}") from e
    return aliases


def manifest_from_dict(data: Dict[str, Any]) -> Manifest:
    """Build a Manifest from a decoded JSON document."""
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a JSON object")

    manifest = Manifest()
    for items in data.get('repositories', []):
        manifest.repositories.append(_load_repository(items, Repository()))
    _load_repository(data.get('installed', []), manifest.installed)
    _load_repository(data.get('platform', []), manifest.platform)
    manifest.request = _load_request(data.get('request', []))
    manifest.root_aliases = _load_aliases(data.get('aliases'))

    logger.debug(f"Loaded manifest: {len(manifest.repositories)} repositories, "
                 f"{len(manifest.installed)} installed, {len(manifest.request)} jobs")
    return manifest


def load_manifest(path: Path) -> Manifest:
    """Read a manifest JSON file.

    Raises:
        ManifestError: If the file can't be read or is invalid
    """
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, IOError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e

    return manifest_from_dict(data)

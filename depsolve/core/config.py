"""
Solver configuration.

Settings are read from a .depsolve.local file, one setting per line:

    minimum-stability=beta
    prefer-stable=true
    prefer-lowest=false
    ignore-platform-reqs=false
    stability-flag.vendor/package=dev
    filter-requires.vendor/package=>=1.0,<2.0
    # Comments start with #

The resulting SolverConfig is passed explicitly to the pool, the policy
and the solver.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .constraint import BaseConstraint, parse_constraints
from .errors import ConfigError, UnexpectedValueError
from .version import Stability

logger = logging.getLogger(__name__)

# Config file name
LOCAL_CONFIG_FILE = ".depsolve.local"

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass
class SolverConfig:
    """Options affecting candidate filtering and selection."""
    minimum_stability: Stability = Stability.STABLE
    stability_flags: Dict[str, Stability] = field(default_factory=dict)
    filter_requires: Dict[str, BaseConstraint] = field(default_factory=dict)
    prefer_stable: bool = False
    prefer_lowest: bool = False
    ignore_platform_reqs: bool = False


def _read_local_config(config_path: Path) -> Optional[dict]:
    """Read a key=value config file.

    Returns:
        Dict with config values, or None if the file can't be read
    """
    if not config_path.exists():
        return None

    config = {}
    try:
        with open(config_path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, value = line.split('=', 1)
                    config[key.strip()] = value.strip()
    except (OSError, IOError):
        return None

    return config


def _parse_bool(key: str, value: str) -> bool:
    if value.lower() in _TRUE_VALUES:
        return True
    if value.lower() in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value}")


def config_from_dict(values: Dict[str, str]) -> SolverConfig:
    """Build a SolverConfig from raw key=value pairs."""
    config = SolverConfig()

    for key, value in values.items():
        try:
            if key == 'minimum-stability':
                config.minimum_stability = Stability.parse(value)
            elif key == 'prefer-stable':
                config.prefer_stable = _parse_bool(key, value)
            elif key == 'prefer-lowest':
                config.prefer_lowest = _parse_bool(key, value)
            elif key == 'ignore-platform-reqs':
                config.ignore_platform_reqs = _parse_bool(key, value)
            elif key.startswith('stability-flag.'):
                config.stability_flags[key.split('.', 1)[1].lower()] = Stability.parse(value)
            elif key.startswith('filter-requires.'):
                config.filter_requires[key.split('.', 1)[1].lower()] = parse_constraints(value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")
        except UnexpectedValueError as e:
            raise ConfigError(f"Invalid value for {key}: {e}") from e

    return config


def load_config(config_path: Path) -> SolverConfig:
    """Load a SolverConfig from a file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    values = _read_local_config(Path(config_path))
    if values is None:
        raise ConfigError(f"Cannot read config file {config_path}")

    logger.debug(f"Loaded {len(values)} settings from {config_path}")
    return config_from_dict(values)


def find_config(directory: Optional[Path] = None) -> Optional[Path]:
    """Find .depsolve.local in a directory (default: current directory)."""
    config_path = Path(directory or Path.cwd()) / LOCAL_CONFIG_FILE
    return config_path if config_path.exists() else None

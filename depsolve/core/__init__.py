"""Core modules for depsolve"""

from .config import SolverConfig, load_config
from .loader import Manifest, load_manifest
from .resolver import Resolution, Resolver, Solver

__all__ = ['SolverConfig', 'load_config', 'Manifest', 'load_manifest',
           'Resolution', 'Resolver', 'Solver']

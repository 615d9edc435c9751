"""
depsolve - SAT based package dependency resolver

Computes install/update/uninstall operations for a set of prioritized
repositories and a request, or explains why the request is impossible.
"""

__version__ = "0.1.0"
__author__ = "depsolve contributors"

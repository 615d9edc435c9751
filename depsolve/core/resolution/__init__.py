"""Resolution building blocks used by the Solver.

- Pool: package ids and "what provides" queries
- Rule, RuleSet, RuleSetGenerator: the clauses to satisfy
- Decisions, RuleWatchGraph: the decision trail and unit propagation
- DefaultPolicy: candidate preference
- Problem: explanation of unsolvable requests
- Request, Job: what the user asks for

Transaction lives in resolution.transaction and is imported from there.
"""

from .pool import Pool, PoolMatch
from .rules import Literal, Reason, Rule, RuleSet, RuleType
from .request import Job, JobCommand, Request
from .decisions import Decisions
from .watchgraph import RuleWatchGraph, RuleWatchNode
from .policy import DefaultPolicy
from .problem import Problem
from .generator import RuleSetGenerator

__all__ = [
    'Pool',
    'PoolMatch',
    'Literal',
    'Reason',
    'Rule',
    'RuleSet',
    'RuleType',
    'Job',
    'JobCommand',
    'Request',
    'Decisions',
    'RuleWatchGraph',
    'RuleWatchNode',
    'DefaultPolicy',
    'Problem',
    'RuleSetGenerator',
]

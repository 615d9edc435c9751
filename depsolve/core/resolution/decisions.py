"""Decision trail of the solver."""

from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from ..errors import SolverBugError

if TYPE_CHECKING:
    from .pool import Pool
    from .rules import Rule


class Decisions:
    """Ordered list of (literal, reason) decisions with a level per package.

    Level 0 holds assertions and forced decisions, branching starts at 1.
    Iteration goes from the most recent decision to the oldest.
    """

    def __init__(self, pool: 'Pool'):
        self.pool = pool
        # package id -> (level, decided positive)
        self._decided: Dict[int, Tuple[int, bool]] = {}
        self._queue: List[Tuple[int, Optional['Rule']]] = []

    def decide(self, literal: int, level: int, reason: Optional['Rule']):
        package_id = abs(literal)
        previous = self._decided.get(package_id)
        if previous is not None:
            prev_level, prev_positive = previous
            raise SolverBugError(
                f"Trying to decide {self.pool.literal_to_pretty_string(literal)} on level {level}, "
                f"even though {self.pool.package_by_literal(literal)} was previously decided as "
                f"{prev_level if prev_positive else -prev_level}.")

        self._decided[package_id] = (level, literal > 0)
        self._queue.append((literal, reason))

    def is_satisfy(self, literal: int) -> bool:
        decision = self._decided.get(abs(literal))
        return decision is not None and decision[1] == (literal > 0)

    def is_conflict(self, literal: int) -> bool:
        decision = self._decided.get(abs(literal))
        return decision is not None and decision[1] != (literal > 0)

    def is_decided(self, literal: int) -> bool:
        return abs(literal) in self._decided

    def is_undecided(self, literal: int) -> bool:
        return abs(literal) not in self._decided

    def is_decided_install(self, literal: int) -> bool:
        """Check if the package behind a literal was decided to be installed."""
        decision = self._decided.get(abs(literal))
        return decision is not None and decision[1]

    def decision_level(self, literal: int) -> int:
        """Level a package was decided on, -1 when undecided."""
        decision = self._decided.get(abs(literal))
        return decision[0] if decision is not None else -1

    def decision_reason(self, literal: int) -> Optional['Rule']:
        package_id = abs(literal)
        for decided, reason in self._queue:
            if abs(decided) == package_id:
                return reason
        return None

    def at(self, position: int) -> Tuple[int, Optional['Rule']]:
        return self._queue[position]

    def contains_at(self, position: int) -> bool:
        return 0 <= position < len(self._queue)

    def last_reason(self) -> Optional['Rule']:
        return self._queue[-1][1]

    def last_literal(self) -> int:
        return self._queue[-1][0]

    def revert(self):
        self._decided.clear()
        self._queue.clear()

    def revert_to_position(self, position: int):
        """Drop every decision made after the given position."""
        position = max(position + 1, 0)
        if position >= len(self._queue):
            return
        for literal, _ in self._queue[position:]:
            del self._decided[abs(literal)]
        del self._queue[position:]

    def revert_last(self):
        literal, _ = self._queue.pop()
        del self._decided[abs(literal)]

    def __getitem__(self, position: int) -> Tuple[int, Optional['Rule']]:
        return self.at(position)

    def __len__(self):
        return len(self._queue)

    def __iter__(self) -> Iterator[Tuple[int, Optional['Rule']]]:
        return reversed(self._queue)

    def __str__(self):
        return "[" + ",".join(f"{self._decided[abs(literal)][0]}:{literal}"
                              for literal, _ in self._queue) + "]"

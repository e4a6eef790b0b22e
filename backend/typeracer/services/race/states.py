from enum import Enum
from typing import Dict, FrozenSet, Iterable


class TransitionGuard:
    """Holds a current state and only moves along an allowed-transitions table.

    ``advance`` returns False instead of raising so callers can treat a
    repeated start/end request as a no-op.
    """

    def __init__(self, initial: Enum, transitions: Dict[Enum, Iterable[Enum]]):
        self.state = initial
        self._transitions: Dict[Enum, FrozenSet[Enum]] = {
            source: frozenset(targets) for source, targets in transitions.items()
        }

    def can(self, target: Enum) -> bool:
        return target in self._transitions.get(self.state, frozenset())

    def advance(self, target: Enum) -> bool:
        if not self.can(target):
            return False
        self.state = target
        return True

    def __repr__(self):
        return f"TransitionGuard({self.state!r})"

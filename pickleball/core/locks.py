"""Per-tournament mutual exclusion.

Round-completion detection reads match state and then writes the next round,
so every mutating operation on one tournament must run under that
tournament's lock. The locks are re-entrant: a score update that
auto-completes a match re-enters the same scope.

Entries are reference counted and dropped once no thread holds or waits on
them. The locks only serialize threads of one process.
"""
import threading
from contextlib import contextmanager
from typing import Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


_registry_guard = threading.Lock()
_tournament_locks: Dict[int, _Entry] = {}


@contextmanager
def tournament_lock(tournament_id: int):
    with _registry_guard:
        entry = _tournament_locks.get(tournament_id)
        if entry is None:
            entry = _tournament_locks[tournament_id] = _Entry()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_guard:
            entry.users -= 1
            if entry.users == 0:
                del _tournament_locks[tournament_id]

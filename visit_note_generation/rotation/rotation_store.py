"""
Rotation Store - Per-Subject Rotation Index Storage

This module holds the only shared mutable state of the service: the last
index picked from each phrase pool for each subject. The selector never
touches the map directly; it hands the store an update function and the
store applies it atomically.

Architecture:
    RotationStore (Protocol)
    └── InMemoryRotationStore  → Process-local dict guarded by per-key locks

Pipeline Position:
    Config → [Rotation] → Topics → Prompt Builder → Oracle → Validation
              ^^^^^^^^
              You are here

Author: Shubham Singh
Date: January 2026
"""

import threading
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable


RotationKey = Tuple[str, int]
"""(subject_key, pool_length). Pools of different length never share state."""


# =============================================================================
# STAGE 1: ROTATION STORE PROTOCOL
# =============================================================================


@runtime_checkable
class RotationStore(Protocol):
    """
    Protocol for rotation index storage.

    What it does:
        Maps (subject_key, pool_length) to the last index handed out and
        applies read-modify-write updates atomically per key.

    When to implement:
        - Sharing rotation state across processes (e.g., Redis-backed store)
        - Tests that need to pre-seed or inspect state
    """

    def advance(self, key: RotationKey, update: Callable[[Optional[int]], int]) -> int:
        """
        Atomically replace the stored index with update(previous).

        Args:
            key: (subject_key, pool_length)
            update: Receives the previous index (None on first use) and
                returns the new index

        Returns:
            The newly stored index
        """
        ...

    def get(self, key: RotationKey) -> Optional[int]:
        """Return the stored index for key, or None."""
        ...


# =============================================================================
# STAGE 2: IN-MEMORY IMPLEMENTATION
# =============================================================================


class InMemoryRotationStore:
    """
    Process-local rotation store.

    State lives for the life of the process and is lost on restart. Each key
    gets its own lock so concurrent requests for the same subject serialize
    while unrelated subjects never contend.

    Example:
        >>> store = InMemoryRotationStore()
        >>> store.advance(("Patient #1::intro", 13), lambda prev: 0 if prev is None else prev + 1)
        0
    """

    def __init__(self):
        self._indices: Dict[RotationKey, int] = {}
        self._locks: Dict[RotationKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: RotationKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def advance(self, key: RotationKey, update: Callable[[Optional[int]], int]) -> int:
        with self._lock_for(key):
            index = update(self._indices.get(key))
            self._indices[key] = index
            return index

    def get(self, key: RotationKey) -> Optional[int]:
        return self._indices.get(key)

    def clear(self) -> None:
        """Forget all rotation state."""
        with self._locks_guard:
            self._indices.clear()
            self._locks.clear()

    def __len__(self) -> int:
        return len(self._indices)

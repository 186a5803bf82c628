# src/aide_client/core/sync.py

from __future__ import annotations


class RequestGeneration:
    """
    Per-resource monotonic request counter.

    Every refresh takes a ticket before its request goes out; when the response
    arrives it is applied only if no newer ticket was issued meanwhile.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._latest = 0

    def begin(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest

    def invalidate(self) -> None:
        """Make every outstanding ticket stale (used on logout)."""
        self._latest += 1

    @property
    def latest(self) -> int:
        return self._latest

# src/aide_client/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and UI collaborators swappable and makes testing easier.
"""

from typing import Protocol


class TokenStorage(Protocol):
    """
    Durable single-slot storage for the session token.

    One slot per client installation: save() overwrites, clear() removes.
    """

    def load(self) -> str | None: ...
    def save(self, token: str) -> None: ...
    def clear(self) -> None: ...


class Confirmer(Protocol):
    """Asks the user to confirm a destructive action. True means proceed."""

    async def confirm(self, prompt: str) -> bool: ...

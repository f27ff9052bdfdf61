"""CSRF state store for the OAuth sign-in and GitHub App install redirects."""

from __future__ import annotations

import secrets
import time
from typing import Protocol, runtime_checkable

DEFAULT_TTL_SECONDS = 600


@runtime_checkable
class StateStore(Protocol):
    """Single-use state tokens carrying a small context dict."""

    async def put_state(self, state: str, data: dict, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None: ...

    async def pop_state(self, state: str) -> dict | None: ...

    async def issue(self, data: dict, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str: ...


class MemoryStateStore:
    """In-memory dict; valid for a single server process."""

    def __init__(self) -> None:
        self._states: dict[str, tuple[float, dict]] = {}

    async def put_state(self, state: str, data: dict, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._purge_expired()
        self._states[state] = (time.time() + ttl_seconds, data)

    async def pop_state(self, state: str) -> dict | None:
        """Consume a state. Returns its data, or None if unknown or expired."""
        entry = self._states.pop(state, None)
        if entry is None:
            return None
        expires_at, data = entry
        if time.time() >= expires_at:
            return None
        return data

    async def issue(self, data: dict, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
        """Store data under a fresh random state token and return the token."""
        state = secrets.token_urlsafe(32)
        await self.put_state(state, data, ttl_seconds)
        return state

    def _purge_expired(self) -> None:
        now = time.time()
        for key in [k for k, (exp, _) in self._states.items() if exp <= now]:
            del self._states[key]


state_store: StateStore = MemoryStateStore()

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable

from devhub.application.dto.auth import StateValidation
from devhub.application.ports.state_store_port import StateStorePort
from devhub.domain.entities.session import StateToken


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStateStore(StateStorePort):
    def __init__(self, *, ttl_seconds: int = 600, clock: Callable[[], datetime] = _utcnow):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._tokens: dict[str, StateToken] = {}
        self._lock = Lock()

    def issue(self, *, origin: str | None) -> StateToken:
        state = StateToken(token=secrets.token_urlsafe(32), issued_at=self._clock(), origin=origin)
        with self._lock:
            self._tokens[state.token] = state
        return state

    def consume(self, *, token: str, origin: str | None) -> StateValidation:
        with self._lock:
            state = self._tokens.pop(token, None)
        if state is None:
            return StateValidation(valid=False, reason="not_found")
        if self._clock() - state.issued_at > self._ttl:
            return StateValidation(valid=False, reason="expired")
        if state.origin and origin and state.origin != origin:
            logger.warning("state_store: origin changed issued=%s received=%s", state.origin, origin)
        return StateValidation(valid=True)

    def sweep(self) -> int:
        cutoff = self._clock() - self._ttl
        with self._lock:
            expired = [token for token, state in self._tokens.items() if state.issued_at < cutoff]
            for token in expired:
                del self._tokens[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

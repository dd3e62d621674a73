from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import text

from devhub.application.dto.auth import StateValidation
from devhub.application.ports.state_store_port import StateStorePort
from devhub.domain.entities.session import StateToken


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlStateStore(StateStorePort):
    def __init__(self, engine, *, ttl_seconds: int = 600, clock: Callable[[], datetime] = _utcnow):
        self._engine = engine
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def issue(self, *, origin: str | None) -> StateToken:
        state = StateToken(token=secrets.token_urlsafe(32), issued_at=self._clock(), origin=origin)
        sql = """
            INSERT INTO public.oauth_states (token, origin, issued_at)
            VALUES (:token, :origin, :issued_at)
        """
        with self._engine.begin() as conn:
            conn.execute(
                text(sql),
                {"token": state.token, "origin": origin, "issued_at": state.issued_at},
            )
        return state

    def consume(self, *, token: str, origin: str | None) -> StateValidation:
        sql = """
            DELETE FROM public.oauth_states
            WHERE token = :token
            RETURNING token, origin, issued_at
        """
        with self._engine.begin() as conn:
            row = conn.execute(text(sql), {"token": token}).mappings().first()
        if row is None:
            return StateValidation(valid=False, reason="not_found")
        if self._clock() - row["issued_at"] > self._ttl:
            return StateValidation(valid=False, reason="expired")
        if row["origin"] and origin and row["origin"] != origin:
            logger.warning("state_store: origin changed issued=%s received=%s", row["origin"], origin)
        return StateValidation(valid=True)

    def sweep(self) -> int:
        sql = """
            DELETE FROM public.oauth_states
            WHERE issued_at < :cutoff
        """
        with self._engine.begin() as conn:
            result = conn.execute(text(sql), {"cutoff": self._clock() - self._ttl})
        return int(result.rowcount or 0)

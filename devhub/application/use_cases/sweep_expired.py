from __future__ import annotations

from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.state_store_port import StateStorePort

from .auth_common import utcnow


class SweepExpiredSessionsUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self) -> int:
        return self._auth_port.delete_stale_sessions(now=utcnow())


class SweepExpiredStatesUseCase:
    def __init__(self, *, state_store: StateStorePort):
        self._state_store = state_store

    def execute(self) -> int:
        return self._state_store.sweep()

from __future__ import annotations

from typing import Protocol

from devhub.application.dto.auth import StateValidation
from devhub.domain.entities.session import StateToken


class StateStorePort(Protocol):
    def issue(self, *, origin: str | None) -> StateToken:
        ...

    def consume(self, *, token: str, origin: str | None) -> StateValidation:
        ...

    def sweep(self) -> int:
        ...

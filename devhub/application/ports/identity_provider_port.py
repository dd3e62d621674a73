from __future__ import annotations

from typing import Protocol

from devhub.application.dto.auth import ProviderEmail, ProviderProfile


class IdentityProviderPort(Protocol):
    def build_authorization_url(self, *, state: str) -> str:
        ...

    def exchange_code(self, *, code: str) -> str:
        ...

    def fetch_profile(self, *, access_token: str) -> ProviderProfile:
        ...

    def fetch_emails(self, *, access_token: str) -> list[ProviderEmail]:
        ...

from __future__ import annotations

import logging

from devhub.application.dto.auth import CompleteLoginInput, ProviderEmail
from devhub.application.ports.identity_provider_port import IdentityProviderPort
from devhub.application.ports.state_store_port import StateStorePort
from devhub.domain.entities.account import ExternalIdentity
from devhub.domain.exceptions import (
    ExpiredStateError,
    IdentityProviderError,
    InvalidStateError,
    NoVerifiedEmailError,
)

from .auth_common import (
    AVATAR_URL_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    LOGIN_MAX_LENGTH,
    NAME_MAX_LENGTH,
    clamp,
    normalize_email,
)


logger = logging.getLogger(__name__)


def select_login_email(emails: list[ProviderEmail]) -> str | None:
    for item in emails:
        if item.primary and item.verified and item.email.strip():
            return item.email
    return None


class CompleteLoginUseCase:
    def __init__(
        self,
        *,
        state_store: StateStorePort,
        identity_provider: IdentityProviderPort,
    ):
        self._state_store = state_store
        self._identity_provider = identity_provider

    def execute(self, command: CompleteLoginInput) -> ExternalIdentity:
        state = (command.state or "").strip()
        if not state:
            raise InvalidStateError("Missing OAuth state.")

        validation = self._state_store.consume(token=state, origin=command.origin)
        if not validation.valid:
            if validation.reason == "expired":
                raise ExpiredStateError("OAuth state expired.")
            raise InvalidStateError("OAuth state unknown or already used.")

        if command.provider_error:
            raise IdentityProviderError(f"Identity provider returned error: {command.provider_error}")

        code = (command.code or "").strip()
        if not code:
            raise IdentityProviderError("Missing authorization code.")

        access_token = self._identity_provider.exchange_code(code=code)
        profile = self._identity_provider.fetch_profile(access_token=access_token)
        emails = self._identity_provider.fetch_emails(access_token=access_token)

        selected = select_login_email(emails)
        if selected is None:
            logger.info("complete_login: no primary verified email login=%s", profile.login)
            raise NoVerifiedEmailError("No primary verified email on identity provider account.")

        email = normalize_email(selected)[:EMAIL_MAX_LENGTH]
        login = clamp(profile.login, LOGIN_MAX_LENGTH) or email.split("@")[0]
        name = clamp(profile.name, NAME_MAX_LENGTH) or login[:NAME_MAX_LENGTH]
        return ExternalIdentity(
            external_id=profile.external_id,
            login=login,
            name=name,
            email=email,
            avatar_url=clamp(profile.avatar_url, AVATAR_URL_MAX_LENGTH),
        )

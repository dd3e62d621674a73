from __future__ import annotations

from devhub.application.dto.auth import BeginLoginInput, BeginLoginOutput
from devhub.application.ports.identity_provider_port import IdentityProviderPort
from devhub.application.ports.state_store_port import StateStorePort


class BeginLoginUseCase:
    def __init__(
        self,
        *,
        state_store: StateStorePort,
        identity_provider: IdentityProviderPort,
    ):
        self._state_store = state_store
        self._identity_provider = identity_provider

    def execute(self, command: BeginLoginInput) -> BeginLoginOutput:
        state = self._state_store.issue(origin=command.origin)
        url = self._identity_provider.build_authorization_url(state=state.token)
        return BeginLoginOutput(authorization_url=url, state=state.token)

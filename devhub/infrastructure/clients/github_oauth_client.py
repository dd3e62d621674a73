from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx

from devhub.application.dto.auth import ProviderEmail, ProviderProfile
from devhub.application.ports.identity_provider_port import IdentityProviderPort
from devhub.domain.exceptions import IdentityProviderError


logger = logging.getLogger(__name__)

GITHUB_SCOPE = "read:user user:email"
USER_AGENT = "DevHubConnect-OAuth/1.0"


class GithubOauthClient(IdentityProviderPort):
    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        authorize_url: str = "https://github.com/login/oauth/authorize",
        token_url: str = "https://github.com/login/oauth/access_token",
        api_base: str = "https://api.github.com",
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._authorize_url = authorize_url
        self._token_url = token_url
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        )

    def build_authorization_url(self, *, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "scope": GITHUB_SCOPE,
            "state": state,
            "allow_signup": "true",
        }
        return f"{self._authorize_url}?{urlencode(params)}"

    def exchange_code(self, *, code: str) -> str:
        payload = self._request(
            "POST",
            self._token_url,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "code": code,
                "redirect_uri": self._redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        if not isinstance(payload, dict):
            raise IdentityProviderError("GitHub token response is not an object.")

        access_token = payload.get("access_token")
        if not access_token:
            error = payload.get("error") or "missing_access_token"
            logger.warning("github_oauth: token exchange rejected error=%s", error)
            raise IdentityProviderError(f"GitHub token exchange failed: {error}")
        return str(access_token)

    def fetch_profile(self, *, access_token: str) -> ProviderProfile:
        payload = self._request("GET", f"{self._api_base}/user", headers=self._api_headers(access_token))
        if not isinstance(payload, dict) or payload.get("id") is None or not payload.get("login"):
            raise IdentityProviderError("GitHub profile response is incomplete.")
        return ProviderProfile(
            external_id=str(payload["id"]),
            login=str(payload["login"]),
            name=payload.get("name"),
            avatar_url=payload.get("avatar_url"),
        )

    def fetch_emails(self, *, access_token: str) -> list[ProviderEmail]:
        payload = self._request("GET", f"{self._api_base}/user/emails", headers=self._api_headers(access_token))
        if not isinstance(payload, list):
            raise IdentityProviderError("GitHub emails response is not a list.")
        return [
            ProviderEmail(
                email=str(item.get("email") or ""),
                primary=bool(item.get("primary")),
                verified=bool(item.get("verified")),
            )
            for item in payload
            if isinstance(item, dict)
        ]

    def _api_headers(self, access_token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }

    def _request(self, method: str, url: str, **kwargs):
        try:
            with self._client() as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as exc:
            logger.warning("github_oauth: timeout method=%s url=%s", method, url)
            raise IdentityProviderError("GitHub request timed out.") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "github_oauth: non-2xx method=%s url=%s status=%s",
                method,
                url,
                exc.response.status_code,
            )
            raise IdentityProviderError(f"GitHub returned status {exc.response.status_code}.") from exc
        except httpx.HTTPError as exc:
            logger.warning("github_oauth: transport error method=%s url=%s error=%s", method, url, exc)
            raise IdentityProviderError("GitHub request failed.") from exc
        except ValueError as exc:
            raise IdentityProviderError("GitHub returned invalid JSON.") from exc

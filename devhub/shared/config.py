from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _csv(name: str) -> tuple[str, ...]:
    value = _env(name)
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    postgres_dsn: str
    cors_allowed_origins: tuple[str, ...]
    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_issuer: str
    jwt_audience: str
    github_client_id: str
    github_client_secret: str
    github_redirect_uri: str
    github_authorize_url: str
    github_token_url: str
    github_api_base: str
    github_timeout_seconds: float
    oauth_state_ttl_seconds: int
    state_store_backend: str
    frontend_success_url: str
    frontend_error_url: str
    session_ttl_hours: int
    session_cookie_name: str
    stripe_secret_key: str
    stripe_webhook_secret: str
    stripe_success_url: str
    stripe_cancel_url: str
    stripe_timeout_seconds: float
    checkout_expiry_minutes: int
    state_sweep_interval_seconds: float
    session_sweep_interval_seconds: float
    admin_email_allowlist: tuple[str, ...]
    rate_limit_enabled: bool
    rate_limit_storage_uri: str
    rate_limit_login: str
    rate_limit_callback: str
    rate_limit_checkout: str
    rate_limit_webhook: str

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def get_settings() -> Settings:
    return Settings(
        app_env=_env("APP_ENV", "development"),
        log_level=_env("LOG_LEVEL", "INFO"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        cors_allowed_origins=_csv("CORS_ALLOWED_ORIGINS") or ("http://localhost:5173",),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_access_ttl_minutes=int(_env("JWT_ACCESS_TTL_MINUTES", "15")),
        jwt_issuer=_env("JWT_ISSUER", "devhubconnect"),
        jwt_audience=_env("JWT_AUDIENCE", "devhubconnect-users"),
        github_client_id=_env("GITHUB_CLIENT_ID", ""),
        github_client_secret=_env("GITHUB_CLIENT_SECRET", ""),
        github_redirect_uri=_env("GITHUB_REDIRECT_URI", "http://localhost:8000/v1/auth/github/callback"),
        github_authorize_url=_env("GITHUB_AUTHORIZE_URL", "https://github.com/login/oauth/authorize"),
        github_token_url=_env("GITHUB_TOKEN_URL", "https://github.com/login/oauth/access_token"),
        github_api_base=_env("GITHUB_API_BASE", "https://api.github.com"),
        github_timeout_seconds=float(_env("GITHUB_TIMEOUT_SECONDS", "10")),
        oauth_state_ttl_seconds=int(_env("OAUTH_STATE_TTL_SECONDS", "600")),
        state_store_backend=_env("STATE_STORE_BACKEND", "memory"),
        frontend_success_url=_env("FRONTEND_SUCCESS_URL", "http://localhost:5173/auth/success"),
        frontend_error_url=_env("FRONTEND_ERROR_URL", "http://localhost:5173/auth/error"),
        session_ttl_hours=int(_env("SESSION_TTL_HOURS", "24")),
        session_cookie_name=_env("SESSION_COOKIE_NAME", "devhub_session"),
        stripe_secret_key=_env("STRIPE_SECRET_KEY", ""),
        stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET", ""),
        stripe_success_url=_env(
            "STRIPE_SUCCESS_URL",
            "http://localhost:5173/payment/success?session_id={CHECKOUT_SESSION_ID}",
        ),
        stripe_cancel_url=_env("STRIPE_CANCEL_URL", "http://localhost:5173/payment/cancelled"),
        stripe_timeout_seconds=float(_env("STRIPE_TIMEOUT_SECONDS", "10")),
        checkout_expiry_minutes=int(_env("CHECKOUT_EXPIRY_MINUTES", "30")),
        state_sweep_interval_seconds=float(_env("STATE_SWEEP_INTERVAL_SECONDS", "300")),
        session_sweep_interval_seconds=float(_env("SESSION_SWEEP_INTERVAL_SECONDS", "3600")),
        admin_email_allowlist=tuple(email.lower() for email in _csv("ADMIN_EMAIL_ALLOWLIST")),
        rate_limit_enabled=_env("RATE_LIMIT_ENABLED", "true").lower() in {"1", "true", "yes"},
        rate_limit_storage_uri=_env("RATE_LIMIT_STORAGE_URI", "memory://"),
        rate_limit_login=_env("RATE_LIMIT_LOGIN", "5 per 15 minutes"),
        rate_limit_callback=_env("RATE_LIMIT_CALLBACK", "10 per 5 minutes"),
        rate_limit_checkout=_env("RATE_LIMIT_CHECKOUT", "10 per 15 minutes"),
        rate_limit_webhook=_env("RATE_LIMIT_WEBHOOK", "100 per minute"),
    )

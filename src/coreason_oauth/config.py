# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""
Configuration for the coreason-oauth package.

Two layers: `CoreasonOAuthSettings` holds process-wide tunables loaded from the
environment, and a `ConfigProvider` resolves per-provider client credentials. The flow
code only ever sees the resolved `RuntimeConfig`.
"""

import os
from collections.abc import Mapping
from typing import Literal, Protocol

from pydantic import BaseModel, Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_oauth.errors import OAuthErrorCode
from coreason_oauth.exceptions import OAuthException
from coreason_oauth.models import RuntimeConfig
from coreason_oauth.providers import get_provider_ids


class CoreasonOAuthSettings(BaseSettings):
    """
    Process-wide settings for coreason-oauth.

    Attributes:
        unsafe_local_dev (bool): Allows a plain-HTTP base_url for local testing.
        base_url (str | None): Public origin of the application (e.g. https://app.example.com).
        environment (str): "development" or "production"; production forces secure cookies.
        pii_salt (SecretStr): HMAC key for anonymizing user ids in logs and traces.
        http_timeout (float): Timeout in seconds for token exchange and profile fetch.
        state_max_age_seconds (int): Maximum age of a FlowState at callback time.
        state_timestamp_tolerance_ms (int): Allowed skew between URL and stored state timestamps.
        state_cookie_max_age_seconds (int): Lifetime of the stored FlowState.
        state_cookie_prefix (str): Key prefix for stored FlowStates.
        session_max_age_seconds (int): Default lifetime of the session record.
        session_cookie_name (str): Key of the session record.
        max_response_bytes (int): Upper bound on provider response bodies.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_OAUTH_",
        case_sensitive=False,
    )

    unsafe_local_dev: bool = False
    base_url: str | None = None
    environment: Literal["development", "production"] = "development"
    pii_salt: SecretStr = SecretStr("coreason-unsafe-default-salt")
    http_timeout: float = Field(default=10.0, gt=0)
    state_max_age_seconds: int = Field(default=300, gt=0)
    # Narrow relative to real provider round trips; tune per deployment
    state_timestamp_tolerance_ms: int = Field(default=1000, ge=0)
    state_cookie_max_age_seconds: int = Field(default=300, gt=0)
    state_cookie_prefix: str = "oauth-state-"
    session_max_age_seconds: int = Field(default=60 * 60 * 24 * 7, gt=0)
    session_cookie_name: str = "oauth-session"
    max_response_bytes: int = Field(default=1_000_000, gt=0)

    @field_validator("base_url", mode="after")
    @classmethod
    def validate_base_url(cls, v: str | None, info: ValidationInfo) -> str | None:
        """
        Strips a trailing slash and enforces HTTPS unless strictly opted out for local dev.
        """
        if v is None:
            return v
        v = v.strip().rstrip("/")
        if not v.startswith(("https://", "http://")):
            raise ValueError("base_url must be an absolute http(s) URL.")
        if v.startswith("http://") and not info.data.get("unsafe_local_dev", False):
            raise ValueError("HTTPS is required for production. Set 'unsafe_local_dev=True' only for local testing.")
        return v

    @property
    def cookie_secure(self) -> bool:
        return self.environment == "production"


class ConfigProvider(Protocol):
    """Resolves client credentials for a provider."""

    def get_config(self, provider_id: str) -> RuntimeConfig:
        """
        Raises:
            OAuthException: `missing_config` when credentials are not available.
        """
        ...


class ProviderEnvVars(BaseModel):
    client_id: str
    client_secret: str
    public_client_id: str


def get_provider_env_vars(provider_id: str) -> ProviderEnvVars:
    """
    Returns the environment variable names holding a provider's credentials.

    LINE historically uses channel naming (LINE_CHANNEL_ID / LINE_CHANNEL_SECRET).
    """
    if provider_id == "line":
        return ProviderEnvVars(
            client_id="LINE_CHANNEL_ID",
            client_secret="LINE_CHANNEL_SECRET",
            public_client_id="NEXT_PUBLIC_LINE_CHANNEL_ID",
        )

    upper = provider_id.upper()
    return ProviderEnvVars(
        client_id=f"{upper}_CLIENT_ID",
        client_secret=f"{upper}_CLIENT_SECRET",
        public_client_id=f"NEXT_PUBLIC_{upper}_CLIENT_ID",
    )


def build_redirect_uri(base_url: str, provider_id: str) -> str:
    return f"{base_url.rstrip('/')}/api/auth/{provider_id}/callback"


class EnvConfigProvider:
    """
    Resolves credentials from environment-style key/value storage.

    Attributes:
        base_url (str): Public origin used to build the callback redirect URI. Defaults to
            `CoreasonOAuthSettings.base_url`, which is HTTPS-validated.
        environ (Mapping[str, str]): Variable source. Defaults to os.environ.
    """

    def __init__(
        self,
        base_url: str | None = None,
        environ: Mapping[str, str] | None = None,
        settings: CoreasonOAuthSettings | None = None,
    ) -> None:
        if base_url is None:
            base_url = (settings or CoreasonOAuthSettings()).base_url
        if not base_url:
            raise ValueError("base_url is required; set COREASON_OAUTH_BASE_URL or pass it explicitly.")
        self.base_url = base_url.rstrip("/")
        self.environ = os.environ if environ is None else environ

    def get_config(self, provider_id: str) -> RuntimeConfig:
        env_vars = get_provider_env_vars(provider_id)
        client_id = self.environ.get(env_vars.client_id)
        client_secret = self.environ.get(env_vars.client_secret)

        if not client_id or not client_secret:
            raise OAuthException(
                OAuthErrorCode.MISSING_CONFIG,
                f"Missing environment variables for {provider_id}: {env_vars.client_id}, {env_vars.client_secret}",
                provider_id,
            )

        return RuntimeConfig(
            client_id=client_id,
            client_secret=SecretStr(client_secret),
            redirect_uri=build_redirect_uri(self.base_url, provider_id),
        )


class StaticConfigProvider:
    """Serves credentials from an explicit provider-id to RuntimeConfig mapping."""

    def __init__(self, configs: Mapping[str, RuntimeConfig]) -> None:
        self._configs = dict(configs)

    def get_config(self, provider_id: str) -> RuntimeConfig:
        config = self._configs.get(provider_id)
        if config is None:
            raise OAuthException(
                OAuthErrorCode.MISSING_CONFIG,
                f"No configuration registered for {provider_id}",
                provider_id,
            )
        return config


def validate_provider_config(config: Mapping[str, str | None]) -> tuple[bool, list[str]]:
    """
    Checks that client_id, client_secret and redirect_uri are all present.

    Returns:
        A tuple of (is_valid, missing_keys).
    """
    missing = [key for key in ("client_id", "client_secret", "redirect_uri") if not config.get(key)]
    return not missing, missing


class ProviderConfigStatus(BaseModel):
    provider: str
    is_configured: bool
    missing_vars: list[str] = Field(default_factory=list)


class OAuthConfigReport(BaseModel):
    providers: list[ProviderConfigStatus]
    configured_providers: list[str]
    missing_configurations: list[str]


def validate_oauth_config(environ: Mapping[str, str] | None = None) -> OAuthConfigReport:
    """
    Checks every registered provider for credentials. Secret values are not included.
    """
    env = os.environ if environ is None else environ
    statuses: list[ProviderConfigStatus] = []

    for provider_id in get_provider_ids():
        env_vars = get_provider_env_vars(provider_id)
        missing = [name for name in (env_vars.client_id, env_vars.client_secret) if not env.get(name)]
        statuses.append(ProviderConfigStatus(provider=provider_id, is_configured=not missing, missing_vars=missing))

    return OAuthConfigReport(
        providers=statuses,
        configured_providers=[s.provider for s in statuses if s.is_configured],
        missing_configurations=[s.provider for s in statuses if not s.is_configured],
    )


def is_provider_configured(provider_id: str, environ: Mapping[str, str] | None = None) -> bool:
    return provider_id in validate_oauth_config(environ).configured_providers


def get_configured_providers(environ: Mapping[str, str] | None = None) -> list[str]:
    return validate_oauth_config(environ).configured_providers


def generate_env_template() -> str:
    """Renders a .env template listing every provider's variables."""
    lines = [
        "# OAuth Provider Configuration",
        "# Copy this to your .env file and fill in your credentials",
        "",
    ]
    for provider_id in get_provider_ids():
        env_vars = get_provider_env_vars(provider_id)
        lines.append(f"# {provider_id.upper()} OAuth Configuration")
        lines.append(f"{env_vars.client_id}=your_{provider_id}_client_id")
        lines.append(f"{env_vars.client_secret}=your_{provider_id}_client_secret")
        lines.append(f"{env_vars.public_client_id}=your_{provider_id}_client_id")
        lines.append("")
    return "\n".join(lines)


def get_setup_instructions(environ: Mapping[str, str] | None = None) -> tuple[bool, list[str]]:
    """
    Returns (is_complete, instructions) describing what remains to be configured.
    """
    report = validate_oauth_config(environ)
    instructions: list[str] = []

    if report.missing_configurations:
        instructions.append("To complete the OAuth setup, you need to:")
        instructions.append("")
        for status in report.providers:
            if status.is_configured:
                continue
            instructions.append(f"{status.provider.upper()}:")
            instructions.extend(f"  - Set {name} in your environment variables" for name in status.missing_vars)
            instructions.append("")
        instructions.append("Environment variable template:")
        instructions.append(generate_env_template())

    return not report.missing_configurations, instructions


def create_config_report(environ: Mapping[str, str] | None = None) -> str:
    report = validate_oauth_config(environ)
    lines = [
        "OAuth Provider Configuration Report",
        "=" * 40,
        "",
        f"Total Providers: {len(report.providers)}",
        f"Configured: {len(report.configured_providers)}",
        f"Missing Configuration: {len(report.missing_configurations)}",
        "",
    ]

    if report.configured_providers:
        lines.append("Configured Providers:")
        lines.extend(f"  - {provider_id}" for provider_id in report.configured_providers)
        lines.append("")

    if report.missing_configurations:
        lines.append("Missing Configuration:")
        lines.extend(
            f"  - {status.provider}: {', '.join(status.missing_vars)}"
            for status in report.providers
            if not status.is_configured
        )
        lines.append("")

    return "\n".join(lines)

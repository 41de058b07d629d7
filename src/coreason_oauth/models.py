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
Data models for the coreason-oauth package.

All timestamps are epoch milliseconds.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from coreason_oauth.errors import OAuthError


class ProviderDescriptor(BaseModel):
    """
    Static metadata describing one identity provider.

    `auth_params` and `user_info_params` are applied in declaration order.

    Attributes:
        id (str): Registry key (e.g. "google").
        name (str): Machine name of the provider.
        display_name (str): Human readable name.
        color (str): Brand color, passed through to presentation.
        icon (str): Icon identifier, passed through to presentation.
        auth_url (str): Authorization endpoint.
        token_url (str): Token endpoint.
        user_info_url (str): User-info endpoint.
        scopes (tuple[str, ...]): Default scopes.
        response_type (str): Always "code" for this flow.
        grant_type (str): Always "authorization_code" for this flow.
        pkce_supported (bool): Whether PKCE (S256) is used.
        state_required (bool): Whether a state nonce is required.
        auth_params (tuple[tuple[str, str], ...]): Static authorization query parameters.
        user_info_params (tuple[tuple[str, str], ...]): Static query parameters for the profile fetch.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    name: str
    display_name: str
    color: str
    icon: str
    auth_url: str
    token_url: str
    user_info_url: str
    scopes: tuple[str, ...]
    response_type: Literal["code"] = "code"
    grant_type: Literal["authorization_code"] = "authorization_code"
    pkce_supported: bool
    state_required: bool = True
    auth_params: tuple[tuple[str, str], ...] = ()
    user_info_params: tuple[tuple[str, str], ...] = ()


class RuntimeConfig(BaseModel):
    """
    Client credentials resolved for a single flow. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr
    redirect_uri: str = Field(..., min_length=1)
    scopes: list[str] | None = None
    additional_params: dict[str, str] | None = None


class FlowState(BaseModel):
    """
    State created when an authorization URL is generated.

    The copy embedded in the `state` query parameter never carries `code_verifier`;
    the verifier travels through the side channel (see `FlowStateStore`).
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    redirect_to: str | None = None
    code_verifier: str | None = None
    nonce: str | None = None
    timestamp: int


class TokenResponse(BaseModel):
    """
    Response from a provider's token endpoint.

    Attributes:
        access_token (str): The access token issued by the authorization server.
        token_type (str): The type of the token (e.g. "Bearer").
        expires_in (int | None): The lifetime in seconds of the access token.
        refresh_token (str | None): The refresh token, if issued.
        scope (str | None): The granted scopes, if reported.
        id_token (str | None): The ID token, if issued.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None


class NormalizedProfile(BaseModel):
    """Provider-specific profile mapped onto the canonical field names."""

    id: str
    email: str | None = None
    name: str
    display_name: str
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None


class UserProfile(NormalizedProfile):
    """
    Canonical user identity, independent of the provider it came from.

    `provider_account_id` always equals `id`; `raw` keeps the unmodified provider response.
    """

    provider: str
    provider_account_id: str
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_account_id(self) -> "UserProfile":
        if self.provider_account_id != self.id:
            raise ValueError("provider_account_id must equal id")
        return self

    def __repr__(self) -> str:
        # PII fields MUST be redacted in __repr__
        return (
            f"UserProfile(id='<REDACTED>', "
            f"email='<REDACTED>', "
            f"name='<REDACTED>', "
            f"provider={self.provider!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


class ProviderSessionData(BaseModel):
    """Tokens and identity for one provider linked into a session."""

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    user: UserProfile


class Session(BaseModel):
    """
    A persisted login.

    `providers` is populated only once a second provider is linked to the session.
    """

    user: UserProfile
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    provider: str
    created_at: int
    providers: dict[str, ProviderSessionData] | None = None

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at is not None and now_ms > self.expires_at

    def to_provider_data(self) -> ProviderSessionData:
        return ProviderSessionData(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_at=self.expires_at,
            user=self.user,
        )


class AuthSuccess(BaseModel):
    success: Literal[True] = True
    session: Session


class AuthFailure(BaseModel):
    success: Literal[False] = False
    error: OAuthError


AuthResult = AuthSuccess | AuthFailure


class CookieOptions(BaseModel):
    """
    Attributes the transport boundary must apply when persisting a blob.
    """

    model_config = ConfigDict(frozen=True)

    max_age: int = Field(..., gt=0, description="Lifetime in seconds.")
    secure: bool = False
    http_only: bool = True
    same_site: Literal["strict", "lax", "none"] = "lax"
    path: str = "/"

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
OAuthHandler component orchestrating the authorization-code flow for one provider.
"""

import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import httpx
from opentelemetry import trace
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.trace import Status, StatusCode

from coreason_oauth.config import ConfigProvider, CoreasonOAuthSettings
from coreason_oauth.errors import OAuthError, OAuthErrorCode, create_oauth_error
from coreason_oauth.exceptions import OAuthException, OversizedResponseError, SecurityError
from coreason_oauth.models import AuthFailure, AuthResult, AuthSuccess, FlowState, Session, TokenResponse
from coreason_oauth.normalizer import UserProfileNormalizer
from coreason_oauth.providers import ProviderRegistry, registry as default_registry
from coreason_oauth.security import (
    decode_state,
    encode_state,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
)
from coreason_oauth.transport import SafeHTTPTransport, read_json_response
from coreason_oauth.utils.logger import anonymize, logger

tracer = trace.get_tracer(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _provider_error_message(data: Any, fallback: str) -> str:
    """Builds a short message from an OAuth error body (RFC 6749 section 5.2)."""
    if not isinstance(data, dict):
        return fallback
    error = data.get("error")
    description = data.get("error_description")
    if isinstance(error, dict):
        # Graph API style: {"error": {"message": ..., "type": ...}}
        return str(error.get("message") or error.get("type") or fallback)
    if error and description:
        return f"{error}: {description}"
    return str(description or error or fallback)


def _provider_error_description(data: Any) -> str | None:
    description = data.get("error_description") if isinstance(data, dict) else None
    return description if isinstance(description, str) else None


class OAuthHandler:
    """
    Runs the OAuth 2.0 authorization-code flow (with PKCE where supported) for one provider.

    Construction fails fast, before any network call, for an unknown provider
    (`invalid_provider`) or missing credentials (`missing_config`). After that,
    `handle_callback` never raises: every failure comes back as an `AuthFailure`.

    Handles resources via async context manager.
    """

    def __init__(
        self,
        provider_id: str,
        config_provider: ConfigProvider,
        *,
        client: httpx.AsyncClient | None = None,
        settings: CoreasonOAuthSettings | None = None,
        registry: ProviderRegistry | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """
        Initialize the OAuthHandler.

        Args:
            provider_id: The registered provider id (e.g. "google").
            config_provider: Resolves the client credentials for the provider.
            client: External async client (optional). If not provided, a `SafeHTTPTransport` client is created.
            settings: Package settings. Loaded from the environment when omitted.
            registry: Provider registry. Defaults to the built-in providers.
            clock: Returns the current time in epoch milliseconds.

        Raises:
            OAuthException: `invalid_provider` or `missing_config`.
        """
        self.registry = registry or default_registry
        self.adapter = self.registry.adapter(provider_id)
        self.provider = self.adapter.descriptor
        self.config = config_provider.get_config(provider_id)
        self.settings = settings or CoreasonOAuthSettings()
        self.normalizer = UserProfileNormalizer(self.registry)
        self._clock = clock or _now_ms
        self._internal_client = client is None

        if client:
            self._client = client
        else:
            # Use SafeHTTPTransport to prevent SSRF and DNS Rebinding
            self._client = httpx.AsyncClient(transport=SafeHTTPTransport(), timeout=self.settings.http_timeout)
            HTTPXClientInstrumentor().instrument_client(self._client)

    async def __aenter__(self) -> "OAuthHandler":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._internal_client:
            await self._client.aclose()

    def generate_auth_url(self, redirect_to: str | None = None) -> tuple[str, FlowState]:
        """
        Builds the authorization URL and the FlowState that goes with it.

        Query parameters are emitted in a fixed order: response_type, client_id,
        redirect_uri, scope, state, then code_challenge and code_challenge_method when
        PKCE is used, then the provider's static parameters, then the configured
        additional parameters in insertion order.

        Args:
            redirect_to: Where to send the user after a successful login.

        Returns:
            The URL, and the FlowState to keep in the side channel. Only the returned
            FlowState holds the PKCE code verifier; the `state` parameter never does.
        """
        with tracer.start_as_current_span("oauth.generate_auth_url") as span:
            span.set_attribute("oauth.provider", self.provider.id)

            state = FlowState(
                provider=self.provider.id,
                redirect_to=redirect_to,
                nonce=generate_state(),
                timestamp=self._clock(),
            )
            scopes = self.config.scopes if self.config.scopes is not None else self.provider.scopes

            params: list[tuple[str, str]] = [
                ("response_type", self.provider.response_type),
                ("client_id", self.config.client_id),
                ("redirect_uri", self.config.redirect_uri),
                ("scope", " ".join(scopes)),
                ("state", encode_state(state)),
            ]

            if self.provider.pkce_supported:
                code_verifier = generate_code_verifier()
                params.append(("code_challenge", generate_code_challenge(code_verifier)))
                params.append(("code_challenge_method", "S256"))
                state = state.model_copy(update={"code_verifier": code_verifier})

            params.extend(self.adapter.build_authorization_params())
            if self.config.additional_params:
                params.extend(self.config.additional_params.items())

            logger.info(f"Generated authorization URL for {self.provider.id} (pkce={self.provider.pkce_supported})")
            return f"{self.provider.auth_url}?{urlencode(params)}", state

    def parse_state(self, state_param: str) -> FlowState:
        """
        Decodes and validates the `state` query parameter.

        Raises:
            OAuthException: `invalid_state` when the value does not decode, lacks
                provider/timestamp/nonce, is older than the configured maximum age,
                or names a different provider.
        """
        try:
            state = decode_state(state_param)
            if not state.provider or not state.timestamp or not state.nonce:
                raise ValueError("Invalid state structure")

            age_ms = self._clock() - state.timestamp
            max_age_ms = self.settings.state_max_age_seconds * 1000
            if age_ms > max_age_ms:
                raise ValueError("State expired")
            if age_ms < -max_age_ms:
                raise ValueError("State timestamp is in the future")

            if state.provider != self.provider.id:
                raise ValueError("Provider mismatch")
        except ValueError as e:
            raise OAuthException(
                OAuthErrorCode.INVALID_STATE,
                "Invalid or expired state parameter",
                self.provider.id,
                str(e),
            ) from e
        return state

    def _check_stored_state(self, url_state: FlowState, stored_state: FlowState) -> None:
        tolerance = self.settings.state_timestamp_tolerance_ms
        if (
            url_state.provider != stored_state.provider
            or url_state.nonce != stored_state.nonce
            or abs(url_state.timestamp - stored_state.timestamp) > tolerance
        ):
            raise OAuthException(
                OAuthErrorCode.INVALID_STATE,
                "State mismatch between URL and stored state",
                self.provider.id,
            )

    async def exchange_code_for_token(self, code: str, state: FlowState) -> TokenResponse:
        """
        Exchanges the authorization code at the provider's token endpoint.

        Args:
            code: The authorization code from the callback.
            state: The FlowState of this flow; carries the PKCE code verifier when used.

        Raises:
            OAuthException: `invalid_state` when PKCE is required but no verifier is
                available, `token_exchange_failed` for error responses, `network_error`
                on transport failure.
        """
        data = {
            "grant_type": self.provider.grant_type,
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret.get_secret_value(),
            "redirect_uri": self.config.redirect_uri,
        }

        if self.provider.pkce_supported:
            if not state.code_verifier:
                raise OAuthException(
                    OAuthErrorCode.INVALID_STATE,
                    "Missing PKCE code verifier for token exchange",
                    self.provider.id,
                )
            data["code_verifier"] = state.code_verifier

        request = self._client.build_request(
            "POST",
            self.provider.token_url,
            data=data,
            headers={"Accept": "application/json"},
        )

        try:
            response = await read_json_response(self._client, request, self.settings.max_response_bytes)
        except (httpx.HTTPError, SecurityError) as e:
            logger.error(f"Token exchange request failed for {self.provider.id}: {type(e).__name__}")
            raise OAuthException(
                OAuthErrorCode.NETWORK_ERROR, "Network error during token exchange", self.provider.id, e
            ) from e
        except OversizedResponseError as e:
            raise OAuthException(
                OAuthErrorCode.TOKEN_EXCHANGE_FAILED, "Token response too large", self.provider.id, e
            ) from e

        body = response.data
        # Some providers answer 200 with an error body
        if not response.is_success or (isinstance(body, dict) and body.get("error") and "access_token" not in body):
            logger.error(f"Token exchange failed for {self.provider.id} | status={response.status_code}")
            raise OAuthException(
                OAuthErrorCode.TOKEN_EXCHANGE_FAILED,
                _provider_error_message(body, "Token exchange failed"),
                self.provider.id,
                body,
                description=_provider_error_description(body),
            )

        if not isinstance(body, dict):
            raise OAuthException(
                OAuthErrorCode.TOKEN_EXCHANGE_FAILED, "Invalid token response", self.provider.id, body
            )
        try:
            token = TokenResponse.model_validate(body)
        except ValueError as e:
            raise OAuthException(
                OAuthErrorCode.TOKEN_EXCHANGE_FAILED, "Invalid token response", self.provider.id, str(e)
            ) from e

        logger.info(f"Token exchange succeeded for {self.provider.id}")
        return token

    async def fetch_user_profile(self, access_token: str) -> dict[str, Any]:
        """
        Fetches the raw user profile with the access token.

        Raises:
            OAuthException: `profile_fetch_failed` for error or non-object responses,
                `network_error` on transport failure.
        """
        user_info = self.adapter.build_user_info_request(access_token)
        # Rebuild through the client so its timeout and defaults apply
        request = self._client.build_request(user_info.method, user_info.url, headers=user_info.headers)

        try:
            response = await read_json_response(self._client, request, self.settings.max_response_bytes)
        except (httpx.HTTPError, SecurityError) as e:
            logger.error(f"Profile request failed for {self.provider.id}: {type(e).__name__}")
            raise OAuthException(
                OAuthErrorCode.NETWORK_ERROR, "Network error during profile fetch", self.provider.id, e
            ) from e
        except OversizedResponseError as e:
            raise OAuthException(
                OAuthErrorCode.PROFILE_FETCH_FAILED, "Profile response too large", self.provider.id, e
            ) from e

        if not response.is_success:
            logger.error(f"Profile fetch failed for {self.provider.id} | status={response.status_code}")
            raise OAuthException(
                OAuthErrorCode.PROFILE_FETCH_FAILED,
                _provider_error_message(response.data, "Profile fetch failed"),
                self.provider.id,
                response.data,
                description=_provider_error_description(response.data),
            )
        if not isinstance(response.data, dict):
            raise OAuthException(
                OAuthErrorCode.PROFILE_FETCH_FAILED, "Invalid profile response", self.provider.id, response.data
            )
        return response.data

    async def handle_callback(
        self,
        code: str | None,
        state_param: str | None,
        stored_state: FlowState | None = None,
        *,
        error: str | None = None,
        error_description: str | None = None,
    ) -> AuthResult:
        """
        Completes the flow from the provider's callback parameters.

        Emits an OpenTelemetry span `oauth.handle_callback`.

        Args:
            code: The `code` query parameter.
            state_param: The `state` query parameter.
            stored_state: The FlowState kept in the side channel. When given, it must match
                the URL state (provider, nonce, timestamp within tolerance) and supplies the
                PKCE code verifier.
            error: The `error` query parameter. When present the flow stops immediately.
            error_description: The `error_description` query parameter.

        Returns:
            AuthSuccess with the new Session, or AuthFailure with a classified OAuthError.
        """
        with tracer.start_as_current_span("oauth.handle_callback") as span:
            span.set_attribute("oauth.provider", self.provider.id)
            oauth_error: OAuthError

            try:
                if error:
                    raise OAuthException(
                        OAuthErrorCode.AUTHORIZATION_FAILED,
                        error_description or error,
                        self.provider.id,
                        {"error": error, "error_description": error_description},
                        description=error_description,
                    )
                if not code or not state_param:
                    raise OAuthException(
                        OAuthErrorCode.INVALID_STATE, "Missing code or state parameter", self.provider.id
                    )

                flow_state = self.parse_state(state_param)
                if stored_state is not None:
                    self._check_stored_state(flow_state, stored_state)
                    # The stored copy carries the code verifier
                    flow_state = stored_state

                token = await self.exchange_code_for_token(code, flow_state)
                raw_profile = await self.fetch_user_profile(token.access_token)
                profile = self.normalizer.normalize(self.provider.id, raw_profile)

                now = self._clock()
                session = Session(
                    user=profile,
                    access_token=token.access_token,
                    refresh_token=token.refresh_token,
                    expires_at=now + token.expires_in * 1000 if token.expires_in is not None else None,
                    provider=self.provider.id,
                    created_at=now,
                )

                user_hash = anonymize(profile.id, self.settings.pii_salt.get_secret_value())
                logger.info(f"OAuth login succeeded for {self.provider.id} user {user_hash}")
                span.set_attribute("enduser.id", user_hash)
                span.set_status(Status(StatusCode.OK))
                return AuthSuccess(session=session)

            except OAuthException as e:
                oauth_error = e.to_oauth_error()
            except Exception as e:
                logger.exception(f"Unexpected error during OAuth callback for {self.provider.id}")
                oauth_error = create_oauth_error(
                    OAuthErrorCode.PROVIDER_ERROR,
                    str(e) or "Unknown error occurred",
                    self.provider.id,
                    e,
                )

            logger.warning(f"OAuth callback failed for {self.provider.id}: {oauth_error.code}")
            span.set_attribute("oauth.error", str(oauth_error.code))
            span.set_status(Status(StatusCode.ERROR, oauth_error.message))
            return AuthFailure(error=oauth_error)

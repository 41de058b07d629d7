# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

import pytest

from coreason_oauth.errors import (
    DEFAULT_ERROR_MESSAGE,
    ERROR_MESSAGES,
    OAuthError,
    OAuthErrorCode,
    create_oauth_error,
    get_error_message,
)
from coreason_oauth.exceptions import (
    CoreasonOAuthError,
    NoActiveSessionError,
    OAuthException,
    OversizedResponseError,
    SecurityError,
)


def test_exception_hierarchy():
    """All custom exceptions inherit from CoreasonOAuthError."""
    assert issubclass(OAuthException, CoreasonOAuthError)
    assert issubclass(NoActiveSessionError, CoreasonOAuthError)
    assert issubclass(OversizedResponseError, CoreasonOAuthError)
    assert issubclass(SecurityError, CoreasonOAuthError)


def test_oauth_exception_fields():
    original = {"error": "invalid_grant"}
    err = OAuthException("token_exchange_failed", "invalid_grant", "google", original)

    assert str(err) == "invalid_grant"
    assert err.code is OAuthErrorCode.TOKEN_EXCHANGE_FAILED
    assert err.provider == "google"
    assert err.original_error is original


def test_oauth_exception_rejects_unknown_code():
    with pytest.raises(ValueError):
        OAuthException("teapot", "I'm a teapot", "google")


def test_to_oauth_error_keeps_fields():
    error = OAuthException(OAuthErrorCode.NETWORK_ERROR, "Network error", "github", "boom").to_oauth_error()

    assert isinstance(error, OAuthError)
    assert error.code == OAuthErrorCode.NETWORK_ERROR
    assert error.message == "Network error"
    assert error.provider == "github"
    assert error.original_error == "boom"
    assert error.description is None


def test_description_carried_to_oauth_error():
    error = OAuthException(
        OAuthErrorCode.TOKEN_EXCHANGE_FAILED, "invalid_grant", "google", description="Code was already redeemed."
    ).to_oauth_error()
    assert error.description == "Code was already redeemed."
    assert create_oauth_error("provider_error", "boom", "line", description="detail").description == "detail"


def test_error_codes_are_closed_set():
    assert {code.value for code in OAuthErrorCode} == {
        "invalid_provider",
        "missing_config",
        "invalid_state",
        "authorization_failed",
        "token_exchange_failed",
        "profile_fetch_failed",
        "invalid_token",
        "network_error",
        "provider_error",
        "session_expired",
        "invalid_scope",
    }
    assert set(ERROR_MESSAGES) == set(OAuthErrorCode)


def test_original_error_not_serialized():
    """The diagnostic payload stays out of dumps and repr."""
    error = create_oauth_error("provider_error", "boom", "discord", {"client_secret": "s3cr3t"})

    assert "original_error" not in error.model_dump()
    assert "s3cr3t" not in error.model_dump_json()
    assert "s3cr3t" not in repr(error)
    assert error.original_error == {"client_secret": "s3cr3t"}


def test_oauth_error_is_frozen():
    error = create_oauth_error(OAuthErrorCode.INVALID_STATE, "bad", "google")
    with pytest.raises(ValueError):
        error.message = "changed"  # type: ignore[misc]


def test_get_error_message_uses_catalogue():
    error = create_oauth_error(OAuthErrorCode.SESSION_EXPIRED, "expired at 12:00", "google")
    assert get_error_message(error) == "Your session has expired. Please log in again."


def test_get_error_message_falls_back_to_message():
    error = create_oauth_error(OAuthErrorCode.INVALID_SCOPE, "scope 'admin' not allowed", "github")
    with pytest.MonkeyPatch.context() as mp:
        mp.delitem(ERROR_MESSAGES, OAuthErrorCode.INVALID_SCOPE)
        assert get_error_message(error) == "scope 'admin' not allowed"

        empty = create_oauth_error(OAuthErrorCode.INVALID_SCOPE, "", "github")
        assert get_error_message(empty) == DEFAULT_ERROR_MESSAGE

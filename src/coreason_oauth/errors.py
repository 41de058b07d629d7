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
Error taxonomy shared by every component of the coreason-oauth package.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OAuthErrorCode(StrEnum):
    INVALID_PROVIDER = "invalid_provider"
    MISSING_CONFIG = "missing_config"
    INVALID_STATE = "invalid_state"
    AUTHORIZATION_FAILED = "authorization_failed"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    INVALID_TOKEN = "invalid_token"
    NETWORK_ERROR = "network_error"
    PROVIDER_ERROR = "provider_error"
    SESSION_EXPIRED = "session_expired"
    INVALID_SCOPE = "invalid_scope"


ERROR_MESSAGES: dict[OAuthErrorCode, str] = {
    OAuthErrorCode.INVALID_PROVIDER: "The selected authentication provider is not supported.",
    OAuthErrorCode.MISSING_CONFIG: "Authentication configuration is missing or invalid.",
    OAuthErrorCode.INVALID_STATE: "Authentication state is invalid or expired.",
    OAuthErrorCode.AUTHORIZATION_FAILED: "Authorization with the provider failed.",
    OAuthErrorCode.TOKEN_EXCHANGE_FAILED: "Failed to exchange authorization code for access token.",
    OAuthErrorCode.PROFILE_FETCH_FAILED: "Failed to fetch user profile from the provider.",
    OAuthErrorCode.INVALID_TOKEN: "The access token is invalid or expired.",
    OAuthErrorCode.NETWORK_ERROR: "Network error occurred during authentication.",
    OAuthErrorCode.PROVIDER_ERROR: "The authentication provider returned an error.",
    OAuthErrorCode.SESSION_EXPIRED: "Your session has expired. Please log in again.",
    OAuthErrorCode.INVALID_SCOPE: "The requested permissions are invalid.",
}

DEFAULT_ERROR_MESSAGE = "An unknown error occurred during authentication."


class OAuthError(BaseModel):
    """
    A classified authentication failure.

    `original_error` keeps the upstream diagnostic payload for logging only. It is
    excluded from serialization and from `repr` so it never reaches an end user.

    Attributes:
        code (OAuthErrorCode): The error kind.
        message (str): A short description of what failed.
        provider (str): The provider the flow was running against.
        description (str | None): The provider's own `error_description`, when it sent one.
        original_error (Any): The upstream payload or exception, if any.
    """

    model_config = ConfigDict(frozen=True)

    code: OAuthErrorCode
    message: str
    provider: str
    description: str | None = None
    original_error: Any = Field(default=None, exclude=True, repr=False)


def create_oauth_error(
    code: OAuthErrorCode | str,
    message: str,
    provider: str,
    original_error: Any = None,
    description: str | None = None,
) -> OAuthError:
    """
    Builds an OAuthError from a code or its string value.

    Raises:
        ValueError: If `code` is not part of the closed enumeration.
    """
    return OAuthError(
        code=OAuthErrorCode(code),
        message=message,
        provider=provider,
        description=description,
        original_error=original_error,
    )


def get_error_message(error: OAuthError) -> str:
    """
    Maps an error to the short human-readable message shown to end users.
    """
    return ERROR_MESSAGES.get(error.code) or error.message or DEFAULT_ERROR_MESSAGE

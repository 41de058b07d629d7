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
Custom exceptions for the coreason-oauth package.
"""

from typing import Any

from coreason_oauth.errors import OAuthError, OAuthErrorCode


class CoreasonOAuthError(Exception):
    """Base exception for all coreason-oauth errors."""


class OAuthException(CoreasonOAuthError):
    """
    Raised inside the OAuth flow with a classified error code.
    `OAuthHandler.handle_callback` converts it into an `AuthFailure` result.
    """

    def __init__(
        self,
        code: OAuthErrorCode | str,
        message: str,
        provider: str,
        original_error: Any = None,
        description: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = OAuthErrorCode(code)
        self.message = message
        self.provider = provider
        self.original_error = original_error
        self.description = description

    def to_oauth_error(self) -> OAuthError:
        return OAuthError(
            code=self.code,
            message=self.message,
            provider=self.provider,
            description=self.description,
            original_error=self.original_error,
        )


class NoActiveSessionError(CoreasonOAuthError):
    """Raised when a session update is attempted without an active session."""


class OversizedResponseError(CoreasonOAuthError):
    """Raised when an HTTP response is too large."""


class SecurityError(CoreasonOAuthError):
    """Raised when a security violation is detected."""

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
Provider-agnostic OAuth 2.0 / OIDC login: authorization-code flow with PKCE,
normalized user profiles and pluggable session storage.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import CoreasonOAuthSettings, EnvConfigProvider, StaticConfigProvider
from .errors import OAuthError, OAuthErrorCode, get_error_message
from .exceptions import CoreasonOAuthError, NoActiveSessionError, OAuthException
from .handler import OAuthHandler
from .models import (
    AuthFailure,
    AuthResult,
    AuthSuccess,
    CookieOptions,
    FlowState,
    ProviderDescriptor,
    RuntimeConfig,
    Session,
    TokenResponse,
    UserProfile,
)
from .normalizer import UserProfileNormalizer
from .providers import ProviderAdapter, ProviderRegistry, get_all_providers, get_provider, is_valid_provider
from .redirects import create_error_redirect_url, create_success_redirect_url
from .session import KeyValueStore, MemoryKeyValueStore, SessionManager
from .state_store import FlowStateStore

__all__ = [
    "AuthFailure",
    "AuthResult",
    "AuthSuccess",
    "CookieOptions",
    "CoreasonOAuthError",
    "CoreasonOAuthSettings",
    "EnvConfigProvider",
    "FlowState",
    "FlowStateStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "NoActiveSessionError",
    "OAuthError",
    "OAuthErrorCode",
    "OAuthException",
    "OAuthHandler",
    "ProviderAdapter",
    "ProviderDescriptor",
    "ProviderRegistry",
    "RuntimeConfig",
    "Session",
    "SessionManager",
    "StaticConfigProvider",
    "TokenResponse",
    "UserProfile",
    "UserProfileNormalizer",
    "create_error_redirect_url",
    "create_success_redirect_url",
    "get_all_providers",
    "get_error_message",
    "get_provider",
    "is_valid_provider",
]

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

import socket
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest
from pydantic import SecretStr

from coreason_oauth.config import CoreasonOAuthSettings, StaticConfigProvider
from coreason_oauth.models import RuntimeConfig, Session, UserProfile
from coreason_oauth.providers import get_provider_ids

NOW_MS = 1_700_000_000_000
BASE_URL = "https://app.example.com"


@pytest.fixture(autouse=True)
def mock_dns_resolution() -> Generator[MagicMock, None, None]:
    """
    Globally patches socket.getaddrinfo to return a safe public IP by default.

    Tests that need to verify SSRF logic should patch socket.getaddrinfo again
    or configure this mock's return value.
    """
    safe_response = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("8.8.8.8", 443))]

    with patch("socket.getaddrinfo", return_value=safe_response) as mock:
        yield mock


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> CoreasonOAuthSettings:
    return CoreasonOAuthSettings(base_url=BASE_URL)


def runtime_config(provider_id: str, **overrides: Any) -> RuntimeConfig:
    values: dict[str, Any] = {
        "client_id": f"{provider_id}-client-id",
        "client_secret": SecretStr(f"{provider_id}-client-secret"),
        "redirect_uri": f"{BASE_URL}/api/auth/{provider_id}/callback",
    }
    values.update(overrides)
    return RuntimeConfig(**values)


@pytest.fixture
def config_provider() -> StaticConfigProvider:
    return StaticConfigProvider({provider_id: runtime_config(provider_id) for provider_id in get_provider_ids()})


class RecordingBackend:
    """
    Routes requests to per-host handlers and records every request it sees.
    """

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"error": "not_found"})
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_profile(provider: str = "google", user_id: str = "1234567890", **overrides: Any) -> UserProfile:
    values: dict[str, Any] = {
        "id": user_id,
        "email": "alice@example.com",
        "name": "Alice Smith",
        "display_name": "Alice Smith",
        "provider": provider,
        "provider_account_id": user_id,
        "raw": {"id": user_id},
    }
    values.update(overrides)
    return UserProfile(**values)


def make_session(provider: str = "google", user_id: str = "1234567890", **overrides: Any) -> Session:
    values: dict[str, Any] = {
        "user": make_profile(provider, user_id),
        "access_token": f"{provider}-access-token",
        "refresh_token": f"{provider}-refresh-token",
        "expires_at": NOW_MS + 3_600_000,
        "provider": provider,
        "created_at": NOW_MS,
    }
    values.update(overrides)
    return Session(**values)

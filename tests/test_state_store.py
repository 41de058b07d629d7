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

from conftest import NOW_MS
from coreason_oauth.config import CoreasonOAuthSettings
from coreason_oauth.models import CookieOptions, FlowState
from coreason_oauth.session import MemoryKeyValueStore
from coreason_oauth.state_store import FlowStateStore


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.mark.asyncio
async def test_save_and_load_keeps_verifier(store, settings):
    states = FlowStateStore(store, settings)
    state = FlowState(provider="google", redirect_to="/x", nonce="n", timestamp=NOW_MS, code_verifier="v" * 43)

    await states.save(state)

    assert await states.load("google") == state
    assert await states.load("github") is None


@pytest.mark.asyncio
async def test_state_cookie_attributes(store, settings):
    states = FlowStateStore(store, settings)
    await states.save(FlowState(provider="discord", nonce="n", timestamp=NOW_MS))

    options = store.options["oauth-state-discord"]
    assert options.max_age == 300
    assert options.http_only is True
    assert options.same_site == "lax"
    assert options.secure is False


def test_state_cookie_secure_in_production(store):
    states = FlowStateStore(store, CoreasonOAuthSettings(environment="production"))
    assert states.cookie_options().secure is True


@pytest.mark.asyncio
async def test_clear(store, settings):
    states = FlowStateStore(store, settings)
    await states.save(FlowState(provider="line", nonce="n", timestamp=NOW_MS))

    await states.clear("line")

    assert await states.load("line") is None


@pytest.mark.asyncio
async def test_malformed_state_is_discarded(store, settings):
    states = FlowStateStore(store, settings)
    await store.set(states.key_for("google"), b'{"provider": "google"}', CookieOptions(max_age=60))

    assert await states.load("google") is None
    assert await store.get("oauth-state-google") is None


def test_key_prefix_is_configurable(store):
    states = FlowStateStore(store, CoreasonOAuthSettings(state_cookie_prefix="__Host-st-"))
    assert states.key_for("github") == "__Host-st-github"

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

from conftest import NOW_MS, make_session
from coreason_oauth.config import CoreasonOAuthSettings
from coreason_oauth.exceptions import NoActiveSessionError
from coreason_oauth.models import CookieOptions
from coreason_oauth.session import MemoryKeyValueStore, SessionManager


class SecondsClock:
    def __init__(self, now: float = NOW_MS / 1000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def manager(store, settings, clock):
    return SessionManager(store, settings, clock=clock)


# --- MemoryKeyValueStore ---


@pytest.mark.asyncio
async def test_memory_store_round_trip():
    store = MemoryKeyValueStore()
    await store.set("k", b"v", CookieOptions(max_age=60))
    assert await store.get("k") == b"v"
    assert store.options["k"].max_age == 60

    await store.delete("k")
    assert await store.get("k") is None
    assert "k" not in store.options


@pytest.mark.asyncio
async def test_memory_store_honours_max_age():
    clock = SecondsClock()
    store = MemoryKeyValueStore(clock=clock)
    await store.set("k", b"v", CookieOptions(max_age=60))

    clock.now += 59
    assert await store.get("k") == b"v"
    clock.now += 1
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_memory_store_delete_missing_key():
    await MemoryKeyValueStore().delete("missing")


def test_cookie_options_reject_non_positive_max_age():
    with pytest.raises(ValueError):
        CookieOptions(max_age=0)


# --- lifecycle ---


@pytest.mark.asyncio
async def test_session_lifecycle(manager, store):
    session = make_session()

    await manager.create_session(session)

    assert await manager.get_session() == session
    assert await manager.is_authenticated() is True
    assert await manager.get_access_token() == "google-access-token"
    assert (await manager.get_user()) == session.user

    await manager.delete_session()

    assert await manager.get_session() is None
    assert await manager.is_authenticated() is False
    assert await manager.get_access_token() is None
    assert await manager.get_user() is None


@pytest.mark.asyncio
async def test_default_cookie_options(manager, store):
    await manager.create_session(make_session())

    options = store.options["oauth-session"]
    assert options.max_age == 7 * 24 * 60 * 60
    assert options.http_only is True
    assert options.same_site == "lax"
    assert options.path == "/"
    assert options.secure is False


@pytest.mark.asyncio
async def test_production_cookies_are_secure(store, clock):
    settings = CoreasonOAuthSettings(base_url="https://app.example.com", environment="production")
    manager = SessionManager(store, settings, clock=clock)

    await manager.create_session(make_session(), manager.default_cookie_options(max_age=3600))

    assert store.options["oauth-session"].secure is True
    assert store.options["oauth-session"].max_age == 3600


@pytest.mark.asyncio
async def test_expired_session_is_deleted(manager, store, clock):
    await manager.create_session(make_session(expires_at=NOW_MS + 1000))

    clock.advance(1000)
    assert await manager.get_session() is not None

    clock.advance(1)
    assert await manager.get_session() is None
    assert await store.get("oauth-session") is None


@pytest.mark.asyncio
async def test_session_without_expiry_never_expires(manager, clock):
    await manager.create_session(make_session(expires_at=None))
    clock.advance(10 * 365 * 24 * 3_600_000)
    assert await manager.is_authenticated() is True


@pytest.mark.asyncio
async def test_malformed_session_is_discarded(manager, store):
    await store.set("oauth-session", b"{not json", CookieOptions(max_age=60))

    assert await manager.get_session() is None
    assert await store.get("oauth-session") is None


@pytest.mark.asyncio
async def test_update_session(manager):
    await manager.create_session(make_session())

    updated = await manager.update_session({"access_token": "rotated", "expires_at": NOW_MS + 10})

    assert updated.access_token == "rotated"
    assert updated.refresh_token == "google-refresh-token"
    assert (await manager.get_session()) == updated


@pytest.mark.asyncio
async def test_update_without_session(manager):
    with pytest.raises(NoActiveSessionError, match="No active session to update"):
        await manager.update_session({"access_token": "x"})


@pytest.mark.asyncio
async def test_update_rejects_invalid_values(manager):
    await manager.create_session(make_session())
    with pytest.raises(ValueError):
        await manager.update_session({"created_at": "yesterday"})


@pytest.mark.asyncio
async def test_refresh_access_token_not_supported(manager):
    await manager.create_session(make_session())
    assert await manager.refresh_access_token("google", "google-refresh-token") is False
    assert await manager.get_access_token() == "google-access-token"


# --- multiple providers ---


@pytest.mark.asyncio
async def test_add_provider_without_session_creates_it(manager):
    github = make_session("github", "42")

    await manager.add_provider_to_session(github)

    assert await manager.get_session() == github


@pytest.mark.asyncio
async def test_add_and_remove_providers(manager):
    google = make_session("google", "g-1")
    github = make_session("github", "gh-1", access_token="gho_token")
    discord = make_session("discord", "d-1")

    await manager.create_session(google)
    await manager.add_provider_to_session(github)
    await manager.add_provider_to_session(discord)

    session = await manager.get_session()
    assert session is not None
    assert session.provider == "google"
    assert session.access_token == google.access_token
    assert session.user == google.user
    assert set(session.providers or {}) == {"github", "discord"}

    data = await manager.get_provider_data("github")
    assert data is not None
    assert data.access_token == "gho_token"
    assert data.user.provider == "github"

    primary = await manager.get_provider_data("google")
    assert primary is not None
    assert primary.access_token == google.access_token

    assert await manager.get_provider_data("twitter") is None

    await manager.remove_provider_from_session("github")
    session = await manager.get_session()
    assert session is not None
    assert set(session.providers or {}) == {"discord"}

    await manager.remove_provider_from_session("discord")
    session = await manager.get_session()
    assert session is not None
    assert session.providers is None
    assert session.provider == "google"


@pytest.mark.asyncio
async def test_relinking_provider_replaces_entry(manager):
    await manager.create_session(make_session("google"))
    await manager.add_provider_to_session(make_session("github", access_token="old"))
    await manager.add_provider_to_session(make_session("github", access_token="new"))

    data = await manager.get_provider_data("github")
    assert data is not None
    assert data.access_token == "new"


@pytest.mark.asyncio
async def test_remove_last_entry_for_primary_provider_deletes_session(manager):
    """A session whose only linked entry is its own primary has nothing left after removal."""
    google = make_session("google")
    await manager.create_session(
        google.model_copy(update={"providers": {"google": google.to_provider_data()}})
    )

    await manager.remove_provider_from_session("google")

    assert await manager.get_session() is None


@pytest.mark.asyncio
async def test_remove_provider_noops(manager):
    await manager.remove_provider_from_session("github")
    assert await manager.get_session() is None

    session = make_session("google")
    await manager.create_session(session)
    await manager.remove_provider_from_session("google")
    assert await manager.get_session() == session

    await manager.add_provider_to_session(make_session("github"))
    await manager.remove_provider_from_session("twitter")
    current = await manager.get_session()
    assert current is not None
    assert set(current.providers or {}) == {"github"}


@pytest.mark.asyncio
async def test_get_provider_data_without_session(manager):
    assert await manager.get_provider_data("google") is None


def test_session_is_expired_boundary():
    session = make_session(expires_at=NOW_MS)
    assert session.is_expired(NOW_MS) is False
    assert session.is_expired(NOW_MS + 1) is True

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
Session storage: the key-value capability and the SessionManager built on it.
"""

import time
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError

from coreason_oauth.config import CoreasonOAuthSettings
from coreason_oauth.exceptions import NoActiveSessionError
from coreason_oauth.models import CookieOptions, ProviderSessionData, Session, UserProfile
from coreason_oauth.utils.logger import logger


class KeyValueStore(Protocol):
    """
    Protocol for the blob storage behind sessions and flow states.

    A cookie jar, a cache or a database can satisfy it. `options` carries the max-age
    and the cookie attributes the backing transport must apply.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, options: CookieOptions) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """
    In-memory implementation of KeyValueStore.
    Honours max-age with lazy cleanup on access. Not suitable for distributed systems.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._data: dict[str, tuple[bytes, float]] = {}
        self.options: dict[str, CookieOptions] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            await self.delete(key)
            return None
        return value

    async def set(self, key: str, value: bytes, options: CookieOptions) -> None:
        self._data[key] = (value, self._clock() + options.max_age)
        self.options[key] = options

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
        self.options.pop(key, None)


class SessionManager:
    """
    Owns the lifecycle of the persisted session record.

    Expiry is enforced on read: an expired record is deleted and reported as absent.
    Writes are last-writer-wins.

    Attributes:
        store (KeyValueStore): Backing blob storage.
        settings (CoreasonOAuthSettings): Cookie name and default lifetimes.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: CoreasonOAuthSettings | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or CoreasonOAuthSettings()
        self._clock = clock or (lambda: int(time.time() * 1000))

    @property
    def cookie_name(self) -> str:
        return self.settings.session_cookie_name

    def default_cookie_options(self, max_age: int | None = None) -> CookieOptions:
        return CookieOptions(
            max_age=max_age or self.settings.session_max_age_seconds,
            secure=self.settings.cookie_secure,
        )

    async def create_session(self, session: Session, options: CookieOptions | None = None) -> None:
        """
        Persists `session`, replacing any existing record.

        Args:
            session: The session to store.
            options: Cookie attributes. Defaults to a 7-day, httpOnly, lax cookie.
        """
        await self.store.set(
            self.cookie_name,
            session.model_dump_json().encode("utf-8"),
            options or self.default_cookie_options(),
        )

    async def get_session(self) -> Session | None:
        """
        Returns the current session, or None when absent, malformed or expired.
        """
        blob = await self.store.get(self.cookie_name)
        if blob is None:
            return None

        try:
            session = Session.model_validate_json(blob)
        except ValidationError:
            logger.warning("Discarding malformed session record")
            await self.delete_session()
            return None

        if session.is_expired(self._clock()):
            logger.info(f"Session for {session.provider} expired")
            await self.delete_session()
            return None

        return session

    async def update_session(self, updates: dict[str, Any]) -> Session:
        """
        Shallow-merges `updates` into the current session and re-persists it.

        Raises:
            NoActiveSessionError: If there is no active session.
        """
        current = await self.get_session()
        if current is None:
            raise NoActiveSessionError("No active session to update")

        updated = Session.model_validate({**current.model_dump(), **updates})
        await self.create_session(updated)
        return updated

    async def delete_session(self) -> None:
        await self.store.delete(self.cookie_name)

    async def get_user(self) -> UserProfile | None:
        session = await self.get_session()
        return session.user if session else None

    async def is_authenticated(self) -> bool:
        return await self.get_session() is not None

    async def get_access_token(self) -> str | None:
        session = await self.get_session()
        return session.access_token if session else None

    async def add_provider_to_session(self, new_session: Session) -> None:
        """
        Links another provider into the current session.

        Without a current session this is `create_session(new_session)`. Otherwise the
        new provider's data is stored under `providers[new_session.provider]`, replacing
        any earlier entry, and the top-level fields are left untouched.
        """
        current = await self.get_session()
        if current is None:
            await self.create_session(new_session)
            return

        providers = dict(current.providers or {})
        providers[new_session.provider] = new_session.to_provider_data()
        await self.create_session(current.model_copy(update={"providers": providers}))
        logger.info(f"Linked {new_session.provider} to session for {current.provider}")

    async def remove_provider_from_session(self, provider_id: str) -> None:
        """
        Unlinks a provider from a multi-provider session.

        No-op when there is no session, no `providers` map, or no entry for the id.
        When the map becomes empty it is dropped; if the removed id was also the
        top-level provider nothing valid remains and the session is deleted.
        """
        current = await self.get_session()
        if current is None or not current.providers or provider_id not in current.providers:
            return

        remaining = {key: value for key, value in current.providers.items() if key != provider_id}

        if remaining:
            await self.update_session({"providers": remaining})
        elif current.provider == provider_id:
            await self.delete_session()
        else:
            await self.update_session({"providers": None})

        logger.info(f"Unlinked {provider_id} from session")

    async def get_provider_data(self, provider_id: str) -> ProviderSessionData | None:
        """
        Returns tokens and identity for one provider, from the top-level fields when it
        is the primary provider, else from the `providers` map.
        """
        session = await self.get_session()
        if session is None:
            return None

        if session.provider == provider_id:
            return session.to_provider_data()

        if session.providers and provider_id in session.providers:
            return session.providers[provider_id]

        return None

    async def refresh_access_token(self, provider_id: str, refresh_token: str) -> bool:
        """
        Refresh-token exchange is not supported; always returns False.
        """
        _ = refresh_token
        logger.info(f"Token refresh requested for {provider_id}: not supported")
        return False

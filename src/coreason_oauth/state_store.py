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
FlowStateStore component carrying FlowState between login and callback.

The stored copy is the one holding the PKCE code verifier; the copy echoed back in the
`state` query parameter is used only for the cross-check.
"""

from pydantic import ValidationError

from coreason_oauth.config import CoreasonOAuthSettings
from coreason_oauth.models import CookieOptions, FlowState
from coreason_oauth.session import KeyValueStore
from coreason_oauth.utils.logger import logger


class FlowStateStore:
    """
    Keeps one FlowState per provider under `{state_cookie_prefix}{provider}`.
    """

    def __init__(self, store: KeyValueStore, settings: CoreasonOAuthSettings | None = None) -> None:
        self.store = store
        self.settings = settings or CoreasonOAuthSettings()

    def key_for(self, provider_id: str) -> str:
        return f"{self.settings.state_cookie_prefix}{provider_id}"

    def cookie_options(self) -> CookieOptions:
        return CookieOptions(
            max_age=self.settings.state_cookie_max_age_seconds,
            secure=self.settings.cookie_secure,
            http_only=True,
            same_site="lax",
        )

    async def save(self, state: FlowState) -> None:
        await self.store.set(
            self.key_for(state.provider),
            state.model_dump_json().encode("utf-8"),
            self.cookie_options(),
        )

    async def load(self, provider_id: str) -> FlowState | None:
        """
        Returns the stored FlowState, or None when absent or malformed.
        """
        blob = await self.store.get(self.key_for(provider_id))
        if blob is None:
            return None
        try:
            return FlowState.model_validate_json(blob)
        except ValidationError:
            logger.warning(f"Discarding malformed stored state for {provider_id}")
            await self.clear(provider_id)
            return None

    async def clear(self, provider_id: str) -> None:
        await self.store.delete(self.key_for(provider_id))

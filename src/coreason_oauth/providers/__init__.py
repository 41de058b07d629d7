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
Provider registry: static descriptors plus per-provider profile normalizers.
"""

from collections.abc import Iterable
from typing import Any

from coreason_oauth.errors import OAuthErrorCode
from coreason_oauth.exceptions import OAuthException
from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter
from coreason_oauth.providers.discord import DiscordAdapter
from coreason_oauth.providers.facebook import FacebookAdapter
from coreason_oauth.providers.github import GitHubAdapter
from coreason_oauth.providers.google import GoogleAdapter
from coreason_oauth.providers.line import LineAdapter
from coreason_oauth.providers.twitter import TwitterAdapter


class ProviderRegistry:
    """
    Lookup table of provider adapters, keyed by provider id.

    Iteration order is registration order.
    """

    def __init__(self, adapters: Iterable[ProviderAdapter] = ()) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        """
        Registers an adapter. A later registration for the same id replaces the earlier one.
        """
        self._adapters[adapter.id] = adapter

    def get(self, provider_id: str) -> ProviderDescriptor | None:
        adapter = self._adapters.get(provider_id)
        return adapter.descriptor if adapter else None

    def all(self) -> list[ProviderDescriptor]:
        return [adapter.descriptor for adapter in self._adapters.values()]

    def ids(self) -> list[str]:
        return list(self._adapters)

    def is_valid(self, provider_id: str) -> bool:
        return provider_id in self._adapters

    def adapter(self, provider_id: str) -> ProviderAdapter:
        """
        Returns the adapter for a provider.

        Raises:
            OAuthException: `invalid_provider` if the id is not registered.
        """
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            raise OAuthException(
                OAuthErrorCode.INVALID_PROVIDER,
                f'Provider "{provider_id}" is not supported',
                provider_id,
            )
        return adapter

    def normalize(self, provider_id: str, raw: dict[str, Any]) -> NormalizedProfile:
        """
        Maps a raw user-info response onto the canonical profile fields.

        Raises:
            OAuthException: `invalid_provider` if the id is not registered.
            ValueError: If the response lacks required identity fields.
        """
        return self.adapter(provider_id).normalize(raw)


def default_adapters() -> list[ProviderAdapter]:
    return [
        LineAdapter(),
        GoogleAdapter(),
        FacebookAdapter(),
        GitHubAdapter(),
        DiscordAdapter(),
        TwitterAdapter(),
    ]


registry = ProviderRegistry(default_adapters())


def get_provider(provider_id: str) -> ProviderDescriptor | None:
    return registry.get(provider_id)


def get_all_providers() -> list[ProviderDescriptor]:
    return registry.all()


def get_provider_ids() -> list[str]:
    return registry.ids()


def is_valid_provider(provider_id: str) -> bool:
    return registry.is_valid(provider_id)


def normalize_profile(provider_id: str, raw: dict[str, Any]) -> NormalizedProfile:
    return registry.normalize(provider_id, raw)


__all__ = [
    "DiscordAdapter",
    "FacebookAdapter",
    "GitHubAdapter",
    "GoogleAdapter",
    "LineAdapter",
    "ProviderAdapter",
    "ProviderRegistry",
    "TwitterAdapter",
    "default_adapters",
    "get_all_providers",
    "get_provider",
    "get_provider_ids",
    "is_valid_provider",
    "normalize_profile",
    "registry",
]

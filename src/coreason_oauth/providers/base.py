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
Abstract base class for provider adapters.

An adapter pairs a provider's static descriptor with the provider-specific parts of
the flow: the user-info request shape and the raw-profile normalization. Shared flow
code never branches on provider identity.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor


class ProviderAdapter(ABC):
    """
    Base class for identity provider adapters.

    Subclasses set `descriptor` and implement `normalize`.
    """

    descriptor: ProviderDescriptor

    @property
    def id(self) -> str:
        return self.descriptor.id

    def build_authorization_params(self) -> list[tuple[str, str]]:
        """
        Static query parameters appended to the authorization URL, in declaration order.
        """
        return list(self.descriptor.auth_params)

    def build_user_info_request(self, access_token: str) -> httpx.Request:
        """
        Builds the GET request for the user-info endpoint.

        Args:
            access_token: The access token returned by the token endpoint.

        Returns:
            An unsent httpx.Request with the Bearer header and any static query parameters.
        """
        params = list(self.descriptor.user_info_params) or None
        return httpx.Request(
            "GET",
            self.descriptor.user_info_url,
            params=params,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    @abstractmethod
    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        """
        Maps the raw user-info response onto the canonical profile fields.

        Raises:
            ValueError: If the response lacks the fields needed for an identity.
        """


def require_str(raw: dict[str, Any], key: str) -> str:
    """Returns `raw[key]` as a string, raising ValueError when it is missing or empty."""
    value = raw.get(key)
    if value is None or value == "":
        raise ValueError(f"Profile response is missing '{key}'")
    return str(value)

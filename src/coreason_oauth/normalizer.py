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
UserProfileNormalizer component for mapping raw provider profiles to UserProfile.
"""

from typing import Any

from pydantic import ValidationError

from coreason_oauth.errors import OAuthErrorCode
from coreason_oauth.exceptions import CoreasonOAuthError, OAuthException
from coreason_oauth.models import UserProfile
from coreason_oauth.providers import ProviderRegistry, registry as default_registry
from coreason_oauth.utils.logger import logger

REQUIRED_PROFILE_FIELDS = ("id", "name", "provider", "provider_account_id")

# Later keys win, matching the precedence of the lists below.
_COMMON_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id", "user_id", "userId"),
    "email": ("email", "email_address"),
    "name": ("name", "display_name", "displayName", "full_name"),
    "display_name": ("username", "login", "screen_name"),
    "first_name": ("first_name", "given_name"),
    "last_name": ("last_name", "family_name"),
    "avatar": ("avatar_url", "picture", "pictureUrl", "profile_image_url"),
}

_MERGEABLE_FIELDS = ("email", "name", "first_name", "last_name", "avatar")


class UserProfileNormalizer:
    """
    Builds canonical UserProfile objects and combines profiles across providers.
    """

    def __init__(self, registry: ProviderRegistry | None = None) -> None:
        self.registry = registry or default_registry

    def normalize(self, provider_id: str, raw: dict[str, Any]) -> UserProfile:
        """
        Normalizes a raw user-info response into a UserProfile.

        Args:
            provider_id: The registered provider id.
            raw: The unmodified user-info response. Kept on the profile as `raw`.

        Returns:
            The canonical UserProfile with `provider_account_id` equal to `id`.

        Raises:
            OAuthException: `invalid_provider` for an unknown id, `profile_fetch_failed`
                when the response cannot be mapped to an identity.
        """
        try:
            normalized = self.registry.normalize(provider_id, raw)
            profile = UserProfile(
                **normalized.model_dump(),
                provider=provider_id,
                provider_account_id=normalized.id,
                raw=raw,
            )
        except CoreasonOAuthError:
            raise
        except (ValueError, TypeError, AttributeError, ValidationError) as e:
            logger.warning(f"Profile normalization failed for provider {provider_id}: {type(e).__name__}")
            raise OAuthException(
                OAuthErrorCode.PROFILE_FETCH_FAILED,
                f"Unexpected profile response from {provider_id}",
                provider_id,
                e,
            ) from e

        logger.debug(f"Normalized {provider_id} profile")
        return profile

    @staticmethod
    def merge_profiles(profiles: list[UserProfile]) -> UserProfile:
        """
        Merges profiles of the same person from several providers.

        The first profile is primary; its empty optional fields are filled from the others
        in order. Identity fields (`id`, `provider`, `raw`) always come from the primary.

        Raises:
            ValueError: If `profiles` is empty.
        """
        if not profiles:
            raise ValueError("No profiles to merge")

        primary = profiles[0]
        if len(profiles) == 1:
            return primary

        updates: dict[str, Any] = {}
        for profile in profiles[1:]:
            for field in _MERGEABLE_FIELDS:
                if not getattr(primary, field) and field not in updates and getattr(profile, field):
                    updates[field] = getattr(profile, field)

        return primary.model_copy(update=updates)

    @staticmethod
    def extract_common_fields(raw: dict[str, Any]) -> dict[str, Any]:
        """
        Best-effort mapping of commonly used raw keys onto canonical field names,
        for providers without a dedicated adapter.
        """
        fields: dict[str, Any] = {}
        for field, keys in _COMMON_FIELD_KEYS.items():
            for key in keys:
                value = raw.get(key)
                if value:
                    fields[field] = str(value) if field == "id" else value
        return fields

    @staticmethod
    def validate_profile(profile: UserProfile) -> tuple[bool, list[str]]:
        """
        Checks the required identity fields are non-empty.

        Returns:
            A tuple of (is_valid, missing_fields).
        """
        missing = [field for field in REQUIRED_PROFILE_FIELDS if not getattr(profile, field, None)]
        return not missing, missing

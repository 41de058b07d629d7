# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""Twitter / X OAuth 2.0 adapter."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str


class TwitterAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="twitter",
        name="twitter",
        display_name="Twitter",
        color="#1DA1F2",
        icon="twitter",
        auth_url="https://twitter.com/i/oauth2/authorize",
        token_url="https://api.twitter.com/2/oauth2/token",
        user_info_url="https://api.twitter.com/2/users/me",
        scopes=("tweet.read", "users.read"),
        pkce_supported=True,
        state_required=True,
        user_info_params=(("user.fields", "id,name,username,profile_image_url"),),
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        # v2 responses wrap the user object in a "data" envelope
        data = raw.get("data")
        user = data if isinstance(data, dict) else raw
        user_id = require_str(user, "id")
        username = user.get("username") or user_id
        return NormalizedProfile(
            id=user_id,
            name=user.get("name") or username,
            display_name=username,
            avatar=user.get("profile_image_url"),
        )

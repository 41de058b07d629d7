# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""Google OAuth 2.0 / OpenID Connect adapter."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str


class GoogleAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="google",
        name="google",
        display_name="Google",
        color="#4285F4",
        icon="google",
        auth_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        user_info_url="https://www.googleapis.com/oauth2/v2/userinfo",
        scopes=("openid", "email", "profile"),
        pkce_supported=True,
        state_required=True,
        # Request a refresh token
        auth_params=(("access_type", "offline"), ("prompt", "consent")),
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        user_id = require_str(raw, "id")
        name = raw.get("name") or raw.get("email") or user_id
        return NormalizedProfile(
            id=user_id,
            email=raw.get("email"),
            name=name,
            display_name=name,
            first_name=raw.get("given_name"),
            last_name=raw.get("family_name"),
            avatar=raw.get("picture"),
        )

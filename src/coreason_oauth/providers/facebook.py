# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""Facebook Login adapter (Graph API v18.0)."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str


class FacebookAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="facebook",
        name="facebook",
        display_name="Facebook",
        color="#1877F2",
        icon="facebook",
        auth_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        user_info_url="https://graph.facebook.com/v18.0/me",
        scopes=("email", "public_profile"),
        pkce_supported=True,
        state_required=True,
        # Graph API returns only id and name unless fields are listed
        user_info_params=(("fields", "id,name,email,picture,first_name,last_name"),),
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        user_id = require_str(raw, "id")
        name = raw.get("name") or user_id
        picture = raw.get("picture")
        avatar = None
        if isinstance(picture, dict) and isinstance(picture.get("data"), dict):
            avatar = picture["data"].get("url")
        return NormalizedProfile(
            id=user_id,
            email=raw.get("email"),
            name=name,
            display_name=name,
            first_name=raw.get("first_name"),
            last_name=raw.get("last_name"),
            avatar=avatar,
        )

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""LINE Login v2.1 adapter."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str


class LineAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="line",
        name="line",
        display_name="LINE",
        color="#06C755",
        icon="line",
        auth_url="https://access.line.me/oauth2/v2.1/authorize",
        token_url="https://api.line.me/oauth2/v2.1/token",
        user_info_url="https://api.line.me/v2/profile",
        scopes=("profile", "openid"),
        pkce_supported=True,
        state_required=True,
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        user_id = require_str(raw, "userId")
        display_name = raw.get("displayName") or user_id
        return NormalizedProfile(
            id=user_id,
            # Only present when the email scope was granted
            email=raw.get("email"),
            name=display_name,
            display_name=display_name,
            avatar=raw.get("pictureUrl"),
        )

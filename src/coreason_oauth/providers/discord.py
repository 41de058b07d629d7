# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""Discord OAuth2 adapter."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str

AVATAR_CDN_URL = "https://cdn.discordapp.com/avatars/{user_id}/{avatar_hash}.png"


class DiscordAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="discord",
        name="discord",
        display_name="Discord",
        color="#5865F2",
        icon="discord",
        auth_url="https://discord.com/api/oauth2/authorize",
        token_url="https://discord.com/api/oauth2/token",
        user_info_url="https://discord.com/api/users/@me",
        scopes=("identify", "email"),
        pkce_supported=True,
        state_required=True,
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        user_id = require_str(raw, "id")
        username = require_str(raw, "username")
        avatar_hash = raw.get("avatar")
        avatar = AVATAR_CDN_URL.format(user_id=user_id, avatar_hash=avatar_hash) if avatar_hash else None
        return NormalizedProfile(
            id=user_id,
            email=raw.get("email"),
            name=raw.get("global_name") or username,
            display_name=username,
            avatar=avatar,
        )

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oauth

"""GitHub OAuth App adapter."""

from typing import Any

from coreason_oauth.models import NormalizedProfile, ProviderDescriptor
from coreason_oauth.providers.base import ProviderAdapter, require_str


class GitHubAdapter(ProviderAdapter):
    descriptor = ProviderDescriptor(
        id="github",
        name="github",
        display_name="GitHub",
        color="#333333",
        icon="github",
        auth_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        user_info_url="https://api.github.com/user",
        scopes=("user:email",),
        pkce_supported=False,
        state_required=True,
    )

    def normalize(self, raw: dict[str, Any]) -> NormalizedProfile:
        """
        GitHub ids are numeric and stringified here. The single name field is split
        on the first space into first and last name, falling back to login.
        """
        user_id = require_str(raw, "id")
        login = require_str(raw, "login")
        full_name = raw.get("name") or login
        first_name, _, last_name = full_name.partition(" ")
        return NormalizedProfile(
            id=user_id,
            email=raw.get("email"),
            name=full_name,
            display_name=login,
            first_name=first_name or None,
            last_name=last_name or None,
            avatar=raw.get("avatar_url"),
        )

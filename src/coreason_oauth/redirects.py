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
Redirect URL builders for the routing layer.
"""

from urllib.parse import urlencode, urljoin

from coreason_oauth.security import is_same_origin


def create_error_redirect_url(origin: str, error: str, details: str | None = None) -> str:
    """
    Builds `{origin}/?error={error}&details={details}`.
    """
    params = {"error": error}
    if details:
        params["details"] = details
    return f"{origin.rstrip('/')}/?{urlencode(params)}"


def create_success_redirect_url(origin: str, redirect_to: str | None = None) -> str:
    """
    Returns `redirect_to` resolved against `origin` when it stays on the same origin,
    otherwise `{origin}/dashboard`.
    """
    base = origin.rstrip("/")
    if redirect_to:
        target = urljoin(f"{base}/", redirect_to)
        if is_same_origin(target, base):
            return target
    return f"{base}/dashboard"

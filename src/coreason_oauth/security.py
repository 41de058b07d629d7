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
Random state, nonce and PKCE helpers, plus the opaque encoding of FlowState.
"""

import base64
import binascii
import secrets
from urllib.parse import urlsplit

from authlib.oauth2.rfc7636 import create_s256_code_challenge
from pydantic import ValidationError

from coreason_oauth.models import FlowState

DEFAULT_PORTS = {"http": 80, "https": 443}


def generate_state(length: int = 32) -> str:
    """
    Generates a URL-safe random string from `length` random bytes.
    """
    return secrets.token_urlsafe(length)


def generate_nonce() -> str:
    """Generates a nonce for OpenID Connect requests."""
    return secrets.token_urlsafe(16)


def generate_code_verifier() -> str:
    """
    Generates a PKCE code verifier: 32 random bytes, base64url without padding (43 chars).
    """
    return secrets.token_urlsafe(32)


def generate_code_challenge(verifier: str) -> str:
    """
    Derives the S256 code challenge, base64url(SHA-256(verifier)) without padding.
    """
    return create_s256_code_challenge(verifier)


def encode_state(state: FlowState) -> str:
    """
    Encodes a FlowState for the `state` query parameter.

    The code verifier is never embedded. Unset optional fields are omitted.
    """
    payload = state.model_dump_json(exclude={"code_verifier"}, exclude_none=True)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_state(value: str) -> FlowState:
    """
    Reverses `encode_state`.

    Accepts the standard and URL-safe base64 alphabets, with or without padding.

    Raises:
        ValueError: If the value is not valid base64 or not a FlowState document.
    """
    if not value:
        raise ValueError("Empty state value")

    normalized = value.strip().replace("+", "-").replace("/", "_").rstrip("=")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.urlsafe_b64decode(normalized.encode("ascii"))
        return FlowState.model_validate_json(raw)
    except (binascii.Error, UnicodeEncodeError, ValidationError) as e:
        raise ValueError(f"Malformed state value: {e}") from e


def _origin_of(url: str) -> tuple[str, str, int | None]:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    # Raises ValueError for a malformed port
    port = parts.port or DEFAULT_PORTS.get(scheme)
    return scheme, (parts.hostname or "").lower(), port


def is_same_origin(url: str, origin: str) -> bool:
    """
    Returns True when `url` has the same scheme, host and port as `origin`.

    An explicit default port (443 for https, 80 for http) equals an omitted one.
    """
    try:
        return _origin_of(url) == _origin_of(origin)
    except ValueError:
        return False

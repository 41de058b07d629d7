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
Outbound HTTP for provider calls: SSRF-safe transport and size-capped response reading.
"""

import ipaddress
import json
import socket
from typing import Any, NamedTuple
from urllib.parse import parse_qsl

import anyio
import httpx

from coreason_oauth.exceptions import OversizedResponseError, SecurityError
from coreason_oauth.utils.logger import logger

DEFAULT_MAX_RESPONSE_BYTES = 1_000_000


class ProviderResponse(NamedTuple):
    status_code: int
    data: Any

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def is_public_address(address: str) -> bool:
    """True when `address` is an IP literal that is safe to connect to from a server."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return not (ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved or ip.is_multicast)


async def resolve_public_address(hostname: str) -> str:
    """
    Resolves `hostname` off the event loop and returns its first public address.

    Raises:
        SecurityError: If resolution fails or every address is non-public.
    """
    try:
        addr_infos = await anyio.to_thread.run_sync(socket.getaddrinfo, hostname, None, 0, socket.SOCK_STREAM)
    except socket.gaierror as e:
        logger.error(f"DNS resolution failed for {hostname}: {e}")
        raise SecurityError(f"DNS resolution failed for {hostname}") from e

    for *_, sockaddr in addr_infos:
        if is_public_address(str(sockaddr[0])):
            return str(sockaddr[0])

    logger.error(f"Security violation: No valid public IP found for {hostname}")
    raise SecurityError(f"Security violation: No valid public IP found for {hostname}")


class SafeHTTPTransport(httpx.AsyncHTTPTransport):
    """
    Transport for token and user-info calls that pins each request to a vetted public address.

    IP-literal hosts are checked directly. Hostnames are resolved once and the connection goes
    to that address, with the Host header and SNI kept on the provider's name for TLS.
    """

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        hostname = request.url.host

        if _is_ip_literal(hostname):
            if not is_public_address(hostname):
                logger.warning(f"Security violation: Blocked access to {hostname}")
                raise SecurityError(f"Access to {hostname} is blocked")
            return await super().handle_async_request(request)

        target_ip = await resolve_public_address(hostname)
        request.extensions["sni_hostname"] = hostname
        request.headers.setdefault("Host", request.url.netloc.decode("ascii"))
        request.url = request.url.copy_with(host=target_ip)

        logger.debug(f"DNS Pinned: {hostname} -> {target_ip}")
        return await super().handle_async_request(request)


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _parse_body(content: bytes, content_type: str) -> Any:
    if "application/x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(content.decode("utf-8", errors="replace")))
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return content.decode("utf-8", errors="replace")


async def read_json_response(
    client: httpx.AsyncClient,
    request: httpx.Request,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
) -> ProviderResponse:
    """
    Sends `request` once and reads the body with a size cap.

    Non-2xx responses are returned, not raised, so callers can surface the provider's
    error body. Form-encoded bodies are parsed into a dict; unparseable bodies come back
    as text.

    Raises:
        OversizedResponseError: If the body exceeds `max_bytes`.
        httpx.HTTPError: On transport failure.
    """
    response = await client.send(request, stream=True)
    try:
        content_length = response.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            raise OversizedResponseError("Response too large")

        content = bytearray()
        async for chunk in response.aiter_bytes():
            content.extend(chunk)
            if len(content) > max_bytes:
                raise OversizedResponseError("Response too large")
    finally:
        await response.aclose()

    return ProviderResponse(response.status_code, _parse_body(bytes(content), response.headers.get("Content-Type", "")))

"""HTTP helpers shared by the provider and voice adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ai_text_improver.models.schemas import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

_CREDENTIAL_STATUSES = (401, 403)


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a single request and translate failures into ServiceError.

    No retries are attempted.

    Args:
        client: HTTP client to send with.
        method: HTTP method.
        url: URL relative to the client's base URL.
        service: Service name used in log and error messages.
        **kwargs: Passed through to ``client.request``.

    Returns:
        The successful (2xx) response.

    Raises:
        ServiceError: NETWORK_FAILURE on transport errors, timeouts and
            unexpected statuses; INVALID_CREDENTIAL on 401/403.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.warning(f"{service} request timed out: {e!r}")
        raise ServiceError(ErrorKind.NETWORK_FAILURE, f"{service} request timed out") from e
    except httpx.HTTPError as e:
        logger.warning(f"{service} request failed: {e!r}")
        raise ServiceError(ErrorKind.NETWORK_FAILURE, f"{service} request failed: {e}") from e

    if response.status_code in _CREDENTIAL_STATUSES:
        logger.warning(f"{service} rejected the API key (HTTP {response.status_code})")
        raise ServiceError(
            ErrorKind.INVALID_CREDENTIAL,
            f"{service} rejected the API key",
            status_code=response.status_code,
        )
    if response.is_error:
        logger.warning(f"{service} returned HTTP {response.status_code}")
        raise ServiceError(
            ErrorKind.NETWORK_FAILURE,
            f"{service} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return response


def decode_json(response: httpx.Response, *, service: str) -> Any:
    """Decode a JSON body, raising MALFORMED_RESPONSE when it is not JSON."""
    try:
        return response.json()
    except ValueError as e:
        logger.warning(f"{service} returned a non-JSON body")
        logger.debug(f"Response body: {response.text[:500]}")
        raise ServiceError(ErrorKind.MALFORMED_RESPONSE, f"{service} returned a non-JSON body") from e

"""
HTTP transport for the Cosmos DB REST API.

Issues exactly one blocking HTTP call per ``send`` over an ``httpx.Client``
and maps failures onto the client's error taxonomy. It never retries.

Author: Cosmoslite Team
Date: 2026-02-04
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from cosmoslite.exceptions import RemoteError, TransportError
from cosmoslite.models import TransportResponse

logger = logging.getLogger(__name__)


class TransportClient:
    """
    Sends signed requests to one account endpoint.

    Transport options (timeouts, proxy, TLS verification, any extra
    ``httpx.Client`` keyword) are fixed at construction and apply to every call.
    """

    def __init__(
        self,
        endpoint: str,
        options: Optional[Dict[str, Any]] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the transport.

        Args:
            endpoint: Account endpoint, e.g. https://myaccount.documents.azure.com:443
            options: Keyword arguments for ``httpx.Client``
            client: Pre-built client (tests inject one with a MockTransport)
        """
        self.endpoint = endpoint.rstrip("/")
        self.options = dict(options or {})
        self._client = client or httpx.Client(**self.options)

    def send(
        self,
        path: str,
        verb: str,
        headers: Dict[str, str],
        body: Optional[Union[str, bytes]] = None,
    ) -> TransportResponse:
        """
        Issue one HTTP request.

        Args:
            path: Resource path starting with "/" (e.g. /dbs/{db}/colls)
            verb: HTTP method
            headers: Signed request headers
            body: Request body (JSON text, query JSON or raw media)

        Returns:
            TransportResponse with body, status and response headers

        Raises:
            TransportError: On connection, TLS or timeout failures
            RemoteError: On a non-2xx status (AuthenticationError for 401/403)
        """
        url = f"{self.endpoint}{path}"
        content = body.encode("utf-8") if isinstance(body, str) else body

        try:
            response = self._client.request(verb, url, headers=headers, content=content)
        except httpx.TransportError as e:
            logger.error(f"{verb} {path} failed: {e}")
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        logger.debug(f"{verb} {path} -> {response.status_code}")

        if not response.is_success:
            error = RemoteError.from_response(response.status_code, response.text)
            logger.warning(f"{verb} {path} returned {response.status_code} ({error.code})")
            raise error

        return TransportResponse(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "TransportClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

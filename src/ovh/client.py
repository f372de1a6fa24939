"""OVH Diagnostic Bot — Async OVH API Client.

Authenticated client for the OVH REST API built on httpx.AsyncClient:
  - Endpoint aliases (ovh-eu, ovh-ca, ...) or a full base URL
  - Request signing with the application secret and the user's consumer key
  - Server clock offset fetched once from /auth/time
  - Non-2xx answers raised as OvhApiError
"""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Optional

import httpx

from src.config import OvhConfig
from src.database.db import Database
from src.database import queries
from src.ovh.errors import OvhApiError
from src.utils.logger import get_logger

logger = get_logger(__name__)

ENDPOINTS = {
    "ovh-eu": "https://eu.api.ovh.com/1.0",
    "ovh-ca": "https://ca.api.ovh.com/1.0",
    "ovh-us": "https://api.us.ovhcloud.com/1.0",
    "kimsufi-eu": "https://eu.api.kimsufi.com/1.0",
    "kimsufi-ca": "https://ca.api.kimsufi.com/1.0",
    "soyoustart-eu": "https://eu.api.soyoustart.com/1.0",
    "soyoustart-ca": "https://ca.api.soyoustart.com/1.0",
}

# Requests beyond this wait for a free connection with no pool timeout.
MAX_CONNECTIONS = 20


def resolve_endpoint(endpoint: str) -> str:
    """Map an endpoint alias to its base URL; full URLs pass through.

    Raises:
        ValueError: If *endpoint* is neither a known alias nor a URL.
    """
    if endpoint in ENDPOINTS:
        return ENDPOINTS[endpoint]
    if endpoint.startswith(("http://", "https://")):
        return endpoint.rstrip("/")
    raise ValueError(
        f"Unknown OVH endpoint '{endpoint}'. Use one of: {', '.join(ENDPOINTS)}"
    )


def compute_signature(
    application_secret: str,
    consumer_key: str,
    method: str,
    url: str,
    body: str,
    timestamp: str,
) -> str:
    """Compute the X-Ovh-Signature header value for one request."""
    payload = "+".join([application_secret, consumer_key, method.upper(), url, body, timestamp])
    return "$1$" + hashlib.sha1(payload.encode("utf-8")).hexdigest()


class OvhClient:
    """Async OVH API client scoped to one user's consumer key.

    Attributes:
        config: OVH application configuration.
        base_url: Resolved API base URL.
        total_requests: Count of successful API calls this session.
    """

    def __init__(
        self,
        config: OvhConfig,
        consumer_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: OvhConfig from settings.yaml.
            consumer_key: Consumer key granted by the end user.
            transport: Optional httpx transport (used by tests).
        """
        self.config = config
        self.base_url = resolve_endpoint(config.endpoint)
        self.total_requests = 0
        self._consumer_key = consumer_key
        self._transport = transport
        self._time_delta: Optional[int] = None
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazily create the httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=httpx.Timeout(self.config.timeout_seconds, pool=None),
                limits=httpx.Limits(max_connections=MAX_CONNECTIONS),
                transport=self._transport,
            )
        return self._client

    async def _get_time_delta(self) -> int:
        """Offset between the API server clock and the local clock, in seconds."""
        if self._time_delta is None:
            server_time = await self.request("GET", "/auth/time", need_auth=False)
            self._time_delta = int(server_time) - int(time.time())
            logger.debug("OVH time delta: %ds", self._time_delta)
        return self._time_delta

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Shortcut for an authenticated GET request."""
        return await self.request("GET", path, params=params)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[Any] = None,
        need_auth: bool = True,
    ) -> Any:
        """Execute one API call and return the decoded JSON.

        Args:
            method: HTTP method.
            path: API path, e.g. "/xdsl".
            params: Optional query string parameters.
            body: Optional JSON body.
            need_auth: Whether to sign the request.

        Returns:
            Decoded JSON payload, or None for empty answers.

        Raises:
            OvhApiError: On any non-2xx answer or transport failure.
        """
        client = await self._get_client()
        method = method.upper()
        url = httpx.URL(self.base_url + path, params=params or None)
        payload = json.dumps(body, separators=(",", ":")) if body is not None else ""

        headers = {"X-Ovh-Application": self.config.application_key}
        if payload:
            headers["Content-Type"] = "application/json"
        if need_auth:
            timestamp = str(int(time.time()) + await self._get_time_delta())
            headers["X-Ovh-Consumer"] = self._consumer_key
            headers["X-Ovh-Timestamp"] = timestamp
            headers["X-Ovh-Signature"] = compute_signature(
                self.config.application_secret, self._consumer_key,
                method, str(url), payload, timestamp,
            )

        try:
            resp = await client.request(method, url, headers=headers, content=payload or None)
        except httpx.HTTPError as e:
            logger.warning("Transport error on %s %s: %s", method, path, e)
            raise OvhApiError(0, str(e) or type(e).__name__, path) from e

        if resp.status_code >= 400:
            raise OvhApiError(resp.status_code, _error_message(resp), path)

        self.total_requests += 1
        if not resp.content:
            return None
        return resp.json()

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("OVH client closed (total requests: %d)", self.total_requests)

    async def __aenter__(self) -> "OvhClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


def _error_message(resp: httpx.Response) -> str:
    """Extract the API error message from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.reason_phrase


class OvhClientFactory:
    """Builds OvhClient instances scoped to a stored user.

    Attributes:
        config: OVH application configuration shared by all clients.
    """

    def __init__(
        self,
        config: OvhConfig,
        db: Database,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._db = db
        self._transport = transport

    async def for_user(self, sender_id: str) -> OvhClient:
        """Return a client authenticated with the user's consumer key.

        Raises:
            OvhApiError: 403 if the user is unknown or never linked an account.
        """
        user = await queries.find_user(self._db, sender_id)
        if user is None or not user.consumer_key:
            raise OvhApiError(403, "No OVH account linked to this user", "/me")
        return OvhClient(self.config, user.consumer_key, transport=self._transport)

# storefront/gateway/remote_gateway.py

"""Injectable HTTP transport for the remote marketplace service."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from curl_cffi import requests as curl_requests

from storefront.config.settings import Settings
from storefront.gateway.errors import (
    MalformedResponse,
    NetworkFailure,
    ServerError,
)


def _default_token() -> str | None:
    return Settings.AUTH_TOKEN


class RemoteGateway(ABC):
    """Issues requests and returns parsed JSON or raises a typed failure.

    Implementations raise :class:`NetworkFailure` when no response was
    received, :class:`ServerError` on a non-2xx status and
    :class:`MalformedResponse` when the body is not JSON.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Perform one request and return the decoded JSON body."""
        ...

    async def get(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
    ) -> Any:
        return await self.request("POST", path, payload=payload)

    async def close(self) -> None:
        """Release transport resources."""


class CurlRemoteGateway(RemoteGateway):
    """RemoteGateway backed by a curl_cffi ``AsyncSession``.

    GETs are retried on transport errors; POSTs go out exactly once so
    a mutation is never applied twice by the transport.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: Callable[[], str | None] = _default_token,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self.settings = Settings()
        self.logger = logging.getLogger("storefront.gateway")
        self.base_url = (base_url or self.settings.API_BASE_URL).rstrip("/")
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self.session = curl_requests.AsyncSession(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers = dict(self.settings.DEFAULT_HEADERS)
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None,
        payload: dict[str, Any] | None,
    ) -> curl_requests.Response:
        """Send once per attempt, retrying transport errors on GET."""
        attempts = (
            self.settings.MAX_RETRIES if method == "GET" else 1
        )
        last_exc: Exception | None = None
        for attempt in range(attempts):
            try:
                resp: curl_requests.Response = await self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=self._headers(),
                    timeout=self._request_timeout,
                )
                return resp
            except Exception as exc:
                last_exc = exc
                self.logger.warning(
                    "%s %s failed on attempt %d: %s",
                    method,
                    url,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                if attempt + 1 < attempts:
                    await asyncio.sleep(
                        self.settings.RETRY_DELAY * (attempt + 1)
                    )
        msg = f"No response from {url}: {last_exc}"
        raise NetworkFailure(msg) from last_exc

    def _decode(self, resp: curl_requests.Response, url: str) -> Any:
        text = resp.text
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Response from {url} is not valid JSON"
            raise MalformedResponse(msg) from exc

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = self._url(path)
        resp = await self._send(method, url, params, payload)

        if resp.status_code == 401:
            self.logger.warning("Unauthorized response from %s", url)
            if self._on_unauthorized is not None:
                self._on_unauthorized()
            raise ServerError(f"Not authorized for {path}", 401)

        if not 200 <= resp.status_code < 300:
            self.logger.warning(
                "HTTP %d from %s %s", resp.status_code, method, url
            )
            raise ServerError(
                f"HTTP {resp.status_code} from {path}",
                resp.status_code,
            )

        self.logger.debug("%s %s -> %d", method, url, resp.status_code)
        return self._decode(resp, url)

    async def close(self) -> None:
        await self.session.close()

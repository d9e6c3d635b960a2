"""aiohttp-backed client that turns API calls into ResponseFacts."""

import functools
import logging
import time
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from api_test_engine.config import ClientConfig
from api_test_engine.models.response import ResponseFacts
from api_test_engine.strategies import RequestIssuer

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ApiClient:
    """Issues requests against the API under test."""

    config: ClientConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ClientConfig
    ) -> AsyncGenerator["ApiClient", None]:
        """Create client with managed session lifecycle."""
        headers = {"Accept": "application/json", **config.headers}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        if config.api_key is not None:
            headers["x-api-key"] = config.api_key.get_secret_value()

        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> ResponseFacts:
        """Send a request and capture status, headers, body and elapsed time.

        Raises:
            aiohttp.ClientError: On transport failures
            TimeoutError: When the configured timeout is exceeded

        """
        start = time.perf_counter()
        async with self.session.request(
            method, path, params=params, json=json, headers=headers
        ) as response:
            body = await response.read()
        elapsed_ms = round((time.perf_counter() - start) * 1000)

        log.info(
            "%s %s -> %d (%dms)", method.upper(), path, response.status, elapsed_ms
        )
        return ResponseFacts(
            status_code=response.status,
            header_items=tuple(response.headers.items()),
            body=body,
            elapsed_ms=elapsed_ms,
        )

    def issuer(self, method: str, path: str, **kwargs: Any) -> RequestIssuer:
        """Bind a request so strategies and load runs can issue it repeatedly."""
        return functools.partial(self.request, method, path, **kwargs)

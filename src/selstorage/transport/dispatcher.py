"""Authenticated request dispatch.

Every storage request goes through ``RequestDispatcher.dispatch``: it makes
sure a usable token is cached (logging in when it is missing or expired),
attaches it, and hands the exchange to httpx. Re-authentication only happens
ahead of a request based on the cached expiry; a request rejected with 401
is returned as-is and is not retried.
"""

from collections.abc import AsyncIterable, Mapping
from typing import Any, Optional

import httpx

from selstorage.auth.authenticator import Authenticator, Clock, utc_now
from selstorage.auth.protocols import IssuedToken
from selstorage.auth.token_cache import TokenCache
from selstorage.core import get_logger, get_tracer
from selstorage.core.exceptions import StorageRequestError

logger = get_logger(__name__)
tracer = get_tracer(__name__)

AUTH_TOKEN_HEADER = "X-Auth-Token"


class RequestDispatcher:
    """Issues storage requests with a valid token attached."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        authenticator: Authenticator,
        cache: TokenCache,
        clock: Clock = utc_now,
    ):
        self._http = http_client
        self._authenticator = authenticator
        self._cache = cache
        self._clock = clock

    async def ensure_token(self) -> str:
        """Return a usable token, logging in first if needed.

        Concurrent callers that find the token invalid wait on the cache lock
        and re-check it, so only the first one performs the login.
        """
        token = self._cache.token
        if token is not None and self._cache.is_valid(self._clock()):
            return token

        async with self._cache.lock:
            if not self._cache.is_valid(self._clock()):
                self._cache.invalidate()
                logger.debug("Token missing or expired, authenticating")
                self._cache.store(await self._authenticator.authenticate())
            return self._cache.token  # type: ignore[return-value]

    async def refresh(self) -> IssuedToken:
        """Force a new login regardless of the cached expiry."""
        async with self._cache.lock:
            self._cache.invalidate()
            issued = await self._authenticator.authenticate()
            self._cache.store(issued)
        return issued

    async def dispatch(
        self,
        url: str,
        method: str = "GET",
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        content: Optional[bytes | str] = None,
        json: Any = None,
        stream: Optional[AsyncIterable[bytes]] = None,
    ) -> httpx.Response:
        """Send one authenticated request.

        Args:
            url: Absolute request URL
            method: HTTP method
            headers: Caller headers, the auth token is merged over them
            params: Query parameters
            content: Buffered request body
            json: JSON request body
            stream: Async byte stream piped as the request body

        Returns:
            The httpx response, unmodified

        Raises:
            AuthError: If a required login fails
            ParseError: If a login response is malformed
            StorageRequestError: If the request fails in transport
            UploadStreamError: If ``stream`` fails before the response arrives
        """
        token = await self.ensure_token()
        request_headers = dict(headers or {})
        request_headers[AUTH_TOKEN_HEADER] = token

        with tracer.start_as_current_span("selstorage.dispatch") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("selstorage.streaming", stream is not None)
            try:
                response = await self._http.request(
                    method,
                    url,
                    headers=request_headers,
                    params=params,
                    content=stream if stream is not None else content,
                    json=json,
                )
            except httpx.HTTPError as e:
                raise StorageRequestError(f"{method} {url} failed: {e}") from e
            span.set_attribute("http.status_code", response.status_code)

        logger.debug(
            "Storage request completed",
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return response

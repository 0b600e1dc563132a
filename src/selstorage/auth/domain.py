"""Resolution of the storage shard an account is pinned to."""

from typing import Optional

import httpx

from selstorage.auth.token_cache import TokenCache
from selstorage.core import get_logger, get_tracer
from selstorage.core.exceptions import AuthError, DomainResolutionError
from selstorage.schemas import Credentials, StorageAddress

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def parse_numeric_domain(storage_url: Optional[str]) -> int:
    """Extract the numeric domain from an ``X-Storage-Url`` value.

    Args:
        storage_url: URL of the form ``https://41812.selcdn.ru/v1/...``

    Returns:
        The leading dotted segment of the host as an integer, ``41812`` above

    Raises:
        DomainResolutionError: If the value is absent or the segment is not
            an integer
    """
    if not storage_url:
        raise DomainResolutionError("Storage url header is missing from the response")

    host = storage_url.split("//", 1)[-1]
    segment = host.split(".", 1)[0]
    if not (segment.isascii() and segment.isdigit()):
        raise DomainResolutionError(
            f"Unable to extract numeric domain from storage url: {storage_url}"
        )
    return int(segment)


class NumericDomainResolver:
    """Resolves the numeric domain once and caches it in the token cache."""

    def __init__(
        self,
        credentials: Credentials,
        address: StorageAddress,
        http_client: httpx.AsyncClient,
        cache: TokenCache,
    ):
        self.credentials = credentials
        self.address = address
        self._http = http_client
        self._cache = cache

    async def resolve(self) -> int:
        """Return the cached numeric domain, probing the auth host if unknown.

        Raises:
            AuthError: If the probe request fails or is rejected
            DomainResolutionError: If the probe response has no usable
                storage url
        """
        if self._cache.numeric_domain is not None:
            return self._cache.numeric_domain

        async with self._cache.lock:
            if self._cache.numeric_domain is not None:
                return self._cache.numeric_domain

            numeric_domain = await self._probe()
            self._cache.remember_numeric_domain(numeric_domain)

        logger.info("Numeric domain resolved", numeric_domain=numeric_domain)
        return numeric_domain

    async def _probe(self) -> int:
        with tracer.start_as_current_span("selstorage.resolve_numeric_domain"):
            try:
                response = await self._http.get(
                    f"{self.address.auth_url}/",
                    headers=self.credentials.auth_headers(),
                )
            except httpx.HTTPError as e:
                raise AuthError(f"Numeric domain probe failed: {e}") from e

            if not response.is_success:
                raise AuthError(
                    f"Numeric domain probe rejected with status {response.status_code}",
                    status_code=response.status_code,
                )

            return parse_numeric_domain(response.headers.get("x-storage-url"))

"""Login exchange against the storage auth endpoint."""

from datetime import datetime, timezone
from typing import Callable

import httpx

from selstorage.auth.protocols import IssuedToken, get_protocol_handler
from selstorage.core import get_logger, get_tracer
from selstorage.core.exceptions import AuthError
from selstorage.schemas import Credentials, StorageAddress

logger = get_logger(__name__)
tracer = get_tracer(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Authenticator:
    """Performs the protocol specific login and normalizes its result."""

    def __init__(
        self,
        credentials: Credentials,
        address: StorageAddress,
        http_client: httpx.AsyncClient,
        clock: Clock = utc_now,
    ):
        """Initialize the authenticator.

        Args:
            credentials: Validated credentials, their protocol selects the
                login handler once for the lifetime of the authenticator
            address: URL builder for the account
            http_client: Shared async HTTP client
            clock: Source of "now", used to turn a relative lifetime into an
                absolute expiry
        """
        self.credentials = credentials
        self.address = address
        self._http = http_client
        self._clock = clock
        self._handler = get_protocol_handler(credentials.protocol)

    @property
    def protocol(self) -> int:
        return int(self._handler.version)

    async def authenticate(self) -> IssuedToken:
        """Run one login exchange.

        Returns:
            The issued token with its absolute expiry

        Raises:
            AuthError: If the request fails or the status is not 2xx
            ParseError: If the response lacks the expected token fields
        """
        request = self._handler.build_request(self.credentials)
        url = f"{self.address.api_url}/{request.path}"

        with tracer.start_as_current_span("selstorage.authenticate") as span:
            span.set_attribute("selstorage.auth.protocol", self.protocol)
            try:
                response = await self._http.request(
                    request.method, url, headers=request.headers, json=request.json
                )
            except httpx.HTTPError as e:
                raise AuthError(f"Authentication request failed: {e}") from e

            if not response.is_success:
                raise AuthError(
                    f"Authentication rejected with status {response.status_code}",
                    status_code=response.status_code,
                )

            received_at = self._clock()
            result = self._handler.parse_response(response)
            issued = result.to_issued_token(received_at)

        logger.info(
            "Authenticated",
            protocol=self.protocol,
            expire_at=issued.expire_at.isoformat() if issued.expire_at else None,
        )
        return issued

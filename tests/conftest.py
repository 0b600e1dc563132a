"""Test configuration and fixtures for selstorage."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx
import pytest

from selstorage import SelectelStorageClient
from selstorage.core.config import StorageSettings

START = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSelectel:
    """In-memory stand-in for the storage API, served through httpx.MockTransport.

    Auth endpoints and the numeric domain probe answer like the real service.
    Any other request is answered from ``routes`` keyed by ``(method, path)``,
    falling back to an empty 200 response.
    """

    def __init__(self, clock: FakeClock, token_lifetime: int = 3600):
        self.clock = clock
        self.token_lifetime = token_lifetime
        self.storage_url = "https://41812.selcdn.ru/v1/SEL_123"
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.issued = 0

    def route(self, method: str, path: str, response: httpx.Response) -> None:
        self.routes[(method, path)] = lambda request: response

    def auth_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.selcdn.ru" and self._is_auth_path(r.url.path)]

    def storage_requests(self) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if not self._is_auth_path(r.url.path) and r.url.host != "auth.selcdn.ru"
        ]

    def probe_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "auth.selcdn.ru"]

    @staticmethod
    def _is_auth_path(path: str) -> bool:
        return path in ("/auth/v1.0", "/v2.0/tokens", "/v3/auth/tokens")

    def _next_token(self) -> str:
        self.issued += 1
        return f"token-{self.issued}"

    def _expires_at(self) -> str:
        return (self.clock() + timedelta(seconds=self.token_lifetime)).isoformat()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # Yield so concurrent callers interleave as they would on a network
        await asyncio.sleep(0)

        path = request.url.path
        if request.url.host == "auth.selcdn.ru":
            return httpx.Response(204, headers={"X-Storage-Url": self.storage_url})
        if path == "/auth/v1.0":
            return httpx.Response(
                204,
                headers={
                    "X-Auth-Token": self._next_token(),
                    "X-Expire-Auth-Token": str(self.token_lifetime),
                },
            )
        if path == "/v2.0/tokens":
            return httpx.Response(
                200,
                json={"access": {"token": {"id": self._next_token(), "expires": self._expires_at()}}},
            )
        if path == "/v3/auth/tokens":
            return httpx.Response(
                201,
                headers={"X-Subject-Token": self._next_token()},
                json={"token": {"expires_at": self._expires_at()}},
            )

        handler = self.routes.get((request.method, path))
        if handler is not None:
            return handler(request)
        return httpx.Response(200, text="")


@pytest.fixture
def clock():
    """A fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def fake_storage(clock):
    """Fake storage API sharing the fake clock."""
    return FakeSelectel(clock)


@pytest.fixture
def make_client(fake_storage, clock):
    """Factory for clients wired to the fake storage API."""

    def _make(
        user_id: str = "123_bob",
        password: str = "secret",
        protocol: Optional[int] = 3,
        handler: Optional[Callable] = None,
        **kwargs,
    ) -> SelectelStorageClient:
        transport = httpx.MockTransport(handler or fake_storage)
        return SelectelStorageClient(
            user_id,
            password,
            protocol=protocol,
            ssl=True,
            settings=StorageSettings(),
            client_factory=lambda cfg: httpx.AsyncClient(
                timeout=cfg.timeout_seconds, transport=transport
            ),
            clock=clock,
            **kwargs,
        )

    return _make

"""Process-local session state for one storage client."""

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from selstorage.auth.protocols import IssuedToken


@dataclass(frozen=True)
class TokenState:
    """Current token, its absolute expiry and the resolved numeric domain."""

    token: Optional[str] = None
    expire_at: Optional[datetime] = None
    numeric_domain: Optional[int] = None


class TokenCache:
    """Holds the session state and answers whether the token is usable.

    The state is never mutated in place: every update swaps in a new
    ``TokenState``. ``lock`` serializes the check-then-refresh sequences
    run by the dispatcher and the domain resolver.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        numeric_domain: Optional[int] = None,
    ):
        self._state = TokenState(token=token, numeric_domain=numeric_domain)
        self.lock = asyncio.Lock()

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._state.token

    @property
    def numeric_domain(self) -> Optional[int]:
        return self._state.numeric_domain

    def is_valid(self, now: datetime) -> bool:
        """True iff a token is present and has not expired at ``now``."""
        if self._state.token is None:
            return False
        return self._state.expire_at is None or self._state.expire_at > now

    def invalidate(self) -> None:
        self._state = replace(self._state, token=None, expire_at=None)

    def store(self, issued: IssuedToken) -> None:
        self._state = replace(
            self._state, token=issued.token, expire_at=issued.expire_at
        )

    def remember_numeric_domain(self, numeric_domain: int) -> None:
        self._state = replace(self._state, numeric_domain=numeric_domain)

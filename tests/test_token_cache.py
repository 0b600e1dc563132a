"""Tests for the session token cache."""

from datetime import datetime, timedelta, timezone

from selstorage.auth import IssuedToken, TokenCache, TokenState

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestTokenValidity:
    """Test the token validity gate."""

    def test_no_token(self):
        """Test an empty cache is never valid."""
        assert TokenCache().is_valid(NOW) is False

    def test_token_without_expiry(self):
        """Test a pre-seeded token without expiry is valid."""
        assert TokenCache(token="seeded").is_valid(NOW) is True

    def test_token_before_expiry(self):
        """Test a token is valid until its expiry."""
        cache = TokenCache()
        cache.store(IssuedToken("abc", NOW + timedelta(seconds=1)))
        assert cache.is_valid(NOW) is True

    def test_token_at_expiry(self):
        """Test a token is invalid exactly at its expiry."""
        cache = TokenCache()
        cache.store(IssuedToken("abc", NOW))
        assert cache.is_valid(NOW) is False

    def test_token_after_expiry(self):
        """Test a token is invalid after its expiry."""
        cache = TokenCache()
        cache.store(IssuedToken("abc", NOW - timedelta(minutes=5)))
        assert cache.is_valid(NOW) is False


class TestTokenState:
    """Test state updates."""

    def test_invalidate_keeps_numeric_domain(self):
        """Test invalidation clears the token only."""
        cache = TokenCache(token="abc", numeric_domain=41812)
        cache.invalidate()

        assert cache.state == TokenState(token=None, expire_at=None, numeric_domain=41812)

    def test_store_replaces_state(self):
        """Test storing swaps in a new state object."""
        cache = TokenCache(token="old")
        before = cache.state
        cache.store(IssuedToken("new", NOW))

        assert before.token == "old"
        assert cache.state is not before
        assert cache.state.token == "new"
        assert cache.state.expire_at == NOW

    def test_remember_numeric_domain(self):
        """Test the numeric domain is kept alongside the token."""
        cache = TokenCache(token="abc")
        cache.remember_numeric_domain(7)

        assert cache.numeric_domain == 7
        assert cache.token == "abc"

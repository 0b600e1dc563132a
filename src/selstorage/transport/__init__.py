"""Authenticated HTTP dispatch."""

from .dispatcher import AUTH_TOKEN_HEADER, RequestDispatcher

__all__ = ["AUTH_TOKEN_HEADER", "RequestDispatcher"]

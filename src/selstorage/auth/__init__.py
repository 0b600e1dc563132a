"""Authentication and session state."""

from .authenticator import Authenticator
from .domain import NumericDomainResolver, parse_numeric_domain
from .protocols import (
    IssuedToken,
    V1AuthResult,
    V2AuthResult,
    V3AuthResult,
    get_protocol_handler,
)
from .token_cache import TokenCache, TokenState

__all__ = [
    "Authenticator",
    "IssuedToken",
    "NumericDomainResolver",
    "TokenCache",
    "TokenState",
    "V1AuthResult",
    "V2AuthResult",
    "V3AuthResult",
    "get_protocol_handler",
    "parse_numeric_domain",
]

"""Login exchanges for the three authentication protocol versions.

Each protocol version has its own request shape and its own way of reporting
the issued token:

    1. ``GET auth/v1.0`` with credential headers. The token and its remaining
       lifetime in seconds come back as response headers.
    2. ``POST v2.0/tokens`` with a password-credentials JSON document. The
       token id and an absolute ISO 8601 expiry come back in the JSON body.
    3. ``POST v3/auth/tokens`` with an identity JSON document. The token comes
       back in the ``X-Subject-Token`` header and the expiry in the JSON body,
       so both are read from the same response.

A handler per version builds the request and turns the response into a
protocol specific ``AuthResult``, which normalizes to an ``IssuedToken``.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from selstorage.core.exceptions import ParseError
from selstorage.schemas import AuthProtocol, Credentials


@dataclass(frozen=True)
class IssuedToken:
    """A token together with the absolute instant it stops being usable."""

    token: str
    expire_at: Optional[datetime]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class V1AuthResult:
    token: str
    expire_seconds: int

    def to_issued_token(self, received_at: datetime) -> IssuedToken:
        return IssuedToken(
            token=self.token,
            expire_at=received_at + timedelta(seconds=self.expire_seconds),
        )


@dataclass(frozen=True)
class V2AuthResult:
    token_id: str
    expires_at: datetime

    def to_issued_token(self, received_at: datetime) -> IssuedToken:
        return IssuedToken(token=self.token_id, expire_at=_as_utc(self.expires_at))


@dataclass(frozen=True)
class V3AuthResult:
    subject_token: str
    expires_at: datetime

    def to_issued_token(self, received_at: datetime) -> IssuedToken:
        return IssuedToken(token=self.subject_token, expire_at=_as_utc(self.expires_at))


AuthResult = Union[V1AuthResult, V2AuthResult, V3AuthResult]


# Response documents
class _V2Token(BaseModel):
    id: str
    expires: datetime


class _V2Access(BaseModel):
    token: _V2Token


class V2TokenResponse(BaseModel):
    access: _V2Access


class _V3Token(BaseModel):
    expires_at: datetime


class V3TokenResponse(BaseModel):
    token: _V3Token


@dataclass(frozen=True)
class AuthRequest:
    """Everything needed to issue a login request."""

    method: str
    path: str
    headers: dict[str, str]
    json: Optional[dict[str, Any]] = None


def _read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Auth response body is not valid JSON: {e}") from e


def _required_header(response: httpx.Response, name: str) -> str:
    value = response.headers.get(name)
    if not value:
        raise ParseError(f"Auth response is missing the '{name}' header")
    return value


class V1Protocol:
    """Header based login."""

    version = AuthProtocol.V1
    path = "auth/v1.0"

    def build_request(self, credentials: Credentials) -> AuthRequest:
        return AuthRequest(method="GET", path=self.path, headers=credentials.auth_headers())

    def parse_response(self, response: httpx.Response) -> V1AuthResult:
        token = _required_header(response, "x-auth-token")
        lifetime = _required_header(response, "x-expire-auth-token")
        try:
            expire_seconds = int(lifetime)
        except ValueError as e:
            raise ParseError(f"Invalid token lifetime: {lifetime!r}") from e
        return V1AuthResult(token=token, expire_seconds=expire_seconds)


class V2Protocol:
    """Password credentials login with a JSON answer."""

    version = AuthProtocol.V2
    path = "v2.0/tokens"

    def build_request(self, credentials: Credentials) -> AuthRequest:
        return AuthRequest(
            method="POST",
            path=self.path,
            headers={"Content-Type": "application/json"},
            json={
                "auth": {
                    "passwordCredentials": {
                        "username": credentials.user_id,
                        "password": credentials.password,
                    }
                }
            },
        )

    def parse_response(self, response: httpx.Response) -> V2AuthResult:
        try:
            document = V2TokenResponse.model_validate(_read_json(response))
        except PydanticValidationError as e:
            raise ParseError(f"Unexpected v2 token document: {e}") from e
        return V2AuthResult(
            token_id=document.access.token.id,
            expires_at=document.access.token.expires,
        )


class V3Protocol:
    """Identity login; the token is a header, the expiry is in the body."""

    version = AuthProtocol.V3
    path = "v3/auth/tokens"

    def build_request(self, credentials: Credentials) -> AuthRequest:
        return AuthRequest(
            method="POST",
            path=self.path,
            headers={"Content-Type": "application/json"},
            json={
                "auth": {
                    "identity": {
                        "methods": ["password"],
                        "password": {
                            "user": {
                                "id": credentials.user_id,
                                "password": credentials.password,
                            }
                        },
                    }
                }
            },
        )

    def parse_response(self, response: httpx.Response) -> V3AuthResult:
        subject_token = _required_header(response, "x-subject-token")
        try:
            document = V3TokenResponse.model_validate(_read_json(response))
        except PydanticValidationError as e:
            raise ParseError(f"Unexpected v3 token document: {e}") from e
        return V3AuthResult(
            subject_token=subject_token,
            expires_at=document.token.expires_at,
        )


AuthProtocolHandler = Union[V1Protocol, V2Protocol, V3Protocol]

PROTOCOL_HANDLERS: dict[AuthProtocol, AuthProtocolHandler] = {
    AuthProtocol.V1: V1Protocol(),
    AuthProtocol.V2: V2Protocol(),
    AuthProtocol.V3: V3Protocol(),
}


def get_protocol_handler(protocol: AuthProtocol) -> AuthProtocolHandler:
    """Return the login handler for a protocol version."""
    return PROTOCOL_HANDLERS[protocol]

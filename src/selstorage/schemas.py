"""Credential, address and result schemas for selstorage."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from selstorage.core.config import StorageSettings, settings
from selstorage.core.exceptions import ConfigError

ContainerType = Literal["public", "private", "gallery"]
ArchiveFormat = Literal["tar", "tar.gz", "gzip"]
ListingFormat = Literal["json", "xml"]


class AuthProtocol(IntEnum):
    """Supported versions of the authentication protocol."""

    V1 = 1
    V2 = 2
    V3 = 3


def extract_account_id(user_id: str) -> str:
    """Return the part of ``user_id`` before the first ``_``, or all of it."""
    return user_id.split("_", 1)[0]


class Credentials(BaseModel):
    """Immutable identity used to authenticate against the storage.

    ``account_id`` is derived from ``user_id``: additional users are named
    ``<account>_<name>`` while the root user is named after the account.

    Example:
        credentials = Credentials.from_params("123_bob", "secret")
        credentials.account_id  # "123"
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str = Field(..., min_length=1, description="Storage user name")
    password: str = Field(..., min_length=1, repr=False, description="User secret")
    protocol: AuthProtocol = Field(
        AuthProtocol.V3, description="Authentication protocol version"
    )
    use_tls: bool = Field(True, description="Use https for every request")

    @property
    def account_id(self) -> str:
        return extract_account_id(self.user_id)

    @classmethod
    def from_params(
        cls,
        user_id: str,
        password: str,
        protocol: Optional[int] = None,
        use_tls: Optional[bool] = None,
    ) -> "Credentials":
        """Validate raw client parameters and build credentials.

        Args:
            user_id: Storage user name
            password: User secret
            protocol: Authentication protocol version, defaults to the
                configured default (3)
            use_tls: Use https, defaults to the configured value

        Returns:
            Validated credentials

        Raises:
            ConfigError: If the user or password is empty or the protocol
                is unknown
        """
        if not user_id:
            raise ConfigError("User is required")
        if not password:
            raise ConfigError("Password is required")

        version = settings.default_protocol if protocol is None else protocol
        try:
            auth_protocol = AuthProtocol(version)
        except ValueError as e:
            raise ConfigError(f"Unsupported auth protocol: {version}") from e

        try:
            return cls(
                user_id=user_id,
                password=password,
                protocol=auth_protocol,
                use_tls=settings.use_tls if use_tls is None else use_tls,
            )
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid credentials: {e}") from e

    def auth_headers(self) -> dict[str, str]:
        """Raw credential headers used by protocol 1 and the domain probe."""
        return {"X-Auth-User": self.user_id, "X-Auth-Key": self.password}


@dataclass(frozen=True)
class StorageAddress:
    """Builds the URLs an account is served from."""

    scheme: str
    host_suffix: str
    account_id: str
    api_host: str = "api"
    auth_host: str = "auth"

    @classmethod
    def for_credentials(
        cls, credentials: Credentials, config: StorageSettings = settings
    ) -> "StorageAddress":
        return cls(
            scheme="https" if credentials.use_tls else "http",
            host_suffix=config.host_suffix,
            account_id=credentials.account_id,
            api_host=config.api_host,
            auth_host=config.auth_host,
        )

    def host_url(self, key: object) -> str:
        return f"{self.scheme}://{key}.{self.host_suffix}"

    @property
    def api_url(self) -> str:
        return self.host_url(self.api_host)

    @property
    def auth_url(self) -> str:
        return self.host_url(self.auth_host)

    @property
    def account_url(self) -> str:
        return f"{self.api_url}/v1/SEL_{self.account_id}"

    def shard_url(self, numeric_domain: int) -> str:
        return self.host_url(numeric_domain)

    def shard_account_url(self, numeric_domain: int) -> str:
        return f"{self.shard_url(numeric_domain)}/v1/SEL_{self.account_id}"


class FileObject(BaseModel):
    """A file entry from a JSON container listing."""

    model_config = ConfigDict(extra="allow")

    bytes: int
    content_type: str
    hash: str
    last_modified: str
    name: str


class ContainerObject(BaseModel):
    """A container entry from a JSON account listing."""

    model_config = ConfigDict(extra="allow")

    name: str
    count: int = 0
    bytes: int = 0


class ContainerInfo(BaseModel):
    """Container counters reported in response headers."""

    files_amount: Optional[int] = None
    container_size: Optional[int] = None
    container_type: Optional[str] = None


class FileListing(ContainerInfo):
    """Files of a container together with its counters."""

    files: list[FileObject] | list[str] = Field(default_factory=list)


class AccountInfo(BaseModel):
    """Account counters reported in response headers."""

    container_count: Optional[int] = None
    object_count: Optional[int] = None
    bytes_used: Optional[int] = None

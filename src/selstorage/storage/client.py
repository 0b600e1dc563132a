"""Selectel storage client.

This module provides ``SelectelStorageClient``, the public entry point for
container and file operations. The client owns one ``httpx.AsyncClient`` and
one session (token cache, authenticator, numeric domain resolver, request
dispatcher); every operation goes through the dispatcher so that a token is
obtained or renewed before it is needed.

URLs:
    Object and container operations use the account URL on the API host,
    ``https://api.selcdn.ru/v1/SEL_<account>``. Account wide listings and the
    summary information use the numeric domain (shard) of the account,
    ``https://<numeric-domain>.selcdn.ru``, which is resolved once through
    the auth host unless it was given to the client.

Example:
    async with SelectelStorageClient("123_bob", "secret") as client:
        await client.create_container("pics", type="private")
        await client.upload_file("pics", "/tmp/a.jpg", file_name="a.jpg")
        listing = await client.get_files("pics", format="json")
"""

from typing import Any, Callable, Optional, get_args

import httpx

from selstorage.auth.authenticator import Authenticator, Clock, utc_now
from selstorage.auth.domain import NumericDomainResolver
from selstorage.auth.protocols import IssuedToken
from selstorage.auth.token_cache import TokenCache, TokenState
from selstorage.core import get_logger
from selstorage.core.config import StorageSettings, settings as default_settings
from selstorage.core.exceptions import (
    ParseError,
    StorageRequestError,
    UnsupportedFormatError,
    ValidationError,
)
from selstorage.schemas import (
    AccountInfo,
    ArchiveFormat,
    ContainerInfo,
    ContainerObject,
    ContainerType,
    Credentials,
    FileListing,
    ListingFormat,
    StorageAddress,
)
from selstorage.storage.listing import (
    build_bulk_delete_body,
    build_listing_params,
    container_info_from_headers,
    header_int,
    parse_files,
)
from selstorage.storage.streams import UploadSource, to_byte_stream
from selstorage.transport.dispatcher import RequestDispatcher

logger = get_logger(__name__)

ARCHIVE_FORMATS = get_args(ArchiveFormat)

ClientFactory = Callable[[StorageSettings], httpx.AsyncClient]


def _default_client_factory(config: StorageSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.timeout_seconds)


def _require_container(container: Optional[str]) -> str:
    if not isinstance(container, str) or not container:
        raise ValidationError("Container name missed")
    return container


def _check_response(response: httpx.Response, action: str) -> httpx.Response:
    if not response.is_success:
        raise StorageRequestError(
            f"Failed to {action}: status {response.status_code}",
            status_code=response.status_code,
        )
    return response


class SelectelStorageClient:
    """Async client for Selectel object storage."""

    def __init__(
        self,
        user_id: str,
        password: str,
        protocol: Optional[int] = None,
        token: Optional[str] = None,
        ssl: Optional[bool] = None,
        numeric_domain: Optional[int] = None,
        *,
        settings: Optional[StorageSettings] = None,
        client_factory: Optional[ClientFactory] = None,
        clock: Clock = utc_now,
    ):
        """Initialize the client.

        Args:
            user_id: Storage user name, ``<account>_<name>`` for additional users
            password: User secret
            protocol: Authentication protocol version 1, 2 or 3 (default 3)
            token: Previously issued token to start the session with; it is
                used until a request needs a new one
            ssl: Use https (default from settings)
            numeric_domain: Known numeric domain, skips its resolution
            settings: Settings overriding the module level ones
            client_factory: Builds the ``httpx.AsyncClient`` from settings
            clock: Source of the current UTC time

        Raises:
            ConfigError: If the user or password is missing or the protocol
                is unknown
        """
        self.settings = settings or default_settings
        self.credentials = Credentials.from_params(
            user_id,
            password,
            protocol=self.settings.default_protocol if protocol is None else protocol,
            use_tls=self.settings.use_tls if ssl is None else ssl,
        )
        self.address = StorageAddress.for_credentials(self.credentials, self.settings)

        factory = client_factory or _default_client_factory
        self._http = factory(self.settings)
        self._cache = TokenCache(token=token, numeric_domain=numeric_domain)
        self._authenticator = Authenticator(
            self.credentials, self.address, self._http, clock=clock
        )
        self._resolver = NumericDomainResolver(
            self.credentials, self.address, self._http, self._cache
        )
        self._dispatcher = RequestDispatcher(
            self._http, self._authenticator, self._cache, clock=clock
        )
        logger.info(
            "Storage client initialized",
            account_id=self.credentials.account_id,
            protocol=int(self.credentials.protocol),
        )

    @property
    def user_id(self) -> str:
        return self.credentials.user_id

    @property
    def storage_url(self) -> str:
        return self.address.account_url

    @property
    def token_state(self) -> TokenState:
        """Current session state, e.g. for persisting the token elsewhere."""
        return self._cache.state

    async def authorize(self) -> IssuedToken:
        """Log in now, replacing any cached token.

        Returns:
            The issued token and its expiry, which callers may persist and
            later pass back as ``token``

        Raises:
            AuthError: If the login fails
            ParseError: If the login response is malformed
        """
        return await self._dispatcher.refresh()

    async def get_numeric_domain(self) -> int:
        return await self._resolver.resolve()

    # Account operations

    async def get_account_info(self) -> AccountInfo:
        """Account counters from a HEAD on the account URL."""
        response = _check_response(
            await self._dispatcher.dispatch(self.storage_url, "HEAD"),
            "get account info",
        )
        return AccountInfo(
            container_count=header_int(
                response.headers, "x-account-container-count"
            ),
            object_count=header_int(response.headers, "x-account-object-count"),
            bytes_used=header_int(response.headers, "x-account-bytes-used"),
        )

    async def get_info(self) -> dict[str, str]:
        """Summary storage information from the account's shard host.

        The service currently answers 403 to this request for every client,
        including plain curl, so expect ``StorageRequestError``. It is kept
        because the failure lies with the service.
        """
        numeric_domain = await self._resolver.resolve()
        response = _check_response(
            await self._dispatcher.dispatch(self.address.shard_url(numeric_domain), "HEAD"),
            "get storage info",
        )
        return dict(response.headers)

    # Container operations

    async def get_containers(
        self, return_json: bool = True
    ) -> list[ContainerObject] | list[str]:
        """List containers of the account.

        Args:
            return_json: Fetch the JSON listing from the shard host; otherwise
                read the plain listing from the account URL

        Returns:
            Container objects for JSON listings, container names otherwise
        """
        if not return_json:
            response = _check_response(
                await self._dispatcher.dispatch(self.storage_url),
                "list containers",
            )
            return parse_files(response.text)

        numeric_domain = await self._resolver.resolve()
        response = _check_response(
            await self._dispatcher.dispatch(
                self.address.shard_account_url(numeric_domain),
                headers={"Accept": "application/json"},
                params={"format": "json"},
            ),
            "list containers",
        )
        try:
            return [ContainerObject.model_validate(item) for item in response.json()]
        except ValueError as e:
            raise ParseError(f"Malformed container listing: {e}") from e

    async def create_container(
        self,
        container: str,
        type: ContainerType = "public",
        metadata: Optional[str] = None,
    ) -> httpx.Response:
        _require_container(container)
        return _check_response(
            await self._dispatcher.dispatch(
                f"{self.storage_url}/{container}",
                "PUT",
                headers={
                    "X-Container-Meta-Type": type or "public",
                    "X-Container-Meta-Some": metadata or "",
                },
            ),
            f"create container '{container}'",
        )

    async def get_container_info(self, container: str) -> ContainerInfo:
        _require_container(container)
        response = _check_response(
            await self._dispatcher.dispatch(f"{self.storage_url}/{container}"),
            f"get info of container '{container}'",
        )
        return container_info_from_headers(response.headers)

    async def get_files(
        self,
        container: str,
        limit: Optional[int] = None,
        marker: Optional[str] = None,
        prefix: Optional[str] = None,
        delimiter: Optional[str] = None,
        format: Optional[ListingFormat] = None,
    ) -> FileListing:
        """List files of a container.

        Args:
            container: Container name
            limit: Maximum number of files
            marker: Return files after this name
            prefix: Only files starting with this prefix
            delimiter: Group names by this delimiter
            format: ``"json"`` for file objects, ``None`` for plain names

        Returns:
            Files with the container counters

        Raises:
            ValidationError: If the container name is missing
            UnsupportedFormatError: If ``format`` is ``"xml"``
        """
        _require_container(container)
        if format is not None and format != "json":
            raise UnsupportedFormatError(f"Unsupported listing format: {format}")

        params = build_listing_params(
            format=format, limit=limit, marker=marker, prefix=prefix, delimiter=delimiter
        )
        response = _check_response(
            await self._dispatcher.dispatch(
                f"{self.storage_url}/{container}", params=params
            ),
            f"list files of container '{container}'",
        )
        info = container_info_from_headers(response.headers)
        return FileListing(files=parse_files(response.text, format), **info.model_dump())

    # File operations

    async def upload_file(
        self,
        container: str,
        file: UploadSource,
        file_name: Optional[str] = None,
        delete_at: Optional[int] = None,
        lifetime: Optional[int] = None,
        etag: Optional[str] = None,
        metadata: Optional[str] = None,
        archive: Optional[ArchiveFormat] = None,
    ) -> httpx.Response:
        """Upload one file, streaming its content.

        Args:
            container: Target container
            file: Bytes, a local path, a binary file object or an async
                iterable of bytes
            file_name: Object name; may be omitted for archives, which are
                then extracted into the container root (or used as a folder
                name when given)
            delete_at: Unix time at which the object is deleted
            lifetime: Seconds after which the object is deleted
            etag: Expected MD5 of the content
            metadata: Value for ``X-Object-Meta``
            archive: Extract the upload server side as ``tar``, ``tar.gz``
                or ``gzip``

        Returns:
            The upload response

        Raises:
            ValidationError: If the container, file or archive type is invalid
            UploadStreamError: If reading the source fails mid-upload
        """
        _require_container(container)
        if archive is not None and archive not in ARCHIVE_FORMATS:
            raise ValidationError(f"Unsupported archive type: {archive}")
        if archive is None and not file_name:
            raise ValidationError("File name missed")

        stream = to_byte_stream(file, self.settings.upload_chunk_size)

        headers: dict[str, str] = {}
        if delete_at is not None:
            headers["X-Delete-At"] = str(delete_at)
        if lifetime is not None:
            headers["X-Delete-After"] = str(lifetime)
        if etag is not None:
            headers["Etag"] = etag
        if metadata is not None:
            headers["X-Object-Meta"] = metadata

        url = f"{self.storage_url}/{container}"
        if file_name:
            url = f"{url}/{file_name}"
        params = {"extract-archive": archive} if archive is not None else None

        return _check_response(
            await self._dispatcher.dispatch(
                url, "PUT", headers=headers, params=params, stream=stream
            ),
            f"upload to container '{container}'",
        )

    async def delete_files(self, container: str, files: list[str]) -> dict[str, Any]:
        """Delete many files with one bulk request.

        Only root users may bulk delete; additional users, even with write
        permission, should use ``delete_file``.

        Raises:
            ValidationError: If the container is missing or ``files`` is empty
        """
        _require_container(container)
        if not isinstance(files, list) or not files:
            raise ValidationError("Files missed")

        response = _check_response(
            await self._dispatcher.dispatch(
                self.storage_url,
                "POST",
                headers={"Content-Type": "text/plain", "Accept": "application/json"},
                params={"bulk-delete": "true"},
                content=build_bulk_delete_body(container, files),
            ),
            f"bulk delete from container '{container}'",
        )
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Malformed bulk delete response: {e}") from e

    async def delete_file(self, container: str, file: str) -> httpx.Response:
        """Delete one file; the service answers 204 on success."""
        _require_container(container)
        if not isinstance(file, str) or not file:
            raise ValidationError("File missed")

        return _check_response(
            await self._dispatcher.dispatch(
                f"{self.storage_url}/{container}/{file}", "DELETE"
            ),
            f"delete '{file}' from container '{container}'",
        )

    # Lifecycle

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SelectelStorageClient":
        return self

    async def __aexit__(self, *_) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"SelectelStorageClient(user_id={self.user_id!r}, "
            f"storage_url={self.storage_url!r})"
        )

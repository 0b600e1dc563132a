"""Tests for upload source conversion."""

import io
import threading

import pytest

from selstorage.core.exceptions import UploadStreamError, ValidationError
from selstorage.storage import to_byte_stream


async def collect(stream) -> list[bytes]:
    return [chunk async for chunk in stream]


class TestToByteStream:
    """Test conversion of each supported source."""

    @pytest.mark.asyncio
    async def test_bytes(self):
        """Test raw bytes are sent as one chunk."""
        assert await collect(to_byte_stream(b"abc", 2)) == [b"abc"]

    @pytest.mark.asyncio
    async def test_path_is_chunked(self, tmp_path):
        """Test files are read in chunks."""
        path = tmp_path / "data.bin"
        path.write_bytes(b"abcde")

        assert await collect(to_byte_stream(path, 2)) == [b"ab", b"cd", b"e"]

    @pytest.mark.asyncio
    async def test_file_object(self):
        """Test binary file objects are read in chunks."""
        assert await collect(to_byte_stream(io.BytesIO(b"abcd"), 3)) == [b"abc", b"d"]

    @pytest.mark.asyncio
    async def test_failing_reader(self):
        """Test reader errors become UploadStreamError."""

        class Broken(io.RawIOBase):
            def read(self, size=-1):
                raise OSError("bad sector")

        with pytest.raises(UploadStreamError, match="bad sector"):
            await collect(to_byte_stream(Broken(), 3))

    def test_missing_path(self, tmp_path):
        """Test a missing file is rejected eagerly."""
        with pytest.raises(ValidationError, match="File not found"):
            to_byte_stream(str(tmp_path / "nope"), 2)

    def test_unsupported_source(self):
        """Test unsupported sources are rejected."""
        with pytest.raises(ValidationError, match="Unsupported upload source"):
            to_byte_stream(42, 2)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_non_io_reader_error(self):
        """Test any reader failure becomes UploadStreamError."""

        class Corrupt(io.RawIOBase):
            def read(self, size=-1):
                raise ValueError("checksum mismatch")

        with pytest.raises(UploadStreamError, match="checksum mismatch"):
            await collect(to_byte_stream(Corrupt(), 3))

    @pytest.mark.asyncio
    async def test_reads_run_off_the_event_loop(self):
        """Test file reads happen in a worker thread."""
        loop_thread = threading.get_ident()
        read_threads = []

        class Recording(io.BytesIO):
            def read(self, size=-1):
                read_threads.append(threading.get_ident())
                return super().read(size)

        chunks = await collect(to_byte_stream(Recording(b"abcd"), 2))

        assert chunks == [b"ab", b"cd"]
        assert read_threads
        assert loop_thread not in read_threads

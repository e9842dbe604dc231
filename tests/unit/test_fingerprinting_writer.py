"""Unit tests for the fingerprinting writer."""

import hashlib
import io
from pathlib import Path

import pytest

from cas_store.adapters.outbound.fingerprinting_writer import FingerprintingWriter
from cas_store.domain.errors import BlobIOError


class FailingStream:
    """Yields some bytes, then raises mid-upload."""

    def __init__(self, payload: bytes, exc: BaseException):
        self._payload = payload
        self._exc = exc
        self._sent = False

    def read(self, size: int = -1) -> bytes:
        if not self._sent:
            self._sent = True
            return self._payload
        raise self._exc


@pytest.fixture
def staging_dir(temp_data_dir: Path) -> Path:
    path = temp_data_dir / "tmp"
    path.mkdir()
    return path


@pytest.mark.unit
class TestFingerprintingWriter:
    """Test staging and hashing of uploads."""

    def test_stream_digest_and_size(self, staging_dir, large_object_data):
        """Digest and size match the full content across many chunks."""
        writer = FingerprintingWriter(staging_dir, chunk_size=4096, fsync=False)
        staged = writer.write(io.BytesIO(large_object_data))

        assert staged.digest == hashlib.sha256(large_object_data).hexdigest()
        assert staged.size == len(large_object_data)
        assert staged.temp_path.parent == staging_dir
        assert staged.temp_path.read_bytes() == large_object_data

    def test_bytes_source(self, staging_dir):
        writer = FingerprintingWriter(staging_dir, fsync=False)
        staged = writer.write(b"Hello World")
        assert staged.digest == "a591a6d40bf420404a011733cfb7b190d62c65bf0bcda32b57b277d9ad9f146e"
        assert staged.size == 11

    def test_iterable_source(self, staging_dir):
        writer = FingerprintingWriter(staging_dir, fsync=False)
        staged = writer.write(iter([b"Hello", b"", b" World"]))
        assert staged.digest == hashlib.sha256(b"Hello World").hexdigest()
        assert staged.temp_path.read_bytes() == b"Hello World"

    def test_empty_source(self, staging_dir):
        writer = FingerprintingWriter(staging_dir, fsync=False)
        staged = writer.write(b"")
        assert staged.size == 0
        assert staged.digest == hashlib.sha256(b"").hexdigest()

    def test_temp_names_are_unique(self, staging_dir):
        """Identical content never shares a staging file."""
        writer = FingerprintingWriter(staging_dir, fsync=False)
        first = writer.write(b"same")
        second = writer.write(b"same")
        assert first.temp_path != second.temp_path
        assert first.digest == second.digest
        assert first.digest not in first.temp_path.name

    def test_source_os_error_leaves_no_temp(self, staging_dir):
        """A failing source is reported as BlobIOError and cleaned up."""
        writer = FingerprintingWriter(staging_dir, fsync=False)
        with pytest.raises(BlobIOError):
            writer.write(FailingStream(b"partial", ConnectionResetError("client went away")))
        assert list(staging_dir.iterdir()) == []

    def test_other_errors_propagate_and_clean_up(self, staging_dir):
        writer = FingerprintingWriter(staging_dir, fsync=False)
        with pytest.raises(RuntimeError):
            writer.write(FailingStream(b"partial", RuntimeError("boom")))
        assert list(staging_dir.iterdir()) == []

    def test_missing_staging_dir(self, temp_data_dir):
        writer = FingerprintingWriter(temp_data_dir / "absent", fsync=False)
        with pytest.raises(BlobIOError):
            writer.write(b"data")

    def test_rejects_non_positive_chunk_size(self, staging_dir):
        with pytest.raises(ValueError):
            FingerprintingWriter(staging_dir, chunk_size=0)

"""Unit tests for the file blob store."""

import hashlib
import os
import threading
from pathlib import Path

import pytest

from cas_store.adapters.outbound.file_blob_store import FileBlobStore
from cas_store.adapters.outbound.fingerprinting_writer import FingerprintingWriter
from cas_store.domain.errors import BlobIOError, BlobNotFoundError, InvalidDigestError


def blob_files(data_dir: Path) -> list[Path]:
    return [p for p in (data_dir / "objects").rglob("*") if p.is_file()]


@pytest.fixture
def writer(blob_store: FileBlobStore) -> FingerprintingWriter:
    return FingerprintingWriter(blob_store.staging_dir, fsync=False)


@pytest.mark.unit
class TestFileBlobStore:
    """Test commit and read of content-addressed blobs."""

    def test_initialize_creates_layout(self, temp_data_dir):
        store = FileBlobStore(temp_data_dir / "fresh")
        store.initialize()
        assert store.staging_dir.is_dir()
        assert store.objects_dir.is_dir()

    def test_commit_creates_file(self, blob_store, writer, sample_object_data):
        staged = writer.write(sample_object_data)
        result = blob_store.commit(staged.temp_path, staged.digest)

        assert result.created is True
        assert result.path == blob_store.path_for(staged.digest)
        assert result.path.read_bytes() == sample_object_data
        assert not staged.temp_path.exists()
        assert blob_store.exists(staged.digest)

    def test_commit_existing_discards_temp(self, blob_store, writer, sample_object_data):
        """Second commit of the same content keeps the first file."""
        first = writer.write(sample_object_data)
        blob_store.commit(first.temp_path, first.digest)

        second = writer.write(sample_object_data)
        result = blob_store.commit(second.temp_path, second.digest)

        assert result.created is False
        assert not second.temp_path.exists()
        assert list(blob_store.staging_dir.iterdir()) == []
        assert len(blob_files(blob_store.data_dir)) == 1

    def test_concurrent_commits_same_digest(self, blob_store, writer, large_object_data):
        """Racing writers of identical content all succeed with one blob."""
        workers = 8
        staged = [writer.write(large_object_data) for _ in range(workers)]
        barrier = threading.Barrier(workers)
        results, errors = [], []

        def commit(item):
            barrier.wait()
            try:
                results.append(blob_store.commit(item.temp_path, item.digest))
            except Exception as exc:  # pragma: no cover - surfaced by assertion
                errors.append(exc)

        threads = [threading.Thread(target=commit, args=(item,)) for item in staged]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(results) == workers
        assert sum(1 for r in results if r.created) >= 1
        files = blob_files(blob_store.data_dir)
        assert len(files) == 1
        assert hashlib.sha256(files[0].read_bytes()).hexdigest() == staged[0].digest
        assert list(blob_store.staging_dir.iterdir()) == []

    def test_open_returns_content(self, blob_store, writer, sample_object_data):
        staged = writer.write(sample_object_data)
        blob_store.commit(staged.temp_path, staged.digest)
        with blob_store.open(staged.digest) as f:
            assert f.read() == sample_object_data

    def test_open_missing_blob(self, blob_store):
        digest = hashlib.sha256(b"never stored").hexdigest()
        with pytest.raises(BlobNotFoundError):
            blob_store.open(digest)
        assert not blob_store.exists(digest)

    def test_invalid_digest_rejected(self, blob_store, writer):
        staged = writer.write(b"data")
        with pytest.raises(InvalidDigestError):
            blob_store.commit(staged.temp_path, "../../etc/passwd")
        assert not staged.temp_path.exists()

    def test_shard_dir_failure(self, blob_store, writer):
        """A file squatting on the shard directory surfaces as BlobIOError."""
        staged = writer.write(b"blocked content")
        (blob_store.objects_dir / staged.digest[:2]).write_bytes(b"not a directory")

        with pytest.raises(BlobIOError):
            blob_store.commit(staged.temp_path, staged.digest)
        assert not staged.temp_path.exists()

    def test_rename_failure_raises_and_cleans_up(self, blob_store, writer, monkeypatch):
        staged = writer.write(b"rename will fail")

        def refuse(src, dst):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(os, "replace", refuse)
        with pytest.raises(BlobIOError):
            blob_store.commit(staged.temp_path, staged.digest)

        assert not staged.temp_path.exists()
        assert not blob_store.exists(staged.digest)

    def test_rename_lost_to_concurrent_writer(self, blob_store, writer, monkeypatch):
        """A failed rename onto a path another writer just filled is success."""
        staged = writer.write(b"contended content")

        def lose_race(src, dst):
            Path(dst).write_bytes(Path(src).read_bytes())
            raise PermissionError("destination busy")

        monkeypatch.setattr(os, "replace", lose_race)
        result = blob_store.commit(staged.temp_path, staged.digest)

        assert result.created is False
        assert result.path.read_bytes() == b"contended content"
        assert not staged.temp_path.exists()

"""Pytest configuration and shared fixtures for CAS Store tests."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from cas_store.adapters.outbound.file_blob_store import FileBlobStore
from cas_store.adapters.outbound.fingerprinting_writer import FingerprintingWriter
from cas_store.adapters.outbound.sql_metadata_index import SqlMetadataIndex
from cas_store.domain.services.object_service import ObjectService
from cas_store.infrastructure.config import Config, StorageConfig
from cas_store.infrastructure.container import Container
from cas_store.infrastructure.metrics import CasStoreMetrics


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary data directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="cas_store_test_")
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_config(temp_data_dir: Path) -> Config:
    """Provide a test configuration rooted in a temporary directory."""
    return Config(storage=StorageConfig(data_dir=temp_data_dir, fsync=False))


@pytest.fixture
def metrics() -> CasStoreMetrics:
    """Provide metrics on a private registry to avoid collisions between tests."""
    return CasStoreMetrics(registry=CollectorRegistry(auto_describe=True))


@pytest.fixture
def blob_store(temp_data_dir: Path) -> FileBlobStore:
    """Provide an initialized blob store."""
    store = FileBlobStore(temp_data_dir)
    store.initialize()
    return store


@pytest.fixture
def metadata_index(test_config: Config) -> Generator[SqlMetadataIndex, None, None]:
    """Provide an initialized SQLite metadata index."""
    index = SqlMetadataIndex(test_config.metadata_url)
    index.initialize()
    yield index
    index.close()


@pytest.fixture
def object_service(
    blob_store: FileBlobStore,
    metadata_index: SqlMetadataIndex,
    metrics: CasStoreMetrics,
) -> ObjectService:
    """Provide an object service over the temporary stores."""
    writer = FingerprintingWriter(blob_store.staging_dir, chunk_size=4096, fsync=False)
    return ObjectService(blob_store, metadata_index, writer=writer, metrics=metrics)


@pytest.fixture
def container(test_config: Config, metrics: CasStoreMetrics) -> Container:
    """Provide a configured container for testing."""
    return Container.create(test_config, metrics=metrics)


@pytest.fixture
def sample_object_data() -> bytes:
    """Provide sample object data for testing."""
    return b"Hello, World! This is test data for the object store."


@pytest.fixture
def large_object_data() -> bytes:
    """Provide data spanning many writer chunks."""
    return bytes(range(256)) * 4096  # 1 MiB


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")

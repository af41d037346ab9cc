# Test configuration

import os
import sys
from datetime import datetime, timezone

import pytest
from bson import ObjectId

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def test_settings(tmp_path):
    """Settings for testing, independent of the environment."""
    from docport.config.settings import Settings
    return Settings(
        mongodb_url="mongodb://localhost:27017",
        db_name="docport_test",
        output_dir=str(tmp_path / "exports"),
        sample_size=100,
        batch_size=1000,
    )


@pytest.fixture
def file_store(tmp_path):
    """Artifact store in a temporary directory."""
    from docport.storage.filesystem import FilesystemStorage
    return FilesystemStorage(str(tmp_path / "exports"))


@pytest.fixture
def user_documents():
    """A small, slightly heterogeneous users collection."""
    return [
        {
            "_id": ObjectId("65a1b2c3d4e5f60718293a4b"),
            "name": "Alice",
            "age": 34,
            "active": True,
            "joined": datetime(2023, 5, 17, 9, 30, tzinfo=timezone.utc),
            "address": {"city": "Oslo", "zip": "0150"},
            "tags": [{"name": "admin"}, {"name": "ops"}],
        },
        {
            "_id": ObjectId("65a1b2c3d4e5f60718293a4c"),
            "name": "Bob",
            "age": 41,
            "active": False,
            "joined": datetime(2022, 1, 3, 12, 0, tzinfo=timezone.utc),
            "address": {"city": "Bergen", "zip": "5003"},
            "tags": [{"name": "dev"}],
        },
        {
            "_id": ObjectId("65a1b2c3d4e5f60718293a4d"),
            "name": "Carol",
            "age": None,
            "active": True,
            "joined": datetime(2024, 2, 29, 18, 45, tzinfo=timezone.utc),
            "address": {"city": "Trondheim"},
            "tags": [],
        },
    ]

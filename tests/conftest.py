"""
This module contains pytest fixtures and configuration for testing.
"""
from collections import defaultdict
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add the project's root directory to the system path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

# Import the main app
from main import app
from pos_api.auth.dependencies import get_current_user_id, require_admin

ADMIN_USER_ID = "admin-user"


@pytest.fixture
def test_app():
    """
    Create a FastAPI test application.
    """
    return app


@pytest.fixture
def client(test_app):
    """
    Create a test client signed in as an administrator.
    """
    test_app.dependency_overrides[get_current_user_id] = lambda: ADMIN_USER_ID
    test_app.dependency_overrides[require_admin] = lambda: ADMIN_USER_ID
    yield TestClient(test_app)
    test_app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(test_app):
    """
    Create a test client without any authentication overrides.
    """
    test_app.dependency_overrides.clear()
    return TestClient(test_app)


@pytest.fixture(autouse=True)
def no_redis():
    """
    Run every test without a Redis server.
    """
    with patch('pos_api.common.cache.get_redis_client', return_value=None):
        yield


@pytest.fixture
def mock_firestore():
    """
    Create a mock for the Firestore client.
    """
    with patch('firebase_admin.firestore.client') as mock:
        # Configure the mock to provide the necessary methods and return values
        firestore_mock = MagicMock()
        mock.return_value = firestore_mock
        yield firestore_mock


@pytest.fixture
def collections(mock_firestore):
    """
    Route db.collection(name) to one MagicMock per collection name.
    """
    by_name = defaultdict(MagicMock)
    mock_firestore.collection.side_effect = lambda name: by_name[name]
    return by_name


@pytest.fixture
def make_doc():
    """
    Factory for Firestore document snapshots.
    """
    def _make_doc(doc_id, data=None, exists=True):
        doc = MagicMock()
        doc.id = doc_id
        doc.exists = exists
        doc.to_dict.return_value = data if exists else None
        return doc
    return _make_doc


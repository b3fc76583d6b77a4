import os

os.environ.setdefault("PROJECT_ID", "test-project")
os.environ.setdefault("DEBUG", "false")

import itertools
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app
from services.dependencies import get_service_manager

INDEX_HTML = b"<!doctype html><html><body><div id=\"root\"></div></body></html>"
APP_JS = b"console.log('storefront');"


class InMemoryServiceManager:
    """Stands in for the Firestore/S3/Redis backed ServiceManager."""

    firestore = None
    s3 = None
    redis = None
    thread_pool = None

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.cache: Dict[str, str] = {}
        self.cache_ttls: Dict[str, int] = {}
        self.uploads: Dict[str, bytes] = {}
        self._ids = itertools.count(1)

    def _coll(self, name):
        return self.collections.setdefault(name, {})

    async def list_documents(self, collection, filters=None, limit=None):
        docs = [{**d, "id": doc_id} for doc_id, d in self._coll(collection).items()]
        for field, op, value in filters or []:
            assert op == "=="
            docs = [d for d in docs if d.get(field) == value]
        return docs[:limit] if limit else docs

    async def get_document(self, collection, doc_id) -> Optional[Dict[str, Any]]:
        doc = self._coll(collection).get(doc_id)
        return None if doc is None else {**doc, "id": doc_id}

    async def create_document(self, collection, data):
        doc_id = f"{collection}-{next(self._ids)}"
        self._coll(collection)[doc_id] = dict(data)
        return {**data, "id": doc_id}

    async def update_document(self, collection, doc_id, data):
        doc = self._coll(collection).get(doc_id)
        if doc is None:
            return False
        doc.update(data)
        return True

    async def delete_document(self, collection, doc_id):
        return self._coll(collection).pop(doc_id, None) is not None

    async def upload_media(self, key, data, content_type):
        self.uploads[key] = data
        return f"https://media.test/{key}"

    async def cache_get(self, key):
        return self.cache.get(key)

    async def cache_setex(self, key, ttl, value):
        self.cache[key] = value
        self.cache_ttls[key] = ttl

    async def cache_delete(self, key):
        self.cache.pop(key, None)


@pytest.fixture
def frontend_dir(tmp_path):
    root = tmp_path / "public"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "assets" / "app.js").write_bytes(APP_JS)
    return root


@pytest.fixture
def settings(frontend_dir):
    return Settings(project_id="test-project", frontend_dir=str(frontend_dir))


@pytest.fixture
def services():
    return InMemoryServiceManager()


@pytest.fixture
def app(settings, services):
    application = create_app(settings)
    application.dependency_overrides[get_service_manager] = lambda: services
    return application


@pytest.fixture
def client(app):
    # Not entered as a context manager: the lifespan would dial real backends.
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def request_count(app):
    def read():
        return app.state.metrics.registry.get_sample_value("app_requests_total")
    return read

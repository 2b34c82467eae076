"""Shared fixtures for the archive tests."""

import json

import pytest

from src.archive import create_app
from src.archive.catalog import JsonFileCatalogStore

TOKEN = 'test-token'
WETLAND = {'title': 'Wetland Survey', 'tags': ['ecology', 'gis'], 'file': 'https://x/a.pdf'}


@pytest.fixture
def projects_file(tmp_path):
    return tmp_path / 'projects.json'


@pytest.fixture
def store(projects_file):
    return JsonFileCatalogStore(str(projects_file))


@pytest.fixture
def seeded_store(store, projects_file):
    projects_file.write_text(json.dumps([dict(WETLAND, createdAt='2024-01-01T00:00:00.000Z')]), encoding='utf-8')
    return store


@pytest.fixture
def app(seeded_store):
    return create_app({'TESTING': True, 'SECRET_TOKEN': TOKEN}, store=seeded_store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {'Authorization': f'Bearer {TOKEN}'}

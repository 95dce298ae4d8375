import pytest
from fastapi.testclient import TestClient

from tutor_scheduler.data.repository import InMemoryTutorRepository
from tutor_scheduler.data.roster import load_static_roster
from tutor_scheduler.session_store import InMemorySessionStore

from .fakes import ScriptedBackend, make_pipeline


@pytest.fixture
def repository():
    return InMemoryTutorRepository(load_static_roster())


@pytest.fixture
def keyword_only_pipeline(repository):
    return make_pipeline(repository, ScriptedBackend([]))


@pytest.fixture
def client(repository, keyword_only_pipeline):
    from tutor_scheduler.server import app, get_pipeline, get_repository, get_session_store

    store = InMemorySessionStore()
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_pipeline] = lambda: keyword_only_pipeline
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def use_pipeline(client):
    """Swap the pipeline the app serves for the rest of the test."""
    from tutor_scheduler.server import app, get_pipeline

    def _use(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    return _use

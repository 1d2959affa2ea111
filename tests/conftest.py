import pytest
from fastapi.testclient import TestClient

from opsdash.api import create_app
from opsdash.client import ApiClient
from opsdash.config import AppConfig
from opsdash.store import dispose_engines


def make_config(database_url, **overrides):
    values = dict(
        database_url=database_url,
        api_url="",
        request_timeout=5.0,
        onboarding_timeout=35.0,
        max_description_chars=3000,
        ollama_enabled=False,
        ollama_base_url="http://localhost:11434",
        ollama_model="llama3.1",
        ollama_temperature=0.2,
        google_client_id=None,
        google_client_secret=None,
        google_redirect_uri=None,
        log_level="INFO",
        log_dir=None,
    )
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def db_url(tmp_path):
    yield f"sqlite:///{(tmp_path / 'opsdash-test.db').as_posix()}"
    dispose_engines()


@pytest.fixture
def config(db_url):
    return make_config(db_url)


@pytest.fixture
def http(config):
    with TestClient(create_app(config)) as client:
        yield client


@pytest.fixture
def api(http):
    return ApiClient("", user_id="alice", session=http)


@pytest.fixture
def other_api(http):
    return ApiClient("", user_id="bob", session=http)

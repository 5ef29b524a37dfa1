"""Tests for environment-driven settings."""
import pytest

from shapeforms.codec import DEFAULT_NAMESPACE
from shapeforms.config import DEFAULT_QUERY_ENDPOINT, Settings

VARS = [
    "SPARQL_QUERY_ENDPOINT", "SPARQL_UPDATE_ENDPOINT", "GRAPHDB_URL", "GRAPHDB_REPOSITORY",
    "ENTITY_NAMESPACE", "MAX_NESTED_DEPTH", "INSTANCE_PAGE_SIZE", "ROW_FETCH_CONCURRENCY",
    "REQUEST_TIMEOUT", "ATOMIC_UPDATES", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so monkeypatch also removes anything load_dotenv adds
    for name in VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    settings = Settings.from_env(str(clean_env))
    assert settings.query_endpoint == DEFAULT_QUERY_ENDPOINT
    assert settings.effective_update_endpoint == DEFAULT_QUERY_ENDPOINT + "/statements"
    assert settings.entity_namespace == DEFAULT_NAMESPACE
    assert settings.max_nested_depth == 3
    assert settings.instance_page_size == 100
    assert settings.row_fetch_concurrency == 8
    assert settings.atomic_updates is True
    assert settings.log_level == "INFO"


def test_graphdb_url(clean_env, monkeypatch):
    monkeypatch.setenv("GRAPHDB_URL", "http://db:7200/")
    monkeypatch.setenv("GRAPHDB_REPOSITORY", "archi")
    settings = Settings.from_env(str(clean_env))
    assert settings.query_endpoint == "http://db:7200/repositories/archi"
    assert settings.effective_update_endpoint == "http://db:7200/repositories/archi/statements"


def test_explicit_endpoints_win(clean_env, monkeypatch):
    monkeypatch.setenv("GRAPHDB_URL", "http://db:7200")
    monkeypatch.setenv("SPARQL_QUERY_ENDPOINT", "http://q/sparql")
    monkeypatch.setenv("SPARQL_UPDATE_ENDPOINT", "http://q/update")
    settings = Settings.from_env(str(clean_env))
    assert settings.query_endpoint == "http://q/sparql"
    assert settings.effective_update_endpoint == "http://q/update"


def test_env_file(clean_env):
    env_file = clean_env.parent / ".env"
    env_file.write_text(
        "SPARQL_QUERY_ENDPOINT=http://fuseki:3030/ds/query\n"
        "MAX_NESTED_DEPTH=5\n"
        "ATOMIC_UPDATES=no\n"
        "LOG_LEVEL=debug\n"
    )
    settings = Settings.from_env(str(env_file))
    assert settings.query_endpoint == "http://fuseki:3030/ds/query"
    assert settings.max_nested_depth == 5
    assert settings.atomic_updates is False
    assert settings.log_level == "DEBUG"


def test_environment_overrides_env_file(clean_env, monkeypatch):
    env_file = clean_env.parent / ".env"
    env_file.write_text("INSTANCE_PAGE_SIZE=10\n")
    monkeypatch.setenv("INSTANCE_PAGE_SIZE", "25")
    assert Settings.from_env(str(env_file)).instance_page_size == 25

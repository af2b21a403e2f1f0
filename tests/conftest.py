"""Pytest configuration and fixtures for the test suite."""

from pathlib import Path

import pytest

from obsidian_vikunja_sync.config import Config, reset_config
from obsidian_vikunja_sync.obsidian.vault_store import VaultTaskStore
from obsidian_vikunja_sync.sync.pull_poller import PullPoller
from obsidian_vikunja_sync.sync.push_pipeline import PushPipeline
from obsidian_vikunja_sync.sync.relation_resolver import TwoPassRelationResolver
from tests.fixtures import MockTaskStore, MockVikunjaClient


@pytest.fixture(autouse=True)
def _reset_config_singleton():
    yield
    reset_config()


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config with sync enabled against a temporary vault."""
    return Config(
        vault_path=tmp_path,
        vikunja_api_url="http://vikunja.test/api/v1",
        vikunja_api_token="test-token",
        vikunja_enabled=True,
        enable_two_way_sync=True,
        default_project_id=3,
        push_debounce_seconds=0.05,
        sync_interval_minutes=5,
    )


@pytest.fixture
def mock_client() -> MockVikunjaClient:
    """Provide an in-memory Vikunja."""
    return MockVikunjaClient()


@pytest.fixture
def mock_store() -> MockTaskStore:
    """Provide an in-memory task store."""
    return MockTaskStore()


@pytest.fixture
def resolver(mock_store, mock_client) -> TwoPassRelationResolver:
    return TwoPassRelationResolver(mock_store, mock_client)


@pytest.fixture
def push_pipeline(test_config, mock_store, mock_client, resolver) -> PushPipeline:
    return PushPipeline(test_config, mock_store, mock_client, resolver)


@pytest.fixture
def pull_poller(test_config, mock_store, mock_client, resolver) -> PullPoller:
    return PullPoller(test_config, mock_store, mock_client, resolver)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """Temporary vault directory."""
    return tmp_path


@pytest.fixture
def vault_store(vault: Path) -> VaultTaskStore:
    return VaultTaskStore(vault, task_tag="task", tasks_folder="TaskNotes/Tasks")

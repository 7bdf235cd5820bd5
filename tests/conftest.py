# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

import config  # noqa: E402
from core.document_store import InMemoryBackupStore, InMemoryDocumentStore  # noqa: E402
from processing.apply_coordinator import ApplyCoordinator  # noqa: E402


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom CLI options for this repo.

    --unit-stubs: skip tests marked as heavier suites (integration, slow) so
    that only hermetic tests run.
    """
    parser.addoption(
        "--unit-stubs",
        action="store_true",
        default=False,
        help="Run unit tests with stubs/mocks; ignore heavier suites.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """When --unit-stubs is passed, skip heavier-marked tests."""
    if not config.getoption("--unit-stubs"):
        return

    skip_marker = pytest.mark.skip(reason="skipped by --unit-stubs")
    heavy_markers = {"integration", "slow"}
    for item in items:
        for m in item.iter_markers():
            if m.name in heavy_markers:
                item.add_marker(skip_marker)
                break


@pytest.fixture(autouse=True)
def _default_size_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin size policy and retry timing so a developer's .env cannot change results."""
    monkeypatch.setattr(config, "CHUNKING_THRESHOLD_CHARS", 4000)
    monkeypatch.setattr(config, "MAX_CHUNK_SIZE_CHARS", 3000)
    monkeypatch.setattr(config, "DIFF_SIMILARITY_THRESHOLD", 0.7)
    monkeypatch.setattr(config, "CORRECTION_LANGUAGE", "en")
    monkeypatch.setattr(config, "LLM_RETRY_DELAY_SECONDS", 0)


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def backup_store() -> InMemoryBackupStore:
    return InMemoryBackupStore()


@pytest.fixture
def coordinator(document_store: InMemoryDocumentStore, backup_store: InMemoryBackupStore) -> ApplyCoordinator:
    return ApplyCoordinator(document_store, backup_store)

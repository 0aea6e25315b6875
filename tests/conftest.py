import json
import logging
from unittest.mock import AsyncMock

import pytest

from i18n_sync.app_config import AppConfig
from i18n_sync.errors import ProviderError
from i18n_sync.retry import RetryPolicy


class FakeTranslationClient:
    """In-memory stand-in for OpenAITranslationClient that records every request."""

    def __init__(self, fail_when=None, translate_text=None):
        self.calls = []
        self._fail_when = fail_when or (lambda texts: False)
        self._translate_text = translate_text or (lambda text, target: f"{target}:{text}")

    async def translate(self, texts, source_language, target_language):
        self.calls.append(list(texts))
        if self._fail_when(texts):
            raise ProviderError("simulated provider failure")
        return [self._translate_text(text, target_language) for text in texts]


@pytest.fixture
def fake_client_factory():
    return FakeTranslationClient


@pytest.fixture
def no_wait_retry_policy():
    """Retry policy with the defaults but without real backoff sleeps."""
    return RetryPolicy(max_attempts=3, base_delay=0.4, timeout=30.0, sleep=AsyncMock())


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        project_root=str(tmp_path),
        search_root=str(tmp_path),
        catalog_dir_name="i18n",
        source_file_name="en.json",
        model_name="gpt-4o-mini",
        language_codes={"de": "German", "fr": "French"},
        openai_client=None,
        show_progress=False,
        skipped_report_path=str(tmp_path / "logs" / "skipped.log"),
    )


@pytest.fixture
def catalog_dir(tmp_path):
    """An empty ``i18n`` directory nested a few levels below the search root."""
    path = tmp_path / "web" / "src" / "i18n"
    path.mkdir(parents=True)
    return path


def write_json(path, data):
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def write_catalog_file():
    return write_json


@pytest.fixture
def read_catalog_file():
    return read_json


@pytest.fixture(autouse=True)
def reset_package_logger():
    """load_app_config() installs non-propagating handlers; undo that between tests."""
    yield
    package_logger = logging.getLogger("i18n_sync")
    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)

"""Shared fixtures for bookmark-bot tests."""

from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from bookmark_bot.config import TZ
from bookmark_bot.preferences import PreferenceStore
from bookmark_bot.scheduling.reminders import ReminderService


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all data file paths to a temp directory."""
    import bookmark_bot.config as config_mod

    monkeypatch.setattr(config_mod, "DATA_DIR", tmp_path)
    monkeypatch.delenv("BOOKMARK_STORE_PATH", raising=False)
    monkeypatch.delenv("BOOKMARK_REMINDER_STORE_PATH", raising=False)
    return tmp_path


@pytest.fixture()
def registry_file(tmp_path):
    return tmp_path / "reminders.json"


@pytest.fixture()
def client():
    return MagicMock()


@pytest.fixture()
def make_service(client, registry_file):
    """Build a service on a scheduler that is never started; jobs stay pending."""

    def _make(path=registry_file):
        return ReminderService(client, path, scheduler=AsyncIOScheduler(timezone=TZ))

    return _make


@pytest.fixture()
def service(make_service):
    return make_service()


@pytest.fixture()
def store(tmp_path):
    return PreferenceStore(tmp_path / "bookmarks.json")

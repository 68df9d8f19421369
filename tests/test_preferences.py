"""Tests for preferences.py: per-user emoji preferences and their file."""

import json

import pytest

import bookmark_bot.preferences as prefs_mod
from bookmark_bot.preferences import EmojiPreference, PreferenceStore
from bookmark_bot.scheduling.parser import ReminderSpec

REMINDER = ReminderSpec(kind="duration", duration_seconds=1800)


def test_get_unknown_user(store):
    assert store.get("1") is None
    assert store.get_emoji("1", "⏰") is None


def test_set_and_get(store):
    pref = EmojiPreference(mode="lightweight", color=0xFFD700, has_color=True, reminder=REMINDER)

    store.set_emoji("1", "⏰", pref)

    assert store.get_emoji("1", "⏰") == pref
    assert store.get("1") == {"⏰": pref}


def test_set_normalizes(store):
    store.set_emoji(
        "1",
        "⭐",
        EmojiPreference(
            mode="weird",  # type: ignore[arg-type]
            color=0x123456,
            has_color=False,
            destination="channel",
            channel_id="",
            reminder=ReminderSpec(kind="none"),
        ),
    )

    pref = store.get_emoji("1", "⭐")
    assert pref == EmojiPreference(mode="balanced", destination="dm")


def test_dm_destination_drops_channel(store):
    store.set_emoji("1", "⭐", EmojiPreference(destination="dm", channel_id="42"))

    assert store.get_emoji("1", "⭐").channel_id == ""


def test_channel_destination_kept_with_id(store):
    store.set_emoji("1", "⭐", EmojiPreference(destination="channel", channel_id="42"))

    pref = store.get_emoji("1", "⭐")
    assert (pref.destination, pref.channel_id) == ("channel", "42")


def test_overwrite_keeps_other_emojis(store):
    store.set_emoji("1", "⭐", EmojiPreference(mode="complete"))
    store.set_emoji("1", "⏰", EmojiPreference(mode="lightweight"))
    store.set_emoji("1", "⭐", EmojiPreference(mode="lightweight"))

    prefs = store.get("1")
    assert {k: v.mode for k, v in prefs.items()} == {"⭐": "lightweight", "⏰": "lightweight"}


def test_get_returns_a_copy(store):
    store.set_emoji("1", "⭐", EmojiPreference())

    store.get("1").clear()

    assert store.get_emoji("1", "⭐") is not None


def test_delete_emoji(store):
    store.set_emoji("1", "⭐", EmojiPreference())
    store.set_emoji("1", "⏰", EmojiPreference())

    assert store.delete_emoji("1", "⭐") is True

    assert list(store.get("1")) == ["⏰"]


def test_delete_last_emoji_removes_user(store, tmp_path):
    store.set_emoji("1", "⭐", EmojiPreference())

    assert store.delete_emoji("1", "⭐") is True

    assert store.get("1") is None
    assert json.loads((tmp_path / "bookmarks.json").read_text()) == {}


def test_delete_missing(store):
    assert store.delete_emoji("1", "⭐") is False
    store.set_emoji("1", "⏰", EmojiPreference())
    assert store.delete_emoji("1", "⭐") is False


def test_file_format(store, tmp_path):
    store.set_emoji(
        "1",
        "party:123",
        EmojiPreference(
            mode="complete",
            color=0xFF0000,
            has_color=True,
            destination="channel",
            channel_id="42",
            reminder=ReminderSpec(kind="time_of_day", hour=8, minute=0, remove_on_complete=False),
        ),
    )

    data = json.loads((tmp_path / "bookmarks.json").read_text())

    assert data == {
        "1": {
            "emojis": {
                "party:123": {
                    "mode": "complete",
                    "color": 0xFF0000,
                    "hasColor": True,
                    "destination": "channel",
                    "channelId": "42",
                    "reminder": {
                        "mode": "time_of_day",
                        "hour": 8,
                        "minute": 0,
                        "removeOnComplete": False,
                    },
                }
            }
        }
    }


def test_survives_reload(store, tmp_path):
    pref = EmojiPreference(mode="lightweight", reminder=REMINDER)
    store.set_emoji("1", "⏰", pref)

    reloaded = PreferenceStore(tmp_path / "bookmarks.json")

    assert reloaded.get_emoji("1", "⏰") == pref


def test_loads_older_file_without_destination(tmp_path):
    path = tmp_path / "bookmarks.json"
    path.write_text(
        json.dumps(
            {
                "1": {"emojis": {"⭐": {"mode": "complete", "color": 5, "hasColor": False}}},
                "2": {"emojis": {}},
                "3": {"emojis": {"⏰": {"mode": "lightweight", "reminder": {"mode": ""}}}},
            }
        )
    )

    store = PreferenceStore(path)

    assert store.get_emoji("1", "⭐") == EmojiPreference(mode="complete")
    assert store.get("2") is None
    assert store.get_emoji("3", "⏰").reminder is None


def test_non_object_file_is_rejected(tmp_path):
    path = tmp_path / "bookmarks.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError, match="JSON object"):
        PreferenceStore(path)


def test_store_without_file_stays_in_memory():
    store = PreferenceStore(None)

    store.set_emoji("1", "⭐", EmojiPreference())

    assert store.get_emoji("1", "⭐") is not None


# --- persistence failures ---


def _fail_writes(monkeypatch):
    def boom(path, data):
        raise OSError("read-only file system")

    monkeypatch.setattr(prefs_mod, "write_json_atomic", boom)


def test_failed_set_rolls_back(store, monkeypatch):
    store.set_emoji("1", "⭐", EmojiPreference(mode="complete"))
    _fail_writes(monkeypatch)

    with pytest.raises(OSError):
        store.set_emoji("1", "⭐", EmojiPreference(mode="lightweight"))
    with pytest.raises(OSError):
        store.set_emoji("2", "⭐", EmojiPreference())

    assert store.get_emoji("1", "⭐").mode == "complete"
    assert store.get("2") is None


def test_failed_delete_rolls_back(store, monkeypatch):
    store.set_emoji("1", "⭐", EmojiPreference(mode="complete"))
    _fail_writes(monkeypatch)

    with pytest.raises(OSError):
        store.delete_emoji("1", "⭐")

    assert store.get_emoji("1", "⭐").mode == "complete"

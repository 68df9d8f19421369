"""Tests for bookmark_cmd.py: /set-bookmark, /remove-bookmark, /list-bookmarks."""

import pytest

import bookmark_bot.preferences as prefs_mod
from bookmark_bot.bookmark_cmd import (
    BookmarkError,
    list_bookmarks,
    remove_bookmark,
    set_bookmark,
)
from bookmark_bot.preferences import EmojiPreference
from bookmark_bot.scheduling.parser import ReminderSpec

USER = "42"


# --- set ---


def test_set_with_duration_reminder(store):
    reply = set_bookmark(store, USER, emoji="⏰", mode="lightweight", reminder="30m")

    pref = store.get_emoji(USER, "⏰")
    assert pref.mode == "lightweight"
    assert pref.destination == "dm"
    assert pref.reminder == ReminderSpec(
        kind="duration", duration_seconds=1800, remove_on_complete=True
    )
    assert "Saved ⏰ in lightweight mode" in reply
    assert "your DM" in reply
    assert "Reminder: 30m after saving." in reply
    assert "Pressing Done also clears the reminder." in reply


def test_set_with_color(store):
    reply = set_bookmark(store, USER, emoji="😊", mode="Lightweight", color="#ffd700")

    pref = store.get_emoji(USER, "😊")
    assert (pref.mode, pref.color, pref.has_color) == ("lightweight", 0xFFD700, True)
    assert "Embed color set to #FFD700." in reply


def test_set_custom_emoji_is_keyed_by_name_and_id(store):
    set_bookmark(store, USER, emoji="<:party:123>", mode="complete")

    assert list(store.get(USER)) == ["party:123"]


def test_keep_reminder_on_complete(store):
    reply = set_bookmark(
        store,
        USER,
        emoji="⏰",
        mode="balanced",
        reminder="08:00",
        keep_reminder_on_complete=True,
    )

    pref = store.get_emoji(USER, "⏰")
    assert pref.reminder == ReminderSpec(
        kind="time_of_day", hour=8, minute=0, remove_on_complete=False
    )
    assert "Every day at 08:00" in reply
    assert "stays after pressing Done" in reply


def test_omitted_reminder_keeps_existing(store):
    set_bookmark(store, USER, emoji="⏰", mode="balanced", reminder="45m")

    set_bookmark(store, USER, emoji="⏰", mode="complete")
    set_bookmark(store, USER, emoji="⏰", mode="complete", reminder="  ")

    pref = store.get_emoji(USER, "⏰")
    assert pref.mode == "complete"
    assert pref.reminder.duration_seconds == 45 * 60


def test_new_reminder_inherits_remove_on_complete(store):
    set_bookmark(
        store, USER, emoji="⏰", mode="balanced", reminder="45m", keep_reminder_on_complete=True
    )

    set_bookmark(store, USER, emoji="⏰", mode="balanced", reminder="1h")

    assert store.get_emoji(USER, "⏰").reminder.remove_on_complete is False


def test_keep_flag_alone_updates_existing_reminder(store):
    set_bookmark(store, USER, emoji="⏰", mode="balanced", reminder="45m")

    set_bookmark(store, USER, emoji="⏰", mode="balanced", keep_reminder_on_complete=True)

    reminder = store.get_emoji(USER, "⏰").reminder
    assert reminder.duration_seconds == 45 * 60
    assert reminder.remove_on_complete is False


def test_clear_reminder(store):
    set_bookmark(store, USER, emoji="⏰", mode="balanced", reminder="45m")

    reply = set_bookmark(store, USER, emoji="⏰", mode="balanced", reminder="off")

    assert store.get_emoji(USER, "⏰").reminder is None
    assert "Reminder cleared." in reply


def test_channel_implies_channel_destination(store):
    reply = set_bookmark(store, USER, emoji="⭐", mode="balanced", channel_id="999")

    pref = store.get_emoji(USER, "⭐")
    assert (pref.destination, pref.channel_id) == ("channel", "999")
    assert "<#999>" in reply


def test_existing_channel_destination_is_kept(store):
    set_bookmark(store, USER, emoji="⭐", mode="balanced", channel_id="999")

    set_bookmark(store, USER, emoji="⭐", mode="complete")

    assert store.get_emoji(USER, "⭐").channel_id == "999"


def test_switch_back_to_dm_drops_channel(store):
    set_bookmark(store, USER, emoji="⭐", mode="balanced", channel_id="999")

    set_bookmark(store, USER, emoji="⭐", mode="balanced", destination="dm")

    pref = store.get_emoji(USER, "⭐")
    assert (pref.destination, pref.channel_id) == ("dm", "")


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"emoji": "", "mode": "balanced"}, "emoji option is required"),
        ({"emoji": "⭐", "mode": " "}, "mode option is required"),
        ({"emoji": "⭐ ⏰", "mode": "balanced"}, "one emoji at a time"),
        ({"emoji": "⭐", "mode": "verbose"}, "invalid mode"),
        ({"emoji": "⭐", "mode": "balanced", "color": "#12"}, "6 digit hex"),
        ({"emoji": "⭐", "mode": "balanced", "reminder": "25:00"}, "hour"),
        ({"emoji": "⭐", "mode": "balanced", "reminder": "soon"}, "30m"),
        ({"emoji": "⭐", "mode": "balanced", "reminder": "0s"}, "at least 1s"),
        ({"emoji": "⭐", "mode": "balanced", "reminder": "99999999h"}, "30m"),
        (
            {"emoji": "⭐", "mode": "balanced", "reminder": "off", "keep_reminder_on_complete": True},
            "clearing",
        ),
        (
            {"emoji": "⭐", "mode": "balanced", "keep_reminder_on_complete": False},
            "no reminder is set",
        ),
        ({"emoji": "⭐", "mode": "balanced", "destination": "channel"}, "pick a channel"),
        ({"emoji": "⭐", "mode": "balanced", "destination": "inbox"}, "invalid destination"),
    ],
)
def test_set_rejects_bad_input(store, kwargs, match):
    with pytest.raises(BookmarkError, match=match):
        set_bookmark(store, USER, **kwargs)

    assert store.get(USER) is None


def test_set_reports_write_failure(store, monkeypatch):
    def boom(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(prefs_mod, "write_json_atomic", boom)

    with pytest.raises(BookmarkError, match="failed to save"):
        set_bookmark(store, USER, emoji="⭐", mode="balanced")


# --- remove ---


def test_remove(store):
    set_bookmark(store, USER, emoji="<:party:123>", mode="balanced")

    reply = remove_bookmark(store, USER, emoji="<:party:123>")

    assert reply == "🧹 Removed <:party:123> from your shortcuts."
    assert store.get(USER) is None


def test_remove_unknown(store):
    reply = remove_bookmark(store, USER, emoji="⭐")

    assert reply.startswith("⚠️ That emoji isn't saved yet")


def test_remove_requires_single_emoji(store):
    with pytest.raises(BookmarkError, match="one emoji at a time"):
        remove_bookmark(store, USER, emoji="⭐,⏰")


# --- list ---


def test_list_empty(store):
    assert list_bookmarks(store, USER).startswith("📭 No bookmark emojis saved yet")


def test_list_shows_each_emoji(store):
    store.set_emoji(USER, "⭐", EmojiPreference(mode="complete", color=0xFF0000, has_color=True))
    store.set_emoji(
        USER,
        "party:123",
        EmojiPreference(
            mode="lightweight",
            destination="channel",
            channel_id="999",
            reminder=ReminderSpec(kind="duration", duration_seconds=1800, remove_on_complete=False),
        ),
    )

    reply = list_bookmarks(store, USER)

    assert reply.startswith("⭐ Saved bookmark shortcuts:")
    assert "• ⭐ — complete mode (color: #FF0000)" in reply
    assert "• <:party:123> — lightweight mode (color: default)" in reply
    assert "↳ 📬 Destination: <#999>" in reply
    assert "↳ 📬 Destination: DMs" in reply
    assert "↳ ⏰ Reminder: 30m after saving / 🔁 stays after Done" in reply
    assert "↳ ⏰ Reminder: No reminder" in reply

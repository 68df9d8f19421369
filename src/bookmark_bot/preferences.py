"""Per-user emoji bookmark preferences with crash-safe JSON persistence.

Every mutation builds an updated copy of the user's map, swaps it in, and
writes the whole store to disk. If the write fails the previous snapshot is put
back, so a successful call always leaves memory and disk in agreement.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from bookmark_bot.scheduling.parser import ReminderSpec
from bookmark_bot.storage import read_json, write_json_atomic

BookmarkMode = Literal["lightweight", "balanced", "complete"]
Destination = Literal["dm", "channel"]

MODES: tuple[BookmarkMode, ...] = ("lightweight", "balanced", "complete")
DEFAULT_MODE: BookmarkMode = "balanced"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EmojiPreference:
    mode: BookmarkMode = DEFAULT_MODE
    color: int = 0
    has_color: bool = False
    destination: Destination = "dm"
    channel_id: str = ""
    reminder: ReminderSpec | None = None

    def normalized(self) -> EmojiPreference:
        """Fill defaults and drop fields the destination does not use."""
        mode = self.mode if self.mode in MODES else DEFAULT_MODE
        destination: Destination = "dm"
        channel_id = ""
        if self.destination == "channel" and self.channel_id:
            destination = "channel"
            channel_id = self.channel_id
        reminder = self.reminder
        if reminder is not None and reminder.kind == "none":
            reminder = None
        return replace(
            self,
            mode=mode,
            color=self.color if self.has_color else 0,
            destination=destination,
            channel_id=channel_id,
            reminder=reminder,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mode": self.mode,
            "color": self.color,
            "hasColor": self.has_color,
            "destination": self.destination,
            "channelId": self.channel_id,
        }
        if self.reminder is not None:
            data["reminder"] = self.reminder.to_dict()
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> EmojiPreference:
        reminder = data.get("reminder")
        return EmojiPreference(
            mode=data.get("mode") or DEFAULT_MODE,
            color=int(data.get("color") or 0),
            has_color=bool(data.get("hasColor", False)),
            destination=data.get("destination") or "dm",
            channel_id=str(data.get("channelId") or ""),
            reminder=ReminderSpec.from_dict(reminder) if reminder else None,
        ).normalized()


class PreferenceStore:
    def __init__(self, file_path: Path | None) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._prefs: dict[str, dict[str, EmojiPreference]] = self._load()

    def get(self, user_id: str) -> dict[str, EmojiPreference] | None:
        """None when the user has no saved emoji."""
        with self._lock:
            emojis = self._prefs.get(user_id)
            if emojis is None:
                return None
            return {emoji: pref.normalized() for emoji, pref in emojis.items()}

    def get_emoji(self, user_id: str, emoji: str) -> EmojiPreference | None:
        with self._lock:
            pref = self._prefs.get(user_id, {}).get(emoji)
        return pref.normalized() if pref is not None else None

    def set_emoji(self, user_id: str, emoji: str, pref: EmojiPreference) -> None:
        """Raises OSError (after rolling back) when the file cannot be written."""
        normalized = pref.normalized()
        with self._lock:
            previous = self._prefs.get(user_id)
            updated = dict(previous or {})
            updated[emoji] = normalized
            self._prefs[user_id] = updated
            try:
                self._persist_locked()
            except OSError:
                self._rollback_locked(user_id, previous)
                log.exception("Failed to save emoji %s for user %s", emoji, user_id)
                raise

    def delete_emoji(self, user_id: str, emoji: str) -> bool:
        """Removes the user entirely once their last emoji is gone."""
        with self._lock:
            previous = self._prefs.get(user_id)
            if previous is None or emoji not in previous:
                return False
            updated = {k: v for k, v in previous.items() if k != emoji}
            if updated:
                self._prefs[user_id] = updated
            else:
                del self._prefs[user_id]
            try:
                self._persist_locked()
            except OSError:
                self._rollback_locked(user_id, previous)
                log.exception("Failed to remove emoji %s for user %s", emoji, user_id)
                raise
        return True

    def _rollback_locked(
        self, user_id: str, previous: dict[str, EmojiPreference] | None
    ) -> None:
        if previous is None:
            self._prefs.pop(user_id, None)
        else:
            self._prefs[user_id] = previous

    def _persist_locked(self) -> None:
        if self._file_path is None:
            return
        snapshot = {
            user_id: {
                "emojis": {emoji: pref.to_dict() for emoji, pref in emojis.items()}
            }
            for user_id, emojis in self._prefs.items()
        }
        write_json_atomic(self._file_path, snapshot)

    def _load(self) -> dict[str, dict[str, EmojiPreference]]:
        if self._file_path is None:
            return {}
        data = read_json(self._file_path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{self._file_path}: preference file must be a JSON object")

        prefs: dict[str, dict[str, EmojiPreference]] = {}
        for user_id, user_data in data.items():
            emojis = (user_data or {}).get("emojis") or {}
            loaded = {
                emoji: EmojiPreference.from_dict(raw) for emoji, raw in emojis.items()
            }
            if loaded:
                prefs[user_id] = loaded
        return prefs

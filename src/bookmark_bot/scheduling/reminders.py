"""Reminder scheduling and persistence.

ReminderService keeps the in-memory registry of pending reminders, keyed by
the bookmark message ID, and binds each entry to one APScheduler DateTrigger
job. Every mutation rewrites the registry file while holding the same lock, so
the file always mirrors the registry. Delivery removes and persists the entry
before sending: a reminder is delivered at most once, even if the send fails
or the process dies right after.
"""

from __future__ import annotations

import contextlib
import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import discord
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from bookmark_bot.config import TZ
from bookmark_bot.embeds import reminder_embed
from bookmark_bot.storage import read_json, write_json_atomic

if TYPE_CHECKING:
    from discord.abc import Messageable

log = logging.getLogger(__name__)

# Overdue reminders fire this long after being (re)armed.
MIN_DELAY = timedelta(seconds=1)

_FRACTION_RE = re.compile(r"\.(\d+)")


@dataclass(frozen=True, slots=True)
class Payload:
    """What the reminder message needs to point back at the bookmark."""

    channel_id: str
    jump_url: str = ""
    bookmark_url: str = ""
    channel_name: str = ""
    content_snippet: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "channelId": self.channel_id,
            "jumpUrl": self.jump_url,
            "bookmarkUrl": self.bookmark_url,
            "channelName": self.channel_name,
            "contentSnippet": self.content_snippet,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Payload:
        def pick(key: str, legacy: str) -> str:
            return str(data.get(key, data.get(legacy, "")) or "")

        return Payload(
            channel_id=pick("channelId", "ChannelID"),
            jump_url=pick("jumpUrl", "JumpURL"),
            bookmark_url=pick("bookmarkUrl", "BookmarkURL"),
            channel_name=pick("channelName", "ChannelName"),
            content_snippet=pick("contentSnippet", "ContentSnippet"),
        )


@dataclass(frozen=True, slots=True)
class ScheduledReminder:
    message_id: str
    when: datetime
    remove_on_complete: bool
    payload: Payload


def parse_timestamp(raw: str) -> datetime:
    """RFC 3339 with any number of fractional digits; naive values use TZ."""
    text = raw.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    when = datetime.fromisoformat(text)
    if when.tzinfo is None:
        when = when.replace(tzinfo=TZ)
    return when


def read_registry(filepath: Path) -> dict[str, ScheduledReminder]:
    """Load persisted reminders as stored, skipping entries that fail to parse."""
    data = read_json(filepath)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{filepath}: reminder registry must be a JSON object")

    result: dict[str, ScheduledReminder] = {}
    for message_id, stored in data.items():
        try:
            when = parse_timestamp(str(stored["when"]))
            payload = Payload.from_dict(stored.get("payload") or {})
            remove_on_complete = bool(stored.get("removeOnComplete", False))
        except (KeyError, TypeError, ValueError, AttributeError):
            log.warning("Skipping unreadable reminder %s in %s", message_id, filepath)
            continue
        result[message_id] = ScheduledReminder(
            message_id=message_id,
            when=when,
            remove_on_complete=remove_on_complete,
            payload=payload,
        )
    return result


def _job_id(message_id: str) -> str:
    return f"rem_{message_id}"


class ReminderService:
    """Owns pending reminders for one process; pass the instance to handlers."""

    def __init__(
        self,
        client: discord.Client,
        file_path: Path | None,
        *,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._client = client
        self._file_path = file_path
        self._scheduler = scheduler or AsyncIOScheduler(timezone=TZ)
        self._lock = threading.Lock()
        self._scheduled: dict[str, ScheduledReminder] = {}
        self._restore()

    # --- lifecycle ---

    def start(self) -> None:
        """Must run inside the event loop; arms jobs registered during restore."""
        if not self._scheduler.running:
            self._scheduler.start()
            log.info("reminder scheduler started: %d pending", len(self._scheduled))

    def close(self) -> None:
        """Stop every timer; entries stay in memory and on disk for the next start."""
        with self._lock:
            for message_id in self._scheduled:
                self._stop_timer(message_id)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    # --- public operations ---

    def schedule(
        self,
        message_id: str,
        when: datetime | None,
        payload: Payload,
        remove_on_complete: bool,
    ) -> None:
        """Last write wins: an existing reminder for message_id is replaced."""
        if when is None:
            return
        with self._lock:
            previous = self._scheduled.get(message_id)
            reminder = self._arm(message_id, when, payload, remove_on_complete)
            try:
                self._persist_locked()
            except OSError:
                log.exception("Failed to persist reminder %s", message_id)
                self._restore_entry_locked(message_id, previous)
                raise
        log.info("reminder %s scheduled for %s", message_id, reminder.when.isoformat())

    def cancel(self, message_id: str) -> bool:
        """No-op (False) when nothing is pending for message_id."""
        with self._lock:
            reminder = self._scheduled.pop(message_id, None)
            if reminder is None:
                return False
            self._stop_timer(message_id)
            try:
                self._persist_locked()
            except OSError:
                log.exception("Failed to persist cancellation of %s", message_id)
                self._restore_entry_locked(message_id, reminder)
                raise
        log.info("reminder %s cancelled", message_id)
        return True

    def complete(self, message_id: str) -> bool:
        """Cancels only when the reminder was set to clear on completion."""
        with self._lock:
            reminder = self._scheduled.get(message_id)
        if reminder is None or not reminder.remove_on_complete:
            return False
        return self.cancel(message_id)

    def get(self, message_id: str) -> ScheduledReminder | None:
        with self._lock:
            return self._scheduled.get(message_id)

    def pending(self) -> dict[str, ScheduledReminder]:
        with self._lock:
            return dict(self._scheduled)

    # --- internals ---

    async def _deliver(self, message_id: str) -> None:
        with self._lock:
            reminder = self._scheduled.pop(message_id, None)
            if reminder is None:
                return
            try:
                self._persist_locked()
            except OSError:
                log.exception("Failed to persist delivery of reminder %s", message_id)

        payload = reminder.payload
        try:
            channel_id = int(payload.channel_id)
            channel = self._client.get_channel(channel_id)
            if channel is None:
                channel = await self._client.fetch_channel(channel_id)
            messageable: Messageable = channel  # type: ignore[assignment]
            await messageable.send(embed=reminder_embed(payload))
        except (discord.DiscordException, ValueError):
            log.exception("Failed to deliver reminder %s", message_id)
            return
        log.info("reminder %s delivered to %s", message_id, payload.channel_id)

    def _arm(
        self,
        message_id: str,
        when: datetime,
        payload: Payload,
        remove_on_complete: bool,
    ) -> ScheduledReminder:
        """Caller must hold the lock."""
        if when.tzinfo is None:
            when = when.replace(tzinfo=TZ)
        now = datetime.now(TZ)
        if when <= now:
            when = now + MIN_DELAY

        self._stop_timer(message_id)
        self._scheduler.add_job(
            self._deliver,
            DateTrigger(run_date=when),
            args=(message_id,),
            id=_job_id(message_id),
            misfire_grace_time=None,
        )
        reminder = ScheduledReminder(
            message_id=message_id,
            when=when,
            remove_on_complete=remove_on_complete,
            payload=payload,
        )
        self._scheduled[message_id] = reminder
        return reminder

    def _stop_timer(self, message_id: str) -> None:
        with contextlib.suppress(JobLookupError):
            self._scheduler.remove_job(_job_id(message_id))

    def _restore_entry_locked(
        self, message_id: str, previous: ScheduledReminder | None
    ) -> None:
        """Put back the entry (and its timer) that a failed mutation replaced."""
        if previous is None:
            self._stop_timer(message_id)
            self._scheduled.pop(message_id, None)
            return
        self._arm(
            message_id, previous.when, previous.payload, previous.remove_on_complete
        )

    def _persist_locked(self) -> None:
        if self._file_path is None:
            return
        snapshot = {
            message_id: {
                "when": reminder.when.isoformat(),
                "removeOnComplete": reminder.remove_on_complete,
                "payload": reminder.payload.to_dict(),
            }
            for message_id, reminder in self._scheduled.items()
        }
        write_json_atomic(self._file_path, snapshot)

    def _restore(self) -> None:
        if self._file_path is None:
            return
        stored = read_registry(self._file_path)
        with self._lock:
            for message_id, reminder in stored.items():
                self._arm(
                    message_id,
                    reminder.when,
                    reminder.payload,
                    reminder.remove_on_complete,
                )
        if stored:
            log.info("restored %d pending reminder(s)", len(stored))

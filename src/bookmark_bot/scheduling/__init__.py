"""Scheduling: reminder parsing, the reminder registry, and its APScheduler timers."""

from bookmark_bot.scheduling.parser import (
    InvalidReminderFormat,
    ReminderSchedule,
    ReminderSpec,
    describe_reminder,
    format_duration,
    next_fire,
    parse_reminder,
)
from bookmark_bot.scheduling.reminders import (
    Payload,
    ReminderService,
    ScheduledReminder,
    read_registry,
)

__all__ = [
    "InvalidReminderFormat",
    "Payload",
    "ReminderSchedule",
    "ReminderService",
    "ReminderSpec",
    "ScheduledReminder",
    "describe_reminder",
    "format_duration",
    "next_fire",
    "parse_reminder",
    "read_registry",
]

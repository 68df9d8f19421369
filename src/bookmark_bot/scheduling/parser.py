"""Reminder text parsing and next-fire computation.

A reminder is either a time of day ("08:30", fires at the next occurrence) or
a relative duration ("30m", "in 2h45m", fires that long after the bookmark is
saved). Only the next occurrence of a time-of-day reminder is ever computed;
nothing re-arms it after delivery.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

ReminderKind = Literal["none", "time_of_day", "duration"]

CLEAR_KEYWORDS = frozenset({"none", "off", "clear", "0", "なし", "オフ", "解除"})

_DURATION_PREFIXES = ("in ", "after ")
_COMPONENT_RE = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_NANOS: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_CLOCK_FIELD_RE = re.compile(r"[+-]?\d+")
# Largest duration representable as signed 64-bit nanoseconds (about 2562047h).
_MAX_NANOS = 2**63 - 1


class InvalidReminderFormat(ValueError):
    """Reminder text is neither a clearing keyword, HH:MM, nor a duration."""


@dataclass(frozen=True, slots=True)
class ReminderSpec:
    kind: ReminderKind = "none"
    hour: int = 0
    minute: int = 0
    duration_seconds: int = 0
    remove_on_complete: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mode": "" if self.kind == "none" else self.kind}
        if self.kind == "time_of_day":
            data["hour"] = self.hour
            data["minute"] = self.minute
        elif self.kind == "duration":
            data["durationSeconds"] = self.duration_seconds
        data["removeOnComplete"] = self.remove_on_complete
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReminderSpec":
        mode = data.get("mode") or "none"
        if mode not in ("time_of_day", "duration"):
            mode = "none"
        return ReminderSpec(
            kind=mode,
            hour=int(data.get("hour", 0)),
            minute=int(data.get("minute", 0)),
            duration_seconds=int(data.get("durationSeconds", 0)),
            remove_on_complete=bool(data.get("removeOnComplete", False)),
        )


@dataclass(frozen=True, slots=True)
class ReminderSchedule:
    when: datetime
    description: str


def _parse_clock_field(raw: str, name: str) -> int:
    text = raw.strip()
    if not _CLOCK_FIELD_RE.fullmatch(text):
        raise InvalidReminderFormat(f"unable to read {name} value: {raw!r}")
    return int(text)


def _parse_time_of_day(text: str) -> ReminderSpec:
    parts = text.split(":")
    if len(parts) != 2:
        raise InvalidReminderFormat("invalid time. Use HH:MM such as 08:30")
    hour = _parse_clock_field(parts[0], "hour")
    minute = _parse_clock_field(parts[1], "minute")
    if not 0 <= hour <= 23:
        raise InvalidReminderFormat("hour must be between 0 and 23")
    if not 0 <= minute <= 59:
        raise InvalidReminderFormat("minute must be between 0 and 59")
    return ReminderSpec(kind="time_of_day", hour=hour, minute=minute)


def parse_duration_nanos(text: str) -> int:
    """Parse "2h45m" / "1.5h" / "-10s" style durations into nanoseconds.

    Raises ValueError on anything that is not a sequence of number+unit
    components.
    """
    cleaned = "".join(text.split())
    sign = 1
    if cleaned[:1] in ("+", "-"):
        sign = -1 if cleaned[0] == "-" else 1
        cleaned = cleaned[1:]
    if cleaned == "0":
        return 0
    if not cleaned:
        raise ValueError(f"invalid duration {text!r}")

    total = Decimal(0)
    pos = 0
    while pos < len(cleaned):
        match = _COMPONENT_RE.match(cleaned, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        try:
            value = Decimal(match.group(1))
        except InvalidOperation:
            raise ValueError(f"invalid duration {text!r}") from None
        total += value * _UNIT_NANOS[match.group(2)]
        pos = match.end()
    if total > _MAX_NANOS:
        raise ValueError(f"invalid duration {text!r}: out of range")
    return sign * int(total)


def parse_reminder(raw: str) -> ReminderSpec | None:
    """None means "not provided"; a spec with kind "none" means "clear it"."""
    trimmed = raw.strip()
    if not trimmed:
        return None

    lowered = trimmed.lower()
    if lowered in CLEAR_KEYWORDS:
        return ReminderSpec(kind="none")

    if ":" in trimmed:
        return _parse_time_of_day(trimmed)

    cleaned = lowered
    for prefix in _DURATION_PREFIXES:
        cleaned = cleaned.removeprefix(prefix)

    try:
        nanos = parse_duration_nanos(cleaned)
    except ValueError:
        raise InvalidReminderFormat("use durations like `30m` or `2h45m`") from None
    seconds = nanos // 1_000_000_000
    if seconds <= 0:
        raise InvalidReminderFormat("reminders must be at least 1s in the future")
    return ReminderSpec(kind="duration", duration_seconds=seconds)


def next_fire(spec: ReminderSpec | None, now: datetime) -> ReminderSchedule | None:
    """Next fire time relative to `now`, with the text shown on the bookmark."""
    if spec is None or spec.kind == "none":
        return None

    if spec.kind == "time_of_day":
        target = now.replace(
            hour=spec.hour, minute=spec.minute, second=0, microsecond=0
        )
        if target <= now:
            target += timedelta(hours=24)
        return ReminderSchedule(
            when=target,
            description=f"Next alert at {target:%Y-%m-%d %H:%M} (daily)",
        )

    if spec.duration_seconds <= 0:
        raise InvalidReminderFormat(
            "the reminder configuration is invalid. Please set it again"
        )
    try:
        target = now + timedelta(seconds=spec.duration_seconds)
    except OverflowError:
        raise InvalidReminderFormat(
            "the reminder duration is too long. Please set it again"
        ) from None
    return ReminderSchedule(
        when=target,
        description=(
            f"Reminder in {format_duration(spec.duration_seconds)} "
            f"({target:%Y-%m-%d %H:%M})"
        ),
    )


def describe_reminder(spec: ReminderSpec | None) -> str:
    if spec is None:
        return "No reminder"
    if spec.kind == "time_of_day":
        return f"Every day at {spec.hour:02d}:{spec.minute:02d}"
    if spec.kind == "duration":
        return f"{format_duration(spec.duration_seconds)} after saving"
    return "No reminder"


def format_duration(seconds: float) -> str:
    """Under a minute rounds to "N min"; otherwise "1h 30m" with zero parts omitted."""
    if seconds < 60:
        minutes = int((seconds + 0.5) // 60)
        return f"{max(minutes, 1)} min"

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes = remainder // 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if not parts and remainder % 60 > 0:
        parts.append(f"{remainder % 60}s")

    return " ".join(parts) if parts else "a few minutes"

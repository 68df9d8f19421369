"""Logic behind the bookmark slash commands, kept free of Discord plumbing.

Each function returns the ephemeral reply text or raises BookmarkError with a
message meant for the invoking user.
"""

from dataclasses import replace

from bookmark_bot.formatting import (
    format_emoji_for_display,
    normalize_emoji,
    parse_color,
    split_emoji_input,
)
from bookmark_bot.preferences import MODES, EmojiPreference, PreferenceStore
from bookmark_bot.scheduling.parser import (
    InvalidReminderFormat,
    ReminderSpec,
    describe_reminder,
    parse_reminder,
)

HELP_TEXT = (
    "How to use the bookmark bot:\n"
    "• `/set-bookmark emoji:😊 mode:lightweight color:#FFD700` — assign a save mode "
    "and colour to an emoji.\n"
    "• `/set-bookmark emoji:⏰ mode:lightweight reminder:30m` — also get reminded "
    "30 minutes after saving (or `reminder:08:00` for the next 08:00). "
    "Use `reminder:off` to clear it.\n"
    "• `/set-bookmark ... destination:channel channel:#reading-list` — deliver "
    "bookmarks to a channel instead of your DMs.\n"
    "• `/list-bookmarks` — show the emojis and modes you have configured.\n"
    "• `/remove-bookmark emoji:😊` — delete a shortcut.\n"
    "React to any message with a configured emoji and a copy is saved in that mode. "
    "Press ✅ Done or 🗑️ Remove on the copy when you're finished with it."
)


class BookmarkError(Exception):
    """Invalid command input; shown to the user, never fatal."""


def _single_emoji(raw: str, verb: str) -> tuple[str, str]:
    """Returns (as typed, normalized key)."""
    tokens = split_emoji_input(raw.strip())
    if not tokens:
        raise BookmarkError("please provide an emoji")
    if len(tokens) != 1:
        raise BookmarkError(f"please {verb} one emoji at a time")
    normalized = normalize_emoji(tokens[0])
    if not normalized:
        raise BookmarkError("unable to understand the provided emoji")
    return tokens[0], normalized


def _resolve_reminder(
    existing: ReminderSpec | None,
    raw: str | None,
    keep_on_complete: bool | None,
) -> tuple[ReminderSpec | None, bool]:
    """Returns (reminder to store, whether the reminder text was applied)."""
    try:
        parsed = parse_reminder(raw) if raw is not None else None
    except InvalidReminderFormat as exc:
        raise BookmarkError(str(exc)) from exc

    if parsed is not None:
        if parsed.kind == "none":
            if keep_on_complete is not None:
                raise BookmarkError(
                    "keep-reminder-on-complete can't be used while clearing the reminder"
                )
            return None, True
        if keep_on_complete is not None:
            remove_on_complete = not keep_on_complete
        elif existing is not None:
            remove_on_complete = existing.remove_on_complete
        else:
            remove_on_complete = True
        return replace(parsed, remove_on_complete=remove_on_complete), True

    if keep_on_complete is not None:
        if existing is None:
            raise BookmarkError(
                "no reminder is set, so keep-reminder-on-complete can't be changed. "
                "Set the reminder option first."
            )
        return replace(existing, remove_on_complete=not keep_on_complete), False
    return existing, False


def set_bookmark(
    store: PreferenceStore,
    user_id: str,
    *,
    emoji: str,
    mode: str,
    color: str | None = None,
    reminder: str | None = None,
    keep_reminder_on_complete: bool | None = None,
    destination: str | None = None,
    channel_id: str | None = None,
) -> str:
    if not emoji.strip():
        raise BookmarkError("emoji option is required")
    if not mode.strip():
        raise BookmarkError("mode option is required")
    typed, key = _single_emoji(emoji, "configure")

    try:
        parsed_color = parse_color(color)
    except ValueError as exc:
        raise BookmarkError(str(exc)) from exc

    normalized_mode = mode.strip().lower()
    if normalized_mode not in MODES:
        raise BookmarkError("invalid mode. choose lightweight, balanced, or complete")

    existing = store.get_emoji(user_id, key)
    reminder_spec, reminder_applied = _resolve_reminder(
        existing.reminder if existing else None, reminder, keep_reminder_on_complete
    )

    if destination is None:
        if channel_id:
            destination = "channel"
        elif existing is not None:
            destination = existing.destination
        else:
            destination = "dm"
    if destination not in ("dm", "channel"):
        raise BookmarkError("invalid destination. choose dm or channel")
    if destination == "channel":
        channel_id = channel_id or (existing.channel_id if existing else "")
        if not channel_id:
            raise BookmarkError("pick a channel to deliver bookmarks to")
    else:
        channel_id = ""

    pref = EmojiPreference(
        mode=normalized_mode,  # type: ignore[arg-type]
        color=parsed_color or 0,
        has_color=parsed_color is not None,
        destination=destination,  # type: ignore[arg-type]
        channel_id=channel_id,
        reminder=reminder_spec,
    )
    try:
        store.set_emoji(user_id, key, pref)
    except OSError as exc:
        raise BookmarkError(f"failed to save emoji preference: {exc}") from exc

    where = "your DM" if destination == "dm" else f"<#{channel_id}>"
    parts = [
        f"Saved {typed} in {normalized_mode} mode. React with it to save messages to {where}!"
    ]
    if parsed_color is not None:
        parts.append(f"Embed color set to #{parsed_color:06X}.")
    if reminder_applied and reminder_spec is None:
        parts.append("Reminder cleared.")
    elif reminder_spec is not None:
        parts.append(f"Reminder: {describe_reminder(reminder_spec)}.")
        if reminder_spec.remove_on_complete:
            parts.append("Pressing Done also clears the reminder.")
        else:
            parts.append("The reminder stays after pressing Done.")
    return " ".join(parts)


def remove_bookmark(store: PreferenceStore, user_id: str, *, emoji: str) -> str:
    if not emoji.strip():
        raise BookmarkError("emoji option is required")
    typed, key = _single_emoji(emoji, "remove")
    try:
        removed = store.delete_emoji(user_id, key)
    except OSError as exc:
        raise BookmarkError(f"failed to remove emoji preference: {exc}") from exc
    if not removed:
        return "⚠️ That emoji isn't saved yet. Use `/set-bookmark` to add it first."
    return f"🧹 Removed {format_emoji_for_display(typed)} from your shortcuts."


def list_bookmarks(store: PreferenceStore, user_id: str) -> str:
    prefs = store.get(user_id)
    if not prefs:
        return "📭 No bookmark emojis saved yet. Use `/set-bookmark` to create one!"

    lines = ["⭐ Saved bookmark shortcuts:"]
    for emoji in sorted(prefs):
        pref = prefs[emoji]
        color = f"#{pref.color:06X}" if pref.has_color else "default"
        lines.append(
            f"• {format_emoji_for_display(emoji)} — {pref.mode} mode (color: {color})"
        )
        if pref.destination == "channel":
            lines.append(f"  ↳ 📬 Destination: <#{pref.channel_id}>")
        else:
            lines.append("  ↳ 📬 Destination: DMs")
        reminder_line = f"  ↳ ⏰ Reminder: {describe_reminder(pref.reminder)}"
        if pref.reminder is not None:
            if pref.reminder.remove_on_complete:
                reminder_line += " / ✅ clears on Done"
            else:
                reminder_line += " / 🔁 stays after Done"
        lines.append(reminder_line)

    lines.append("")
    lines.append("Use `/set-bookmark` to tweak settings or `/remove-bookmark` to delete one.")
    return "\n".join(lines)

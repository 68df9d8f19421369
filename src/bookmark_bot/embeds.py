"""Embed and button builders for bookmark copies and reminder messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord.ui import Button, View

from bookmark_bot.config import TZ

if TYPE_CHECKING:
    from bookmark_bot.preferences import BookmarkMode
    from bookmark_bot.scheduling.parser import ReminderSchedule
    from bookmark_bot.scheduling.reminders import Payload

COMPLETE_BUTTON_ID = "bookmark_complete"
DELETE_BUTTON_ID = "bookmark_delete"

DEFAULT_COLOR = 0x5865F2
REMINDER_COLOR = 0xFEE75C

_LIGHTWEIGHT_LIMIT = 500
_BALANCED_ATTACHMENTS = 3
_FIELD_LIMIT = 1024
_MAX_EMBEDS = 10  # Discord limit per message
_IMAGE_EXTS = (".png", ".jpg", ".jpeg", ".gif", ".webp")


@dataclass(frozen=True, slots=True)
class BookmarkMessage:
    embeds: list[discord.Embed]
    view: View


def _stamp(when: datetime) -> str:
    return when.astimezone(TZ).strftime("%Y-%m-%d %H:%M")


def _done_button() -> Button:
    return Button(
        label="Done",
        style=discord.ButtonStyle.success,
        custom_id=COMPLETE_BUTTON_ID,
        emoji="✅",
    )


def _remove_button() -> Button:
    return Button(
        label="Remove",
        style=discord.ButtonStyle.danger,
        custom_id=DELETE_BUTTON_ID,
        emoji="🗑️",
    )


def _is_image(attachment: discord.Attachment) -> bool:
    if (attachment.content_type or "").startswith("image/"):
        return True
    return attachment.filename.lower().endswith(_IMAGE_EXTS)


def first_image_url(message: discord.Message) -> str | None:
    for attachment in message.attachments:
        if _is_image(attachment):
            return attachment.url
    for embed in message.embeds:
        if embed.image and embed.image.url:
            return embed.image.url
        if embed.thumbnail and embed.thumbnail.url:
            return embed.thumbnail.url
    return None


def attachment_lines(
    attachments: list[discord.Attachment], *, include_all: bool
) -> str | None:
    if not attachments:
        return None
    limit = len(attachments) if include_all else _BALANCED_ATTACHMENTS
    lines = [f"[{a.filename or a.url}]({a.url})" for a in attachments[:limit]]
    if len(attachments) > limit:
        lines.append(f"… +{len(attachments) - limit} more")
    value = "\n".join(lines)
    if len(value) > _FIELD_LIMIT:
        value = value[: _FIELD_LIMIT - 1] + "…"
    return value


def _copy_embed(embed: discord.Embed) -> discord.Embed:
    return discord.Embed.from_dict(embed.to_dict())


def _info_embed(
    title: str,
    message: discord.Message,
    channel_name: str,
    jump_url: str,
    color: int,
    schedule: ReminderSchedule | None,
    *,
    include_all_attachments: bool,
) -> discord.Embed:
    embed = discord.Embed(title=title, color=color, description=message.content or None)
    embed.add_field(name="🙋 Author", value=str(message.author), inline=True)
    embed.add_field(name="📺 Channel", value=f"#{channel_name}", inline=True)
    embed.add_field(name="🕓 Posted", value=_stamp(message.created_at), inline=True)
    if schedule is not None:
        embed.add_field(name="⏰ Reminder", value=schedule.description, inline=True)
    if jump_url:
        embed.add_field(name="🔗 Source Message", value=f"[Open]({jump_url})", inline=False)
    attachments = attachment_lines(
        list(message.attachments), include_all=include_all_attachments
    )
    if attachments:
        embed.add_field(name="🖇️ Attachments", value=attachments, inline=False)
    return embed


def lightweight_bookmark(
    message: discord.Message,
    channel_name: str,
    jump_url: str,
    color: int,
    emoji: str | None,
    schedule: ReminderSchedule | None,
) -> BookmarkMessage:
    embed = discord.Embed(title=f"{emoji or '👀'} Quick Read", color=color)
    embed.add_field(name="📺 Channel", value=f"#{channel_name}", inline=True)
    embed.add_field(name="💾 Saved", value=_stamp(datetime.now(TZ)), inline=True)
    if schedule is not None:
        embed.add_field(name="⏰ Reminder", value=schedule.description, inline=True)
    if message.content:
        embed.description = message.content[:_LIGHTWEIGHT_LIMIT].strip()
    if jump_url:
        embed.add_field(name="🔗 Source Message", value=f"[Open]({jump_url})", inline=False)
    if image_url := first_image_url(message):
        embed.set_image(url=image_url)

    view = View(timeout=None)
    view.add_item(_done_button())
    view.add_item(_remove_button())
    return BookmarkMessage(embeds=[embed], view=view)


def balanced_bookmark(
    message: discord.Message,
    channel_name: str,
    jump_url: str,
    color: int,
    schedule: ReminderSchedule | None,
) -> BookmarkMessage:
    info = _info_embed(
        "🔖 Smart Save",
        message,
        channel_name,
        jump_url,
        color,
        schedule,
        include_all_attachments=False,
    )
    embeds = [info]
    if len(message.embeds) == 1:
        embeds.append(_copy_embed(message.embeds[0]))

    view = View(timeout=None)
    if schedule is not None:
        view.add_item(_done_button())
    view.add_item(_remove_button())
    return BookmarkMessage(embeds=embeds, view=view)


def complete_bookmark(
    message: discord.Message,
    channel_name: str,
    jump_url: str,
    color: int,
    schedule: ReminderSchedule | None,
) -> BookmarkMessage:
    info = _info_embed(
        "📌 Full Save",
        message,
        channel_name,
        jump_url,
        color,
        schedule,
        include_all_attachments=True,
    )
    embeds = [info]
    embeds.extend(_copy_embed(e) for e in message.embeds)

    view = View(timeout=None)
    if jump_url:
        view.add_item(
            Button(label="Source", style=discord.ButtonStyle.link, url=jump_url, emoji="🔗")
        )
    if schedule is not None:
        view.add_item(_done_button())
    view.add_item(_remove_button())
    return BookmarkMessage(embeds=embeds[:_MAX_EMBEDS], view=view)


def build_bookmark(
    mode: BookmarkMode,
    message: discord.Message,
    channel_name: str,
    jump_url: str,
    color: int | None,
    emoji: str | None,
    schedule: ReminderSchedule | None,
) -> BookmarkMessage:
    """Unknown modes fall back to balanced."""
    resolved = DEFAULT_COLOR if color is None else color
    if mode == "lightweight":
        return lightweight_bookmark(
            message, channel_name, jump_url, resolved, emoji, schedule
        )
    if mode == "complete":
        return complete_bookmark(message, channel_name, jump_url, resolved, schedule)
    return balanced_bookmark(message, channel_name, jump_url, resolved, schedule)


def reminder_embed(payload: Payload) -> discord.Embed:
    embed = discord.Embed(
        title="⏰ Reminder",
        description=f"Take another look at #{payload.channel_name}.",
        color=REMINDER_COLOR,
        timestamp=datetime.now(TZ),
    )
    if payload.content_snippet:
        embed.add_field(name="📝 Note", value=payload.content_snippet, inline=False)
    if payload.jump_url:
        embed.add_field(
            name="🔗 Source Message",
            value=f"[Open message]({payload.jump_url})",
            inline=False,
        )
    if payload.bookmark_url:
        embed.add_field(
            name="📬 Saved Bookmark",
            value=f"[Open bookmark]({payload.bookmark_url})",
            inline=False,
        )
    return embed

"""Turn a bookmark-emoji reaction into a forwarded copy (and maybe a reminder)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import discord

from bookmark_bot.config import TZ
from bookmark_bot.embeds import build_bookmark
from bookmark_bot.formatting import emoji_key, extract_snippet, jump_link
from bookmark_bot.scheduling.parser import InvalidReminderFormat, next_fire
from bookmark_bot.scheduling.reminders import Payload

if TYPE_CHECKING:
    from bookmark_bot.bot import BookmarkBot
    from bookmark_bot.preferences import EmojiPreference

log = logging.getLogger(__name__)


async def _resolve_channel(bot: BookmarkBot, channel_id: int):
    return bot.get_channel(channel_id) or await bot.fetch_channel(channel_id)


async def _destination(bot: BookmarkBot, user_id: int, pref: EmojiPreference):
    """The user's DM channel, or the channel configured on the preference."""
    if pref.destination == "channel":
        return await _resolve_channel(bot, int(pref.channel_id))
    user = bot.get_user(user_id) or await bot.fetch_user(user_id)
    return await user.create_dm()


async def handle_reaction(
    bot: BookmarkBot, payload: discord.RawReactionActionEvent
) -> None:
    if bot.user is not None and payload.user_id == bot.user.id:
        return

    user_id = str(payload.user_id)
    prefs = bot.store.get(user_id)
    if not prefs:
        return
    pref = prefs.get(emoji_key(payload.emoji))
    if pref is None:
        return

    try:
        source_channel = await _resolve_channel(bot, payload.channel_id)
        message = await source_channel.fetch_message(payload.message_id)
    except discord.DiscordException:
        log.exception("Failed to fetch message %s", payload.message_id)
        return
    channel_name = getattr(source_channel, "name", None) or str(payload.channel_id)

    try:
        target = await _destination(bot, payload.user_id, pref)
    except (discord.DiscordException, ValueError):
        log.exception("Failed to open destination for user %s", user_id)
        return

    jump_url = jump_link(payload.guild_id, payload.channel_id, payload.message_id)
    schedule = None
    if pref.reminder is not None:
        try:
            schedule = next_fire(pref.reminder, datetime.now(TZ))
        except InvalidReminderFormat:
            log.exception("Failed to compute reminder for user %s", user_id)

    bookmark = build_bookmark(
        pref.mode,
        message,
        channel_name,
        jump_url,
        pref.color if pref.has_color else None,
        str(payload.emoji),
        schedule,
    )
    try:
        sent = await target.send(embeds=bookmark.embeds, view=bookmark.view)
    except discord.DiscordException:
        log.exception("Failed to send bookmark to user %s", user_id)
        return

    if schedule is None or pref.reminder is None:
        return
    target_guild = getattr(getattr(target, "guild", None), "id", None)
    reminder_payload = Payload(
        channel_id=str(target.id),
        jump_url=jump_url,
        bookmark_url=jump_link(target_guild, target.id, sent.id),
        channel_name=channel_name,
        content_snippet=extract_snippet(message.content),
    )
    try:
        bot.reminders.schedule(
            str(sent.id),
            schedule.when,
            reminder_payload,
            pref.reminder.remove_on_complete,
        )
    except OSError:
        log.exception("Failed to schedule reminder for bookmark %s", sent.id)

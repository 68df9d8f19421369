"""Persistent Done/Remove button handling for bookmark messages."""

from __future__ import annotations

import logging
import re

import discord
from discord.ui import Button, DynamicItem

from bookmark_bot.scheduling.reminders import ReminderService

log = logging.getLogger(__name__)


class BookmarkButton(
    DynamicItem[Button], template=r"bookmark_(?P<action>complete|delete)"
):
    """Reconstructed from custom_id, so buttons keep working after a restart."""

    def __init__(self, button: Button):
        super().__init__(button)
        self.action: str = ""

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: Button,
        match: re.Match[str],
    ) -> BookmarkButton:
        inst = cls(item)
        inst.action = match.group("action")
        return inst

    async def callback(self, interaction: discord.Interaction) -> None:
        reminders: ReminderService | None = getattr(interaction.client, "reminders", None)
        await handle_bookmark_button(interaction, self.action, reminders)


async def handle_bookmark_button(
    interaction: discord.Interaction,
    action: str,
    reminders: ReminderService | None,
) -> None:
    """Delete the bookmark copy, then cancel or complete its reminder."""
    await interaction.response.defer()
    message = interaction.message
    if message is None:
        return

    try:
        await message.delete()
    except discord.HTTPException:
        log.exception("Failed to delete bookmark message %s", message.id)

    if reminders is None:
        return
    message_id = str(message.id)
    try:
        if action == "delete":
            reminders.cancel(message_id)
        elif action == "complete":
            reminders.complete(message_id)
    except OSError:
        log.exception("Failed to update reminder for bookmark %s", message_id)

"""Discord bot wiring: preference store, reminder service, commands, handlers."""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from bookmark_bot.bookmark_cmd import (
    HELP_TEXT,
    BookmarkError,
    list_bookmarks,
    remove_bookmark,
    set_bookmark,
)
from bookmark_bot.config import Config
from bookmark_bot.preferences import PreferenceStore
from bookmark_bot.reactions import handle_reaction
from bookmark_bot.scheduling import ReminderService
from bookmark_bot.views import BookmarkButton

log = logging.getLogger(__name__)


class BookmarkBot(commands.Bot):
    """Owns the store and the reminder service for the lifetime of the process."""

    def __init__(self, config: Config) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=config.app_id,
            activity=discord.Activity(
                type=discord.ActivityType.watching, name="for bookmark reactions"
            ),
        )
        self.config = config
        self.store = PreferenceStore(config.store_path)
        self.reminders = ReminderService(self, config.reminder_store_path)
        register_commands(self.tree, self.store)

    async def setup_hook(self) -> None:
        self.add_dynamic_items(BookmarkButton)
        self.reminders.start()

        if self.config.guild_id is not None:
            guild = discord.Object(id=self.config.guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        else:
            synced = await self.tree.sync()
        log.info("synced %d slash commands", len(synced))

    async def on_ready(self) -> None:
        log.info("online as %s", self.user)

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await handle_reaction(self, payload)

    async def close(self) -> None:
        # Timers stop here; pending reminders are re-armed from disk on next start.
        self.reminders.close()
        await super().close()


async def _reply(interaction: discord.Interaction, content: str) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(content, ephemeral=True)
    else:
        await interaction.response.send_message(content, ephemeral=True)


def register_commands(tree: app_commands.CommandTree, store: PreferenceStore) -> None:
    @tree.command(
        name="set-bookmark", description="Choose how each emoji saves messages"
    )
    @app_commands.describe(
        emoji="Emoji to watch for when you react to a message",
        mode="Save mode: lightweight, balanced, or complete",
        color="Optional hex color (e.g. #ffcc00) for the saved message embed",
        reminder="Optional reminder such as 08:00 or 45m (off to clear)",
        keep_reminder_on_complete="Keep reminder when pressing the Done button",
        destination="Where bookmarks go: your DMs or a channel",
        channel="Channel to deliver bookmarks to (destination: channel)",
    )
    @app_commands.rename(keep_reminder_on_complete="keep-reminder-on-complete")
    @app_commands.choices(
        mode=[
            app_commands.Choice(name="👀 Lightweight", value="lightweight"),
            app_commands.Choice(name="🔖 Balanced", value="balanced"),
            app_commands.Choice(name="📌 Complete", value="complete"),
        ],
        destination=[
            app_commands.Choice(name="📬 Direct message", value="dm"),
            app_commands.Choice(name="#️⃣ Channel", value="channel"),
        ],
    )
    async def slash_set_bookmark(
        interaction: discord.Interaction,
        emoji: str,
        mode: app_commands.Choice[str],
        color: str | None = None,
        reminder: str | None = None,
        keep_reminder_on_complete: bool | None = None,
        destination: app_commands.Choice[str] | None = None,
        channel: discord.TextChannel | None = None,
    ):
        reply = set_bookmark(
            store,
            str(interaction.user.id),
            emoji=emoji,
            mode=mode.value,
            color=color,
            reminder=reminder,
            keep_reminder_on_complete=keep_reminder_on_complete,
            destination=destination.value if destination else None,
            channel_id=str(channel.id) if channel else None,
        )
        await _reply(interaction, reply)

    @tree.command(name="remove-bookmark", description="Delete a saved emoji shortcut")
    @app_commands.describe(emoji="Emoji to remove from your saved shortcuts")
    async def slash_remove_bookmark(interaction: discord.Interaction, emoji: str):
        await _reply(
            interaction, remove_bookmark(store, str(interaction.user.id), emoji=emoji)
        )

    @tree.command(
        name="list-bookmarks",
        description="Show the emojis and modes currently configured for your bookmarks",
    )
    async def slash_list_bookmarks(interaction: discord.Interaction):
        await _reply(interaction, list_bookmarks(store, str(interaction.user.id)))

    @tree.command(
        name="bookmark-help", description="Show how to configure and use the bookmark bot"
    )
    async def slash_bookmark_help(interaction: discord.Interaction):
        await _reply(interaction, HELP_TEXT)

    @tree.error
    async def on_app_command_error(
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        original = getattr(error, "original", error)
        if isinstance(original, BookmarkError):
            await _reply(interaction, f"❌ Error: {original}")
            return
        log.error("command error", exc_info=error)
        await _reply(interaction, "❌ Error: something went wrong")

"""Entry point for bookmark-bot."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import TYPE_CHECKING

import discord

if TYPE_CHECKING:
    from bookmark_bot.bot import BookmarkBot

HELP = """\
bookmark-bot -- save Discord messages by reacting with an emoji

commands:
  bookmark-bot                   Run the Discord bot
  bookmark-bot reminders list    Show pending reminders from the registry file
  bookmark-bot help              Show this help message

environment:
  DISCORD_TOKEN                  Bot token (required)
  DISCORD_APP_ID                 Application ID (required)
  DISCORD_GUILD_ID               Register slash commands for one guild only
  BOOKMARK_STORE_PATH            Preference file (default ~/.bookmark-bot/bookmarks.json)
  BOOKMARK_REMINDER_STORE_PATH   Reminder file (default ~/.bookmark-bot/reminders.json)
  BOOKMARK_TIMEZONE              IANA zone for time-of-day reminders
  BOOKMARK_LOG_LEVEL             Logging level (default INFO)
"""

log = logging.getLogger(__name__)


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    if cmd == "reminders":
        from bookmark_bot.scheduling.reminder_cmd import run_reminder_command

        run_reminder_command(rest)
        return True
    print(f"unknown command: {cmd}\n\n{HELP}", file=sys.stderr)
    raise SystemExit(2)


async def _run(bot: BookmarkBot, token: str) -> None:
    """Run the bot until SIGINT/SIGTERM; close() stops the reminder timers."""
    loop = asyncio.get_running_loop()
    _background_tasks: set[asyncio.Task[None]] = set()

    def _on_signal(sig_name: str) -> None:
        log.info("received %s, shutting down", sig_name)
        task = loop.create_task(bot.close())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    loop.add_signal_handler(signal.SIGTERM, _on_signal, "SIGTERM")
    loop.add_signal_handler(signal.SIGINT, _on_signal, "SIGINT")

    try:
        await bot.start(token)
    except asyncio.CancelledError:
        pass  # Signal handler already closed the bot
    finally:
        if not bot.is_closed():
            await bot.close()


def main() -> None:
    if _dispatch_subcommand():
        return

    discord.utils.setup_logging(
        level=os.environ.get("BOOKMARK_LOG_LEVEL", "INFO").upper()  # type: ignore[arg-type]
    )

    from bookmark_bot.bot import BookmarkBot
    from bookmark_bot.config import load_config

    config = load_config()
    bot = BookmarkBot(config)
    asyncio.run(_run(bot, config.token))


if __name__ == "__main__":
    main()

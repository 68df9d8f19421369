"""CLI handler for `bookmark-bot reminders` subcommand."""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from bookmark_bot.config import TZ, reminder_store_path
from bookmark_bot.scheduling.reminders import ScheduledReminder, read_registry


def _fmt(r: ScheduledReminder, now: datetime) -> str:
    when = r.when.astimezone(TZ).strftime("%Y-%m-%d %H:%M")
    if r.when <= now:
        when += " (overdue)"
    done = "clears on Done" if r.remove_on_complete else "stays after Done"
    where = f"#{r.payload.channel_name}" if r.payload.channel_name else r.payload.channel_id
    return f"  {r.message_id}  {when:26s}  {where}  [{done}]"


def run_reminder_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="bookmark-bot reminders")
    sub = parser.add_subparsers(dest="action")

    list_p = sub.add_parser("list", help="Show pending reminders")
    list_p.add_argument(
        "--file", default=None, help="Registry file (default: configured path)"
    )

    args = parser.parse_args(argv)

    if args.action == "list":
        _handle_list(args.file)
    else:
        parser.print_help()
        sys.exit(1)


def _handle_list(file: str | None) -> None:
    path = Path(file) if file else reminder_store_path()
    reminders = read_registry(path)
    if not reminders:
        print("no pending reminders")
        return
    now = datetime.now(TZ)
    for r in sorted(reminders.values(), key=lambda r: r.when):
        print(_fmt(r, now))
        if r.payload.content_snippet:
            print(f"      {r.payload.content_snippet[:60]}")

"""User-configurable values loaded from environment variables."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path.home() / ".bookmark-bot"

_REQUIRED = ("DISCORD_TOKEN", "DISCORD_APP_ID")
_ZONEINFO_MARKER = "/zoneinfo/"


def _system_zone_name(
    name_file: Path = Path("/etc/timezone"),
    localtime: Path = Path("/etc/localtime"),
) -> str:
    """IANA name of the host zone, read from the name file or the localtime link."""
    if name_file.is_file():
        if name := name_file.read_text().strip():
            return name
    if localtime.is_symlink():
        _, sep, zone = str(localtime.resolve()).partition(_ZONEINFO_MARKER)
        if sep and zone:
            return zone
    return "UTC"


TZ: ZoneInfo = ZoneInfo(os.environ.get("BOOKMARK_TIMEZONE") or _system_zone_name())


@dataclass(frozen=True, slots=True)
class Config:
    token: str
    app_id: int
    guild_id: int | None
    store_path: Path
    reminder_store_path: Path


def store_path() -> Path:
    return Path(os.environ.get("BOOKMARK_STORE_PATH") or DATA_DIR / "bookmarks.json")


def reminder_store_path() -> Path:
    return Path(
        os.environ.get("BOOKMARK_REMINDER_STORE_PATH") or DATA_DIR / "reminders.json"
    )


def _int_env(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        print(f"{name} must be a numeric Discord ID, got {raw!r}", file=sys.stderr)
        raise SystemExit(1) from None


def load_config() -> Config:
    """Exits with a message on stderr when required variables are missing."""
    missing = [var for var in _REQUIRED if not os.environ.get(var)]
    if missing:
        print(f"Missing required env vars: {', '.join(missing)}", file=sys.stderr)
        print("Set them in .env or your environment.", file=sys.stderr)
        raise SystemExit(1)

    app_id = _int_env("DISCORD_APP_ID")
    assert app_id is not None
    return Config(
        token=os.environ["DISCORD_TOKEN"],
        app_id=app_id,
        guild_id=_int_env("DISCORD_GUILD_ID"),
        store_path=store_path(),
        reminder_store_path=reminder_store_path(),
    )

"""Emoji, colour and link helpers shared by commands and the reaction handler."""

import re

import discord

_SNIPPET_LIMIT = 200
_SPLIT_RE = re.compile(r"[,\s]+")


def split_emoji_input(raw: str) -> list[str]:
    """Split on commas, newlines and whitespace, dropping empties."""
    return [token for token in _SPLIT_RE.split(raw) if token]


def normalize_emoji(value: str) -> str:
    """``<:name:id>`` and ``<a:name:id>`` become ``name:id``; unicode is unchanged."""
    trimmed = value.strip()
    if trimmed.startswith("<") and trimmed.endswith(">"):
        parts = trimmed[1:-1].strip(":").split(":")
        if len(parts) == 2:
            return ":".join(parts)
        if len(parts) == 3:
            return ":".join(parts[1:])
    return trimmed


def emoji_key(emoji: discord.PartialEmoji) -> str:
    """Key a reaction the same way normalize_emoji keys typed input."""
    if emoji.id is not None:
        return f"{emoji.name}:{emoji.id}"
    return emoji.name or ""


def format_emoji_for_display(value: str) -> str:
    trimmed = value.strip()
    parts = trimmed.split(":")
    if len(parts) == 2 and parts[1].isdigit():
        return f"<:{parts[0]}:{parts[1]}>"
    return trimmed or value


def parse_color(value: str | None) -> int | None:
    """None when no colour was given; ValueError for anything but 6 hex digits."""
    if not value or not value.strip():
        return None
    cleaned = value.strip().lower().removeprefix("0x").removeprefix("#")
    if len(cleaned) != 6:
        raise ValueError("color must be a 6 digit hex code")
    try:
        return int(cleaned, 16)
    except ValueError:
        raise ValueError(f"invalid color value: {value}") from None


def jump_link(guild_id: int | str | None, channel_id: int | str, message_id: int | str) -> str:
    guild = guild_id if guild_id else "@me"
    return f"https://discord.com/channels/{guild}/{channel_id}/{message_id}"


def extract_snippet(content: str | None) -> str:
    trimmed = (content or "").strip()
    if len(trimmed) > _SNIPPET_LIMIT:
        return trimmed[:_SNIPPET_LIMIT].strip() + "…"
    return trimmed

"""Emoji-reaction bookmarks for Discord, with scheduled reminders."""

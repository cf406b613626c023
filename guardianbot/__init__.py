"""Discord bot that syncs member nicknames with linked Destiny 2 accounts."""

__version__ = "0.1.0"

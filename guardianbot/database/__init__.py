"""Database module for the bot."""

from .connection import DatabasePool, PoolConfig
from .models import Guild, User
from .repository import RecordNotFound, Repository

__all__ = ["DatabasePool", "PoolConfig", "Guild", "User", "RecordNotFound", "Repository"]

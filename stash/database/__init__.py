"""Local storage for Stash."""

from .manager import DatabaseManager
from .persistence import PersistenceLayer

__all__ = ["DatabaseManager", "PersistenceLayer"]

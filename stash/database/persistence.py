"""
Snapshot persistence for Stash.

Loads the application state from the local store, merging it with the built-in
defaults, and writes it back after every mutation. Storage problems are logged
and never propagate: the in-memory state stays authoritative for the session.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from ..config import config
from ..models import ApplicationState
from .manager import DatabaseManager


# Top-level keys of the stored snapshot
SNAPSHOT_KEYS = ("blocks", "channels", "activeChannelId")


class PersistenceLayer:
    """
    Reads and writes the state snapshot and the credential record.
    """

    def __init__(self, db: DatabaseManager, state_key: Optional[str] = None,
                 credential_key: Optional[str] = None):
        """
        Initialize the persistence layer.

        Args:
            db: A connected and initialized database manager
            state_key: Key of the snapshot record (defaults to config value)
            credential_key: Key of the credential record (defaults to config value)
        """
        self.db = db
        self.state_key = state_key or config.state_key
        self.credential_key = credential_key or config.credential_key

    def load(self) -> ApplicationState:
        """
        Load the stored state merged over the defaults.

        Present top-level fields replace the defaults wholesale; absent ones
        fall back. Missing or unreadable data yields the defaults.

        Returns:
            A fresh ApplicationState with the credential attached and no
            session markers
        """
        state = ApplicationState()

        raw = None
        try:
            raw = self.db.get_value(self.state_key)
        except Exception as e:
            logging.error(f"Failed to read stored state: {e}")

        if raw:
            try:
                parsed = json.loads(raw)
                if not isinstance(parsed, dict):
                    raise ValueError(f"stored snapshot is a {type(parsed).__name__}, not an object")

                merged = state.snapshot()
                merged.update({key: parsed[key] for key in SNAPSHOT_KEYS if key in parsed})
                state = ApplicationState.model_validate(merged)
                logging.info(f"Loaded {len(state.blocks)} blocks and {len(state.channels)} channels")

            except (ValueError, ValidationError) as e:
                logging.error(f"State load error, using defaults: {e}")
                state = ApplicationState()

        state.api_key = self.load_api_key()
        state.editing_block_id = None
        return state

    def save(self, state: ApplicationState) -> bool:
        """
        Write the snapshot, without the credential or session fields.

        Returns:
            True if the snapshot was written
        """
        try:
            self.db.set_value(self.state_key, json.dumps(state.snapshot()))
            return True
        except Exception as e:
            logging.error(f"Failed to persist state: {e}")
            return False

    def load_api_key(self) -> str:
        """Read the stored credential, or an empty string."""
        try:
            return self.db.get_value(self.credential_key, secret=True) or ""
        except Exception as e:
            logging.error(f"Failed to read stored credential: {e}")
            return ""

    def save_api_key(self, api_key: str) -> bool:
        """
        Store the credential apart from the snapshot.

        An empty key removes the record.
        """
        try:
            if api_key:
                self.db.set_value(self.credential_key, api_key, secret=True)
            else:
                self.db.delete_value(self.credential_key, secret=True)
            return True
        except Exception as e:
            logging.error(f"Failed to persist credential: {e}")
            return False

"""
Database manager for Stash.

This module handles the local durable store using DuckDB: a key-value table for
the state snapshot, a separate table for secrets, and a log of enrichment calls.
"""

import duckdb
import logging
from typing import List, Optional, Dict


class DatabaseManager:
    """
    Manages the DuckDB database backing a Stash session.
    """

    def __init__(self, db_path: str = "stash.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file (":memory:" for a throwaway store)
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def initialize_database(self):
        """
        Create all necessary tables if they don't exist.
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Credentials live apart from the snapshot table
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS secrets (
                key VARCHAR PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

        self.connection.execute("CREATE SEQUENCE IF NOT EXISTS call_id_seq;")
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS ai_agent_calls (
                call_id BIGINT PRIMARY KEY DEFAULT nextval('call_id_seq'),
                agent_name VARCHAR NOT NULL,
                user_prompt TEXT NOT NULL,
                model_name VARCHAR NOT NULL,
                raw_response TEXT NOT NULL,
                success BOOLEAN NOT NULL,
                error_message TEXT,
                execution_time_ms INTEGER,
                called_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def _table_for(self, secret: bool) -> str:
        return "secrets" if secret else "kv_store"

    def get_value(self, key: str, secret: bool = False) -> Optional[str]:
        """
        Read a stored value.

        Args:
            key: The record key
            secret: Read from the secrets table instead of the main store

        Returns:
            The stored string, or None if the key is absent
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        result = self.connection.execute(
            f"SELECT value FROM {self._table_for(secret)} WHERE key = ?",
            [key]
        ).fetchone()

        return result[0] if result else None

    def set_value(self, key: str, value: str, secret: bool = False) -> None:
        """
        Write a value, replacing any previous one under the same key.

        Args:
            key: The record key
            value: The string to store
            secret: Write to the secrets table instead of the main store
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        if secret:
            self.connection.execute(
                "INSERT OR REPLACE INTO secrets (key, value) VALUES (?, ?)",
                [key, value]
            )
        else:
            self.connection.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
                [key, value]
            )

    def delete_value(self, key: str, secret: bool = False) -> None:
        """Remove a key if present."""
        if not self.connection:
            raise RuntimeError("Database connection not established")

        self.connection.execute(
            f"DELETE FROM {self._table_for(secret)} WHERE key = ?",
            [key]
        )

    def log_ai_agent_call(
        self,
        agent_name: str,
        user_prompt: str,
        model_name: str,
        raw_response: str,
        success: bool = True,
        error_message: Optional[str] = None,
        execution_time_ms: Optional[int] = None
    ) -> Optional[int]:
        """
        Record an enrichment call for later inspection.

        Returns:
            The new call id
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        result = self.connection.execute("""
            INSERT INTO ai_agent_calls (
                agent_name, user_prompt, model_name, raw_response,
                success, error_message, execution_time_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING call_id
        """, [
            agent_name, user_prompt, model_name, raw_response,
            success, error_message, execution_time_ms
        ]).fetchone()
        return result[0] if result else None

    def get_ai_agent_calls(
        self,
        agent_name: Optional[str] = None,
        success_only: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """
        Retrieve recorded enrichment calls, newest first.

        Args:
            agent_name: Filter by agent name (optional)
            success_only: Only return successful calls
            limit: Limit number of results

        Returns:
            List of call records
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        query = """
            SELECT call_id, agent_name, user_prompt, model_name, raw_response,
                   success, error_message, execution_time_ms, called_at
            FROM ai_agent_calls
            WHERE 1=1
        """
        params = []

        if agent_name:
            query += " AND agent_name = ?"
            params.append(agent_name)

        if success_only:
            query += " AND success = true"

        query += " ORDER BY call_id DESC"

        if limit:
            query += f" LIMIT {int(limit)}"

        results = self.connection.execute(query, params).fetchall()

        return [
            {
                "call_id": row[0],
                "agent_name": row[1],
                "user_prompt": row[2],
                "model_name": row[3],
                "raw_response": row[4],
                "success": row[5],
                "error_message": row[6],
                "execution_time_ms": row[7],
                "called_at": row[8]
            }
            for row in results
        ]

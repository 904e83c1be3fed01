"""
SQLite persistence for players, shuffle tournaments, synthetic teams and matches.

Exposes generic relational operations (insert, update, delete, query) plus a
transaction scope. Calls made inside ``transaction()`` on the same thread share
one connection and commit or roll back together, so a multi-row write such as
round creation is never half-visible to readers.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Bound parameters per statement for id lists, well under SQLite's variable limit
MAX_QUERY_PARAMS = 500


SCHEMA = """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        avatar_url TEXT,
        current_elo INTEGER NOT NULL DEFAULT 3000,
        starting_elo INTEGER NOT NULL DEFAULT 3000,
        rating_mu REAL NOT NULL DEFAULT 25.0,
        rating_sigma REAL NOT NULL DEFAULT 8.333,
        match_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS shuffle_tournaments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'setup',
        map_sequence TEXT NOT NULL,
        team_size INTEGER NOT NULL DEFAULT 5,
        round_limit_type TEXT NOT NULL DEFAULT 'first_to_13',
        max_rounds INTEGER NOT NULL DEFAULT 24,
        overtime_mode TEXT NOT NULL DEFAULT 'enabled',
        rating_template_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        started_at TEXT,
        completed_at TEXT
    );

    CREATE TABLE IF NOT EXISTS shuffle_tournament_players (
        tournament_id INTEGER NOT NULL,
        player_id TEXT NOT NULL,
        registered_at TEXT NOT NULL,
        PRIMARY KEY (tournament_id, player_id),
        FOREIGN KEY (tournament_id) REFERENCES shuffle_tournaments(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS teams (
        tournament_id INTEGER NOT NULL,
        id TEXT NOT NULL,
        name TEXT NOT NULL,
        tag TEXT,
        players TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (tournament_id, id),
        FOREIGN KEY (tournament_id) REFERENCES shuffle_tournaments(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS matches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tournament_id INTEGER NOT NULL,
        slug TEXT NOT NULL,
        round INTEGER NOT NULL,
        match_number INTEGER NOT NULL,
        team1_id TEXT,
        team2_id TEXT,
        winner_id TEXT,
        config TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        current_map TEXT,
        created_at TEXT NOT NULL,
        completed_at TEXT,
        UNIQUE (tournament_id, slug),
        UNIQUE (tournament_id, round, match_number),
        FOREIGN KEY (tournament_id) REFERENCES shuffle_tournaments(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS player_match_stats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tournament_id INTEGER NOT NULL,
        player_id TEXT NOT NULL,
        match_slug TEXT NOT NULL,
        team TEXT NOT NULL,
        won_match INTEGER NOT NULL,
        adr REAL,
        kills INTEGER,
        deaths INTEGER,
        assists INTEGER,
        created_at TEXT NOT NULL,
        UNIQUE (tournament_id, match_slug, player_id),
        FOREIGN KEY (tournament_id) REFERENCES shuffle_tournaments(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS player_rating_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player_id TEXT NOT NULL,
        tournament_id INTEGER,
        match_slug TEXT NOT NULL,
        elo_before INTEGER NOT NULL,
        elo_after INTEGER NOT NULL,
        elo_change INTEGER NOT NULL,
        mu_before REAL NOT NULL,
        mu_after REAL NOT NULL,
        sigma_before REAL NOT NULL,
        sigma_after REAL NOT NULL,
        base_elo_after INTEGER,
        stat_adjustment INTEGER NOT NULL DEFAULT 0,
        template_id TEXT,
        match_result TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS rating_templates (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        enabled INTEGER NOT NULL DEFAULT 0,
        weights TEXT NOT NULL DEFAULT '{}',
        min_adjustment REAL,
        max_adjustment REAL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_players_name ON players(name);
    CREATE INDEX IF NOT EXISTS idx_registrations_tournament ON shuffle_tournament_players(tournament_id);
    CREATE INDEX IF NOT EXISTS idx_matches_tournament_round ON matches(tournament_id, round);
    CREATE INDEX IF NOT EXISTS idx_matches_status ON matches(status);
    CREATE INDEX IF NOT EXISTS idx_player_match_stats_player ON player_match_stats(player_id);
    CREATE INDEX IF NOT EXISTS idx_player_match_stats_match ON player_match_stats(match_slug);
    CREATE INDEX IF NOT EXISTS idx_rating_history_player ON player_rating_history(player_id);
"""


class Database:
    """
    Thin wrapper over a SQLite file.

    Each standalone call opens its own connection and commits on exit. Inside
    a ``transaction()`` block every call on the same thread reuses the block's
    connection; the block commits on success and rolls back on any exception.
    """

    def __init__(self, data_dir: str = "data", filename: str = "shuffle.db"):
        """
        Initialize the database.

        Args:
            data_dir: Base directory for data storage
            filename: SQLite file name inside data_dir
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / filename

        # Ensure directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._init_db()

    def _init_db(self):
        """Create tables and indexes if they do not exist."""
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @property
    def _active(self) -> Optional[sqlite3.Connection]:
        return getattr(self._local, "conn", None)

    @property
    def in_transaction(self) -> bool:
        """True while the current thread is inside a ``transaction()`` block."""
        return self._active is not None

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        active = self._active
        if active is not None:
            yield active
            return

        conn = self._open()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run a block of persistence calls atomically.

        Nested blocks join the outermost one; only the outermost block commits.
        """
        if self._active is not None:
            yield self
            return

        conn = self._open()
        self._local.conn = conn
        try:
            with conn:
                yield self
        except Exception:
            logger.warning("Transaction rolled back", exc_info=True)
            raise
        finally:
            self._local.conn = None
            conn.close()

    # ------------------------------------------------------------------
    # Generic operations
    # ------------------------------------------------------------------

    def insert(self, table: str, row: Dict[str, Any], or_ignore: bool = False) -> Optional[int]:
        """
        Insert a row.

        Returns:
            The new rowid, or None when ``or_ignore`` skipped a conflicting row
        """
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        verb = "INSERT OR IGNORE" if or_ignore else "INSERT"
        with self._connect() as conn:
            cursor = conn.execute(
                f"{verb} INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(row.values())
            )
            if cursor.rowcount == 0:
                return None
            return cursor.lastrowid

    def update(self, table: str, fields: Dict[str, Any], where: str, params: Iterable[Any] = ()) -> int:
        """Update rows matching ``where`` and return the affected row count."""
        assignments = ", ".join(f"{column} = ?" for column in fields)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE {where}",
                tuple(fields.values()) + tuple(params)
            )
            return cursor.rowcount

    def delete(self, table: str, where: str, params: Iterable[Any] = ()) -> int:
        """Delete rows matching ``where`` and return the affected row count."""
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE {where}", tuple(params))
            return cursor.rowcount

    def query(self, sql: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        """Run a SELECT and return all rows as dicts."""
        with self._connect() as conn:
            cursor = conn.execute(sql, tuple(params))
            return [dict(row) for row in cursor.fetchall()]

    def query_one(self, sql: str, params: Iterable[Any] = ()) -> Optional[Dict[str, Any]]:
        """Run a SELECT and return the first row as a dict, or None."""
        with self._connect() as conn:
            cursor = conn.execute(sql, tuple(params))
            row = cursor.fetchone()
            return dict(row) if row else None


def chunked(items: Sequence[Any], size: Optional[int] = None) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most ``size`` (default ``MAX_QUERY_PARAMS``) items."""
    size = size or MAX_QUERY_PARAMS
    for start in range(0, len(items), size):
        yield items[start:start + size]

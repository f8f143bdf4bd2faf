import sqlite3
from pathlib import Path

from xpbot.config import DB_PATH

_db_path = Path(DB_PATH)


def configure_database(path: str | Path) -> None:
    global _db_path
    _db_path = Path(path)


def database_path() -> Path:
    return _db_path


def _xp_add(current: str | None, delta: str | None) -> str:
    # Balances are TEXT so they never pass through SQLite's 64-bit integers.
    return str(int(current or "0") + int(delta or "0"))


def _xp_gte(current: str | None, amount: str | None) -> int:
    return 1 if int(current or "0") >= int(amount or "0") else 0


def get_connection() -> sqlite3.Connection:
    _db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(_db_path)
    conn.row_factory = sqlite3.Row
    conn.create_function("xp_add", 2, _xp_add, deterministic=True)
    conn.create_function("xp_gte", 2, _xp_gte, deterministic=True)
    return conn


def init_db() -> None:
    with get_connection() as conn:
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                xp TEXT NOT NULL DEFAULT '0',
                crates INTEGER NOT NULL DEFAULT 0,
                current_perk TEXT DEFAULT NULL
            );

            CREATE TABLE IF NOT EXISTS perks (
                name TEXT PRIMARY KEY,
                obtained INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        _ensure_users_columns(conn)


def _ensure_users_columns(conn: sqlite3.Connection) -> None:
    columns = {
        row["name"]
        for row in conn.execute("PRAGMA table_info(users);").fetchall()
    }
    if "crates" not in columns:
        conn.execute(
            "ALTER TABLE users ADD COLUMN crates INTEGER NOT NULL DEFAULT 0;"
        )
    if "current_perk" not in columns:
        conn.execute(
            "ALTER TABLE users ADD COLUMN current_perk TEXT DEFAULT NULL;"
        )

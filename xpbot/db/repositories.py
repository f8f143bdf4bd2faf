from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from xpbot.db.database import database_path, get_connection


def _uid(user_id: str | int) -> str:
    return str(user_id)


def _user_row(row: sqlite3.Row) -> dict:
    item = dict(row)
    item["xp"] = int(item.get("xp") or "0")
    item["crates"] = int(item.get("crates") or 0)
    return item


def get_user(user_id: str | int) -> dict | None:
    with get_connection() as conn:
        row = conn.execute(
            """
            SELECT id, xp, crates, current_perk
            FROM users
            WHERE id = ?
            """,
            (_uid(user_id),),
        ).fetchone()
        return None if row is None else _user_row(row)


def ensure_user(user_id: str | int) -> dict:
    with get_connection() as conn:
        conn.execute(
            """
            INSERT OR IGNORE INTO users (id, xp, crates, current_perk)
            VALUES (?, '0', 0, NULL)
            """,
            (_uid(user_id),),
        )
        row = conn.execute(
            """
            SELECT id, xp, crates, current_perk
            FROM users
            WHERE id = ?
            """,
            (_uid(user_id),),
        ).fetchone()
        return _user_row(row)


def get_user_xp(user_id: str | int) -> int:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT xp FROM users WHERE id = ?",
            (_uid(user_id),),
        ).fetchone()
        return 0 if row is None else int(row["xp"] or "0")


def add_user_xp(user_id: str | int, delta: int) -> bool:
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE users
            SET xp = xp_add(xp, ?)
            WHERE id = ?
            """,
            (str(int(delta)), _uid(user_id)),
        )
        return cur.rowcount > 0


def debit_user_xp_if_sufficient(user_id: str | int, amount: int) -> bool:
    """
    Subtract `amount` only when the stored balance covers it.
    Check and write are one statement, so no other writer can land in between.
    """
    amount = int(amount)
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE users
            SET xp = xp_add(xp, ?)
            WHERE id = ? AND xp_gte(xp, ?) = 1
            """,
            (str(-amount), _uid(user_id), str(amount)),
        )
        return cur.rowcount > 0


def add_user_crates(user_id: str | int, delta: int) -> bool:
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE users
            SET crates = crates + ?
            WHERE id = ?
            """,
            (int(delta), _uid(user_id)),
        )
        return cur.rowcount > 0


def take_user_crate(user_id: str | int) -> bool:
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE users
            SET crates = crates - 1
            WHERE id = ? AND crates >= 1
            """,
            (_uid(user_id),),
        )
        return cur.rowcount > 0


def purchase_crates(user_id: str | int, quantity: int, total_cost: int) -> bool:
    """
    Debit `total_cost` and add `quantity` crates in one transaction.
    Returns False without touching anything when the balance is too low.
    """
    total_cost = int(total_cost)
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE users
            SET xp = xp_add(xp, ?)
            WHERE id = ? AND xp_gte(xp, ?) = 1
            """,
            (str(-total_cost), _uid(user_id), str(total_cost)),
        )
        if cur.rowcount == 0:
            return False
        conn.execute(
            """
            UPDATE users
            SET crates = crates + ?
            WHERE id = ?
            """,
            (int(quantity), _uid(user_id)),
        )
        return True


def set_current_perk(user_id: str | int, perk_name: str | None) -> None:
    with get_connection() as conn:
        conn.execute(
            """
            UPDATE users
            SET current_perk = ?
            WHERE id = ?
            """,
            (perk_name, _uid(user_id)),
        )


def get_top_users_by_xp(limit: int = 10) -> list[dict]:
    # Canonical decimal strings: longer means larger, equal length compares lexically.
    with get_connection() as conn:
        rows = conn.execute(
            """
            SELECT id, xp, crates, current_perk
            FROM users
            ORDER BY length(xp) DESC, xp DESC, id ASC
            LIMIT ?
            """,
            (max(1, int(limit)),),
        ).fetchall()
        return [_user_row(row) for row in rows]


def seed_perk_stats(perk_names: list[str]) -> None:
    with get_connection() as conn:
        for name in perk_names:
            conn.execute(
                "INSERT OR IGNORE INTO perks (name, obtained) VALUES (?, 0)",
                (name,),
            )


def increment_perk_obtained(perk_name: str) -> None:
    with get_connection() as conn:
        cur = conn.execute(
            """
            UPDATE perks
            SET obtained = obtained + 1
            WHERE name = ?
            """,
            (perk_name,),
        )
        if cur.rowcount == 0:
            conn.execute(
                "INSERT INTO perks (name, obtained) VALUES (?, 1)",
                (perk_name,),
            )


def get_perk_stats(limit: int | None = None) -> list[dict]:
    query = """
        SELECT name, obtained
        FROM perks
        ORDER BY obtained DESC, name ASC
    """
    params: list[object] = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(max(1, int(limit)))
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]


def get_state_value(key: str) -> str | None:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT value FROM settings WHERE key = ?",
            (key,),
        ).fetchone()
        return None if row is None else row["value"]


def set_state_value(key: str, value: str) -> None:
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )


def reset_all_boards() -> int:
    with get_connection() as conn:
        cur = conn.execute("DELETE FROM users")
        deleted = int(cur.rowcount)
        conn.execute("UPDATE perks SET obtained = 0")
        return deleted


def create_database_backup(
    *,
    prefix: str = "xpbot",
) -> str:
    db_path = database_path()
    backup_dir = db_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    backup_path = backup_dir / f"{prefix}_{stamp}.db"

    with get_connection() as source_conn, sqlite3.connect(backup_path) as backup_conn:
        source_conn.backup(backup_conn)

    return str(backup_path)

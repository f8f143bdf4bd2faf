from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from xpbot.config.settings import (
    CONFIRMATION_TTL,
    CRATE_COST,
    GIVE_XP_COOLDOWN,
    LEADERBOARD_INTERVAL,
    LEADERBOARD_SIZE,
    MAX_GIVE_XP_AMOUNT,
    XP_PER_MESSAGE,
)
from xpbot.db.database import get_connection


@dataclass(frozen=True)
class AppConfigSpec:
    default: Any
    cast: Callable[[str], Any]
    description: str


APP_CONFIG_SPECS: dict[str, AppConfigSpec] = {
    "XP_PER_MESSAGE": AppConfigSpec(
        default=int(XP_PER_MESSAGE),
        cast=int,
        description="XP credited for every guild message.",
    ),
    "CRATE_COST": AppConfigSpec(
        default=int(CRATE_COST),
        cast=int,
        description="XP price of one perk crate.",
    ),
    "GIVE_XP_COOLDOWN": AppConfigSpec(
        default=int(GIVE_XP_COOLDOWN),
        cast=int,
        description="Seconds a giver waits between /givexp grants.",
    ),
    "MAX_GIVE_XP_AMOUNT": AppConfigSpec(
        default=int(MAX_GIVE_XP_AMOUNT),
        cast=int,
        description="Largest amount a single /givexp may grant.",
    ),
    "LEADERBOARD_INTERVAL": AppConfigSpec(
        default=int(LEADERBOARD_INTERVAL),
        cast=int,
        description="Seconds between live leaderboard refreshes.",
    ),
    "LEADERBOARD_SIZE": AppConfigSpec(
        default=int(LEADERBOARD_SIZE),
        cast=int,
        description="Rows shown on the XP and perk boards.",
    ),
    "CONFIRMATION_TTL": AppConfigSpec(
        default=int(CONFIRMATION_TTL),
        cast=int,
        description="Seconds a confirm button stays valid; 0 disables expiry.",
    ),
}


def _state_key(name: str) -> str:
    return f"config:{name}"


def _normalize(name: str, value: Any) -> Any:
    if name == "XP_PER_MESSAGE":
        return max(0, int(value))
    if name == "CRATE_COST":
        return max(1, int(value))
    if name == "GIVE_XP_COOLDOWN":
        return max(0, int(value))
    if name == "MAX_GIVE_XP_AMOUNT":
        return max(1, int(value))
    if name == "LEADERBOARD_INTERVAL":
        return max(10, int(value))
    if name == "LEADERBOARD_SIZE":
        return max(1, min(25, int(value)))
    if name == "CONFIRMATION_TTL":
        return max(0, int(value))
    return value


def ensure_app_config_defaults() -> None:
    with get_connection() as conn:
        for name, spec in APP_CONFIG_SPECS.items():
            conn.execute(
                """
                INSERT OR IGNORE INTO settings (key, value)
                VALUES (?, ?)
                """,
                (_state_key(name), str(_normalize(name, spec.default))),
            )


def get_app_config(name: str) -> Any:
    spec = APP_CONFIG_SPECS.get(name)
    if spec is None:
        raise KeyError(f"Unknown app config: {name}")
    with get_connection() as conn:
        row = conn.execute(
            "SELECT value FROM settings WHERE key = ?",
            (_state_key(name),),
        ).fetchone()
    if row is None:
        return _normalize(name, spec.default)
    raw = str(row["value"])
    try:
        parsed = spec.cast(raw)
    except (TypeError, ValueError):
        parsed = spec.default
    return _normalize(name, parsed)


def set_app_config(name: str, value: Any) -> Any:
    spec = APP_CONFIG_SPECS.get(name)
    if spec is None:
        raise KeyError(f"Unknown app config: {name}")
    normalized = _normalize(name, spec.cast(str(value)))
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (_state_key(name), str(normalized)),
        )
    return normalized


def get_all_app_configs() -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for name, spec in APP_CONFIG_SPECS.items():
        rows.append(
            {
                "name": name,
                "value": get_app_config(name),
                "default": _normalize(name, spec.default),
                "type": spec.cast.__name__,
                "description": spec.description,
            }
        )
    return rows

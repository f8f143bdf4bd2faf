from xpbot.config.settings import (
    CONFIRMATION_TTL,
    CRATE_COST,
    DB_PATH,
    GIVE_XP_COOLDOWN,
    HEALTH_PORT,
    LEADERBOARD_CHANNEL_ID,
    LEADERBOARD_INTERVAL,
    LEADERBOARD_SIZE,
    MAX_GIVE_XP_AMOUNT,
    SHOUTOUT_ROLE_ID,
    VIEW_STOCK_ROLE_ID,
    XP_PER_MESSAGE,
    read_token,
)

__all__ = [
    "CONFIRMATION_TTL",
    "CRATE_COST",
    "DB_PATH",
    "GIVE_XP_COOLDOWN",
    "HEALTH_PORT",
    "LEADERBOARD_CHANNEL_ID",
    "LEADERBOARD_INTERVAL",
    "LEADERBOARD_SIZE",
    "MAX_GIVE_XP_AMOUNT",
    "SHOUTOUT_ROLE_ID",
    "VIEW_STOCK_ROLE_ID",
    "XP_PER_MESSAGE",
    "read_token",
]

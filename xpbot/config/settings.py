import os
from pathlib import Path


_ROOT = Path(__file__).resolve().parents[2]
_TOKEN_PATH = _ROOT / "TOKEN"


def _env_int(name: str, default: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def read_token() -> str:
    token = os.environ.get("DISCORD_BOT_TOKEN", "").strip()
    if token:
        return token
    if _TOKEN_PATH.exists():
        return _TOKEN_PATH.read_text(encoding="utf-8").strip()
    return ""


DB_PATH = Path(os.environ.get("XPBOT_DB_PATH", "") or (_ROOT / "data" / "xp.sqlite"))

# DISCORD IDS
LEADERBOARD_CHANNEL_ID = _env_int("LEADERBOARD_CHANNEL_ID")   # Channel holding the live XP leaderboard
VIEW_STOCK_ROLE_ID = _env_int("VIEW_STOCK_ROLE_ID")           # Role granted by the "View Stock (Role)" perk
SHOUTOUT_ROLE_ID = _env_int("SHOUTOUT_ROLE_ID")               # Role granted by the "Shoutout (Role)" perk
HEALTH_PORT = _env_int("PORT", 3000)                          # Port for the health-check web server

# APP CONFIGS
XP_PER_MESSAGE = 100                        # XP credited for every guild message
CRATE_COST = 10_000                         # XP price of one perk crate
GIVE_XP_COOLDOWN = 120                      # Seconds between /givexp grants per giver
MAX_GIVE_XP_AMOUNT = 1_000_000_000          # Largest single /givexp amount
LEADERBOARD_INTERVAL = 60                   # Seconds between live leaderboard refreshes
LEADERBOARD_STARTUP_DELAY = 5               # Seconds to wait after ready before the first refresh
LEADERBOARD_SIZE = 10                       # Rows shown on the XP and perk boards
CONFIRMATION_TTL = 900                      # Seconds a confirm button stays valid; 0 = never expires

from xpbot.db.database import configure_database, get_connection, init_db
from xpbot.db.repositories import (
    add_user_crates,
    add_user_xp,
    create_database_backup,
    debit_user_xp_if_sufficient,
    ensure_user,
    get_perk_stats,
    get_state_value,
    get_top_users_by_xp,
    get_user,
    get_user_xp,
    increment_perk_obtained,
    purchase_crates,
    reset_all_boards,
    seed_perk_stats,
    set_current_perk,
    set_state_value,
    take_user_crate,
)

__all__ = [
    "add_user_crates",
    "add_user_xp",
    "configure_database",
    "create_database_backup",
    "debit_user_xp_if_sufficient",
    "ensure_user",
    "get_connection",
    "get_perk_stats",
    "get_state_value",
    "get_top_users_by_xp",
    "get_user",
    "get_user_xp",
    "increment_perk_obtained",
    "init_db",
    "purchase_crates",
    "reset_all_boards",
    "seed_perk_stats",
    "set_current_perk",
    "set_state_value",
    "take_user_crate",
]

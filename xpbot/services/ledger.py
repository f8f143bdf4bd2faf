from __future__ import annotations

from dataclasses import dataclass

from xpbot.config.runtime import get_app_config
from xpbot.db import (
    add_user_crates,
    add_user_xp,
    debit_user_xp_if_sufficient,
    ensure_user,
    get_user_xp,
)


@dataclass(frozen=True)
class Account:
    user_id: str
    balance: int
    crates: int
    equipped_perk: str | None


def _account(row: dict) -> Account:
    return Account(
        user_id=str(row["id"]),
        balance=int(row["xp"]),
        crates=int(row["crates"]),
        equipped_perk=row.get("current_perk"),
    )


def _positive(amount: int) -> int:
    value = int(amount)
    if value <= 0:
        raise ValueError(f"Amount must be a positive integer, got {amount!r}")
    return value


def format_xp(value: int) -> str:
    return f"{int(value):,}"


def ensure_account(user_id: str | int) -> Account:
    return _account(ensure_user(user_id))


def get_balance(user_id: str | int) -> int:
    return get_user_xp(user_id)


def credit(user_id: str | int, amount: int) -> None:
    if not add_user_xp(user_id, _positive(amount)):
        raise LookupError(f"No account for user {user_id}; call ensure_account first.")


def debit(user_id: str | int, amount: int) -> None:
    # Unchecked: callers validate the balance first or use try_debit.
    if not add_user_xp(user_id, -_positive(amount)):
        raise LookupError(f"No account for user {user_id}; call ensure_account first.")


def try_debit(user_id: str | int, amount: int) -> bool:
    return debit_user_xp_if_sufficient(user_id, _positive(amount))


def set_crates(user_id: str | int, delta: int) -> None:
    if not add_user_crates(user_id, int(delta)):
        raise LookupError(f"No account for user {user_id}; call ensure_account first.")


def award_message_xp(user_id: str | int) -> int:
    amount = int(get_app_config("XP_PER_MESSAGE"))
    ensure_user(user_id)
    if amount > 0:
        add_user_xp(user_id, amount)
    return amount

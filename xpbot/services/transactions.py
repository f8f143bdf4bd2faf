from __future__ import annotations

import time
from dataclasses import dataclass, field

from xpbot.config.runtime import get_app_config
from xpbot.core.perk_catalog import Perk, PerkCatalog, RandomSource
from xpbot.db import create_database_backup, purchase_crates, reset_all_boards, take_user_crate
from xpbot.services.cooldowns import GrantCooldowns, format_remaining
from xpbot.services.ledger import Account, credit, ensure_account, format_xp
from xpbot.services.perks import draw_perk

TOKEN_PREFIX = "xpbot"

KIND_BUY = "buy"
KIND_GRANT = "grant"
KIND_RESET = "reset"

INSUFFICIENT_FUNDS = "insufficient_funds"
INSUFFICIENT_INVENTORY = "insufficient_inventory"
COOLDOWN_ACTIVE = "cooldown_active"
STALE_CONFIRMATION = "stale_confirmation"
UNKNOWN_REFERENCE = "unknown_reference"
EXPIRED = "expired"
INVALID_AMOUNT = "invalid_amount"


@dataclass(frozen=True)
class PendingTransaction:
    kind: str
    actor_id: str
    issued_at: int
    amount: int = 0
    target_id: str | None = None
    cost: int = 0

    def encode(self) -> str:
        if self.kind == KIND_BUY:
            parts = [self.actor_id, str(self.amount), str(self.cost)]
        elif self.kind == KIND_GRANT:
            parts = [self.actor_id, str(self.target_id), str(self.amount)]
        elif self.kind == KIND_RESET:
            parts = [self.actor_id]
        else:
            raise ValueError(f"Unknown transaction kind: {self.kind}")
        return ":".join([TOKEN_PREFIX, self.kind, *parts, str(self.issued_at)])

    def cancel_token(self) -> str:
        return CancelToken(self.kind, self.actor_id).encode()


@dataclass(frozen=True)
class CancelToken:
    kind: str
    actor_id: str

    def encode(self) -> str:
        return f"{TOKEN_PREFIX}:cancel:{self.kind}:{self.actor_id}"


@dataclass(frozen=True)
class PerkChoice:
    actor_id: str
    slug: str | None = None

    @property
    def keep(self) -> bool:
        return self.slug is None

    def encode(self) -> str:
        if self.slug is None:
            return f"{TOKEN_PREFIX}:keep:{self.actor_id}"
        return f"{TOKEN_PREFIX}:equip:{self.actor_id}:{self.slug}"


Token = PendingTransaction | CancelToken | PerkChoice


def _digits(*values: str) -> bool:
    return all(value.isdigit() for value in values)


def decode_token(custom_id: str | None) -> Token | None:
    parts = str(custom_id or "").split(":")
    if len(parts) < 3 or parts[0] != TOKEN_PREFIX:
        return None
    kind, args = parts[1], parts[2:]
    if kind == KIND_BUY and len(args) == 4 and _digits(*args):
        actor, quantity, cost, issued = args
        return PendingTransaction(KIND_BUY, actor, int(issued), amount=int(quantity), cost=int(cost))
    if kind == KIND_GRANT and len(args) == 4 and _digits(*args):
        actor, target, amount, issued = args
        return PendingTransaction(KIND_GRANT, actor, int(issued), amount=int(amount), target_id=target)
    if kind == KIND_RESET and len(args) == 2 and _digits(*args):
        actor, issued = args
        return PendingTransaction(KIND_RESET, actor, int(issued))
    if kind == "cancel" and len(args) == 2 and args[0] in {KIND_BUY, KIND_GRANT, KIND_RESET}:
        return CancelToken(args[0], args[1])
    if kind == "equip" and len(args) == 2 and args[1]:
        return PerkChoice(args[0], args[1])
    if kind == "keep" and len(args) == 1:
        return PerkChoice(args[0])
    return None


@dataclass
class Outcome:
    ok: bool
    message: str
    reason: str | None = None
    pending: PendingTransaction | None = None
    account: Account | None = None
    perk: Perk | None = None
    warnings: list[str] = field(default_factory=list)


def _now(now: float | None) -> int:
    # An explicit `now` is also handed to the grant cooldowns; None lets each fall back to its own clock.
    return int(now) if now is not None else int(time.time())


def _expired(pending: PendingTransaction, now: float | None) -> Outcome | None:
    ttl = int(get_app_config("CONFIRMATION_TTL"))
    if ttl <= 0:
        return None
    if _now(now) - pending.issued_at > ttl:
        return Outcome(
            ok=False,
            reason=EXPIRED,
            message="❌ This confirmation has expired. Please run the command again.",
        )
    return None


def unknown_reference(what: str) -> Outcome:
    return Outcome(ok=False, reason=UNKNOWN_REFERENCE, message=f"❌ Error: Could not find {what}.")


def propose_buy(actor_id: str | int, quantity: int, now: float | None = None) -> Outcome:
    if int(quantity) < 1:
        return Outcome(ok=False, reason=INVALID_AMOUNT, message="❌ You must buy at least 1 crate.")
    account = ensure_account(actor_id)
    cost = int(quantity) * int(get_app_config("CRATE_COST"))
    if account.balance < cost:
        return Outcome(
            ok=False,
            reason=INSUFFICIENT_FUNDS,
            account=account,
            message=(
                f"❌ You need **{format_xp(cost)} XP** to buy {quantity} crate(s), "
                f"but you only have **{format_xp(account.balance)} XP**!"
            ),
        )
    pending = PendingTransaction(KIND_BUY, str(actor_id), _now(now), amount=int(quantity), cost=cost)
    return Outcome(
        ok=True,
        pending=pending,
        account=account,
        message=(
            f"⚠️ **Confirmation Required:** Do you want to spend **{format_xp(cost)} XP** "
            f"to buy **{quantity}** Perk Crate(s)?"
        ),
    )


def confirm_buy(pending: PendingTransaction, now: float | None = None) -> Outcome:
    expired = _expired(pending, now)
    if expired is not None:
        return expired
    ensure_account(pending.actor_id)
    current_cost = pending.amount * int(get_app_config("CRATE_COST"))
    if pending.amount < 1 or current_cost != pending.cost:
        return Outcome(
            ok=False,
            reason=STALE_CONFIRMATION,
            message="❌ Transaction failed: the crate price changed. Please run `/buycrate` again.",
        )
    if not purchase_crates(pending.actor_id, pending.amount, pending.cost):
        return Outcome(
            ok=False,
            reason=STALE_CONFIRMATION,
            message="❌ Transaction failed: You no longer have enough XP!",
        )
    account = ensure_account(pending.actor_id)
    return Outcome(
        ok=True,
        account=account,
        message=(
            f"✅ Purchase Complete! You spent **{format_xp(pending.cost)} XP** and received "
            f"**{pending.amount}** Crate(s).\n"
            f"Your new XP: **{format_xp(account.balance)}** | Total Crates: **{account.crates}**\n\n"
            "Use `/opencrate` to open them!"
        ),
    )


def _check_grant_amount(amount: int) -> Outcome | None:
    max_amount = int(get_app_config("MAX_GIVE_XP_AMOUNT"))
    if int(amount) <= 0:
        return Outcome(ok=False, reason=INVALID_AMOUNT, message="❌ You must give a positive amount of XP.")
    if int(amount) > max_amount:
        return Outcome(
            ok=False,
            reason=INVALID_AMOUNT,
            message=f"❌ The maximum XP you can give at once is **{format_xp(max_amount)}**.",
        )
    return None


def propose_grant(
    actor_id: str | int,
    target_id: str | int,
    amount: int,
    cooldowns: GrantCooldowns,
    now: float | None = None,
) -> Outcome:
    if str(actor_id) == str(target_id):
        return Outcome(ok=False, reason=INVALID_AMOUNT, message="❌ You cannot give XP to yourself.")
    invalid = _check_grant_amount(amount)
    if invalid is not None:
        return invalid
    status = cooldowns.check(actor_id, now)
    if not status.ok:
        return Outcome(
            ok=False,
            reason=COOLDOWN_ACTIVE,
            message=(
                f"⏳ You are on cooldown! Wait **{format_remaining(status.remaining)}** "
                "before giving XP again."
            ),
        )
    pending = PendingTransaction(
        KIND_GRANT,
        str(actor_id),
        _now(now),
        amount=int(amount),
        target_id=str(target_id),
    )
    return Outcome(
        ok=True,
        pending=pending,
        message=(
            f"⚠️ **Confirmation Required:** Are you sure you want to give **{format_xp(amount)} XP** "
            f"to <@{target_id}>? This will start your {format_remaining(cooldowns.window)} cooldown."
        ),
    )


def confirm_grant(
    pending: PendingTransaction,
    cooldowns: GrantCooldowns,
    now: float | None = None,
) -> Outcome:
    expired = _expired(pending, now)
    if expired is not None:
        return expired
    if pending.target_id is None or pending.target_id == pending.actor_id:
        return unknown_reference("recipient user")
    invalid = _check_grant_amount(pending.amount)
    if invalid is not None:
        return invalid
    status = cooldowns.check(pending.actor_id, now)
    if not status.ok:
        return Outcome(
            ok=False,
            reason=STALE_CONFIRMATION,
            message="❌ Transaction failed: You are still on cooldown!",
        )
    ensure_account(pending.target_id)
    credit(pending.target_id, pending.amount)
    cooldowns.commit(pending.actor_id, now)
    recipient = ensure_account(pending.target_id)
    return Outcome(
        ok=True,
        account=recipient,
        message=(
            f"🎉 **Success!** You gave **{format_xp(pending.amount)} XP** to <@{pending.target_id}>. "
            f"They now have **{format_xp(recipient.balance)} XP**."
        ),
    )


def propose_reset(actor_id: str | int, now: float | None = None) -> Outcome:
    return Outcome(
        ok=True,
        pending=PendingTransaction(KIND_RESET, str(actor_id), _now(now)),
        message=(
            "🛑 **DANGER ZONE: ARE YOU SURE?** This action will permanently delete ALL user XP data "
            "and reset ALL perk counts. This is irreversible."
        ),
    )


def confirm_reset(pending: PendingTransaction, now: float | None = None) -> Outcome:
    expired = _expired(pending, now)
    if expired is not None:
        return expired
    try:
        backup_path = create_database_backup(prefix="before_reset")
        print(f"[reset] backup written to {backup_path}")
    except Exception as exc:
        print(f"[reset] failed to create backup before reset: {exc}")
    deleted = reset_all_boards()
    print(f"[reset] user={pending.actor_id} wiped {deleted} account(s) and zeroed perk counts")
    return Outcome(
        ok=True,
        message="✅ **SUCCESS:** All user XP and crate data has been wiped, and the Perk Board has been reset.",
    )


CANCEL_MESSAGES = {
    KIND_BUY: "✅ Purchase cancelled.",
    KIND_GRANT: "✅ XP transfer cancelled.",
    KIND_RESET: "✅ Reset cancelled. Data is safe.",
}


def cancel(token: CancelToken) -> Outcome:
    return Outcome(ok=True, message=CANCEL_MESSAGES.get(token.kind, "✅ Cancelled."))


def open_crate(
    actor_id: str | int,
    catalog: PerkCatalog,
    rng: RandomSource | None = None,
) -> Outcome:
    ensure_account(actor_id)
    if not take_user_crate(actor_id):
        return Outcome(
            ok=False,
            reason=INSUFFICIENT_INVENTORY,
            message="❌ You don't have any unopened crates! Buy one using `/buycrate`.",
        )
    perk = draw_perk(catalog, rng)
    account = ensure_account(actor_id)
    return Outcome(
        ok=True,
        perk=perk,
        account=account,
        message=f"✨ Crate Opened! You received: {perk.name}",
    )


def resolve_perk_choice(choice: PerkChoice, catalog: PerkCatalog) -> Perk | None:
    if choice.slug is None:
        return None
    return catalog.by_slug(choice.slug)

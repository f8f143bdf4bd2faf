from __future__ import annotations

import sqlite3

import discord
from discord import ButtonStyle, Interaction
from discord.ui import Button, View

from xpbot.config.settings import LEADERBOARD_CHANNEL_ID
from xpbot.core.perk_catalog import Perk
from xpbot.services.economy import Economy
from xpbot.services.leaderboard import publish_xp_leaderboard
from xpbot.services.perks import MemberRoleGateway
from xpbot.services.transactions import (
    KIND_BUY,
    KIND_GRANT,
    KIND_RESET,
    CancelToken,
    Outcome,
    PendingTransaction,
    PerkChoice,
    cancel,
    confirm_buy,
    confirm_grant,
    confirm_reset,
    decode_token,
    resolve_perk_choice,
    unknown_reference,
)

GENERIC_FAILURE = "❌ Something went wrong while updating your data. Nothing was changed."
SERVER_ONLY_MESSAGE = "Please use this command in a server."

# Buttons keep working after the view times out; the custom_id carries the state.
_VIEW_TIMEOUT = 600


def confirmation_view(
    pending: PendingTransaction,
    *,
    confirm_label: str,
    confirm_style: ButtonStyle = ButtonStyle.success,
) -> View:
    view = View(timeout=_VIEW_TIMEOUT)
    view.add_item(Button(label=confirm_label, style=confirm_style, custom_id=pending.encode()))
    view.add_item(Button(label="Cancel", style=ButtonStyle.secondary, custom_id=pending.cancel_token()))
    return view


def perk_choice_view(actor_id: int, perk: Perk, *, first_time: bool) -> View:
    view = View(timeout=_VIEW_TIMEOUT)
    view.add_item(
        Button(
            label=f"Equip {perk.name}",
            style=ButtonStyle.success,
            custom_id=PerkChoice(str(actor_id), perk.slug).encode(),
        )
    )
    view.add_item(
        Button(
            label="Skip Perk" if first_time else "Keep Old Perk",
            style=ButtonStyle.secondary,
            custom_id=PerkChoice(str(actor_id)).encode(),
        )
    )
    return view


async def _resolve_member(interaction: Interaction) -> discord.Member | None:
    if isinstance(interaction.user, discord.Member):
        return interaction.user
    if interaction.guild is None:
        return None
    try:
        return await interaction.guild.fetch_member(interaction.user.id)
    except (discord.NotFound, discord.Forbidden, discord.HTTPException):
        return None


async def _recipient_exists(client: discord.Client, user_id: str) -> bool:
    if client.get_user(int(user_id)) is not None:
        return True
    try:
        await client.fetch_user(int(user_id))
    except (discord.NotFound, discord.HTTPException):
        return False
    return True


async def _handle_perk_choice(interaction: Interaction, choice: PerkChoice, economy: Economy) -> Outcome:
    if choice.keep:
        return Outcome(
            ok=True,
            message=(
                "✅ Okay! You kept your current equipped perk/skipped equipping the new one. "
                "The opened crate has been consumed."
            ),
        )
    perk = resolve_perk_choice(choice, economy.catalog)
    if perk is None:
        return unknown_reference("that perk. Please try opening a new crate")
    member = await _resolve_member(interaction)
    if member is None:
        return unknown_reference("your server membership")
    change = await economy.perk_machine.equip(member.id, perk.name, MemberRoleGateway(member))
    message = f"✨ **Perk Equipped!** You are now using: **{perk.name}**."
    if change.previous:
        message += f"\nYour previous perk (**{change.previous}**) and any associated role/boost has been removed."
    for warning in change.warnings:
        message += f"\n⚠️ {warning}"
    return Outcome(ok=True, message=message, perk=perk, warnings=change.warnings)


async def _handle_pending(interaction: Interaction, pending: PendingTransaction, economy: Economy) -> Outcome:
    if pending.kind == KIND_BUY:
        return confirm_buy(pending)
    if pending.kind == KIND_GRANT:
        if pending.target_id is None or not await _recipient_exists(interaction.client, pending.target_id):
            return unknown_reference("recipient user")
        return confirm_grant(pending, economy.cooldowns)
    if pending.kind == KIND_RESET:
        if not interaction.permissions.administrator:
            return Outcome(ok=False, message="❌ Only administrators can reset the boards.")
        return confirm_reset(pending)
    return unknown_reference("that transaction")


async def handle_component_interaction(interaction: Interaction, economy: Economy) -> bool:
    """Route a button click carrying one of our tokens. Returns False for foreign components."""
    if interaction.type != discord.InteractionType.component:
        return False
    custom_id = (interaction.data or {}).get("custom_id", "")
    token = decode_token(custom_id)
    if token is None:
        return False

    if str(interaction.user.id) != token.actor_id:
        await interaction.response.send_message("This button belongs to someone else.", ephemeral=True)
        return True

    await interaction.response.defer()
    try:
        if isinstance(token, CancelToken):
            outcome = cancel(token)
        elif isinstance(token, PerkChoice):
            outcome = await _handle_perk_choice(interaction, token, economy)
        else:
            outcome = await _handle_pending(interaction, token, economy)
    except sqlite3.Error as exc:
        print(f"[interaction] ledger error custom_id={custom_id} user={interaction.user.id}: {exc}")
        outcome = Outcome(ok=False, message=GENERIC_FAILURE)

    await interaction.edit_original_response(content=outcome.message, embed=None, view=None)

    if outcome.ok and isinstance(token, PendingTransaction) and token.kind == KIND_RESET and LEADERBOARD_CHANNEL_ID:
        try:
            await publish_xp_leaderboard(interaction.client, LEADERBOARD_CHANNEL_ID)
        except Exception as exc:
            print(f"[leaderboard] refresh after reset failed: {exc}")
    return True

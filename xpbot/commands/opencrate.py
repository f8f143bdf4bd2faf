import sqlite3

from discord import Embed, Interaction, app_commands

from xpbot.commands.confirmations import GENERIC_FAILURE, SERVER_ONLY_MESSAGE, perk_choice_view
from xpbot.services.economy import Economy
from xpbot.services.transactions import open_crate


def setup_opencrate(tree: app_commands.CommandTree, economy: Economy) -> None:
    @tree.command(name="opencrate", description="Open one of your perk crates and choose whether to equip the perk.")
    async def opencrate(interaction: Interaction) -> None:
        if interaction.guild is None:
            await interaction.response.send_message(SERVER_ONLY_MESSAGE, ephemeral=True)
            return
        try:
            outcome = open_crate(interaction.user.id, economy.catalog, economy.rng)
        except sqlite3.Error as exc:
            print(f"[ledger] opencrate failed user={interaction.user.id}: {exc}")
            await interaction.response.send_message(GENERIC_FAILURE, ephemeral=True)
            return

        if not outcome.ok or outcome.perk is None or outcome.account is None:
            await interaction.response.send_message(outcome.message, ephemeral=True)
            return

        perk = outcome.perk
        current = outcome.account.equipped_perk
        first_time = not current
        if first_time:
            note = '**INFO:** Since you have no active perk, choosing "Skip Perk" will just keep you perk-less.'
        else:
            note = (
                "**WARNING:** Equipping this new perk will **unequip** your current one, "
                "and remove any associated role/boost."
            )
        embed = Embed(
            title=f"✨ Crate Opened! You received: {perk.name}",
            description=(
                f"You have opened one crate. You have **{outcome.account.crates}** remaining.\n\n"
                f"New perk: **{perk.name}** ({perk.describe()}).\n"
                f"Your current equipped perk is: **{current or 'None'}**.\n\n"
                f"{note}"
            ),
            color=0xFFD700,
        )
        embed.set_footer(text="Choose wisely! The perk will be equipped immediately upon confirmation.")
        await interaction.response.send_message(
            embed=embed,
            view=perk_choice_view(interaction.user.id, perk, first_time=first_time),
            ephemeral=True,
        )

import sqlite3

from discord import Interaction, app_commands

from xpbot.commands.confirmations import GENERIC_FAILURE, SERVER_ONLY_MESSAGE, confirmation_view
from xpbot.services.ledger import format_xp
from xpbot.services.transactions import propose_buy


def setup_buycrate(tree: app_commands.CommandTree) -> None:
    @tree.command(name="buycrate", description="Buy perk crates with your XP.")
    @app_commands.describe(amount="The number of crates to purchase (min 1).")
    async def buycrate(
        interaction: Interaction,
        amount: app_commands.Range[int, 1, 1000],
    ) -> None:
        if interaction.guild is None:
            await interaction.response.send_message(SERVER_ONLY_MESSAGE, ephemeral=True)
            return
        try:
            outcome = propose_buy(interaction.user.id, amount)
        except sqlite3.Error as exc:
            print(f"[ledger] buycrate proposal failed user={interaction.user.id}: {exc}")
            await interaction.response.send_message(GENERIC_FAILURE, ephemeral=True)
            return

        if not outcome.ok or outcome.pending is None:
            await interaction.response.send_message(outcome.message, ephemeral=True)
            return

        await interaction.response.send_message(
            outcome.message,
            view=confirmation_view(
                outcome.pending,
                confirm_label=f"Confirm Purchase for {format_xp(outcome.pending.cost)} XP",
            ),
            ephemeral=True,
        )

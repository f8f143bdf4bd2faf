import sqlite3

from discord import ButtonStyle, Interaction, User, app_commands

from xpbot.commands.confirmations import GENERIC_FAILURE, SERVER_ONLY_MESSAGE, confirmation_view
from xpbot.services.economy import Economy
from xpbot.services.ledger import format_xp
from xpbot.services.transactions import propose_grant


def setup_givexp(tree: app_commands.CommandTree, economy: Economy) -> None:
    @tree.command(name="givexp", description="Give XP to another user (cooldown applies).")
    @app_commands.describe(
        user="The user to give XP to.",
        amount="The amount of XP to give.",
    )
    async def givexp(
        interaction: Interaction,
        user: User,
        amount: app_commands.Range[int, 1],
    ) -> None:
        if interaction.guild is None:
            await interaction.response.send_message(SERVER_ONLY_MESSAGE, ephemeral=True)
            return
        if user.bot:
            await interaction.response.send_message("❌ You cannot give XP to bots.", ephemeral=True)
            return
        try:
            outcome = propose_grant(interaction.user.id, user.id, amount, economy.cooldowns)
        except sqlite3.Error as exc:
            print(f"[ledger] givexp proposal failed user={interaction.user.id}: {exc}")
            await interaction.response.send_message(GENERIC_FAILURE, ephemeral=True)
            return

        if not outcome.ok or outcome.pending is None:
            await interaction.response.send_message(outcome.message, ephemeral=True)
            return

        await interaction.response.send_message(
            outcome.message,
            view=confirmation_view(
                outcome.pending,
                confirm_label=f"Confirm Give {format_xp(amount)} XP",
                confirm_style=ButtonStyle.danger,
            ),
            ephemeral=True,
        )

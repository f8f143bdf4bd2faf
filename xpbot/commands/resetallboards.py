from discord import ButtonStyle, Interaction, app_commands

from xpbot.commands.confirmations import confirmation_view
from xpbot.services.transactions import propose_reset


def setup_resetallboards(tree: app_commands.CommandTree) -> None:
    @tree.command(name="resetallboards", description="ADMIN: Resets all user XP, crate, and perk board data.")
    @app_commands.checks.has_permissions(administrator=True)
    async def resetallboards(interaction: Interaction) -> None:
        outcome = propose_reset(interaction.user.id)
        await interaction.response.send_message(
            outcome.message,
            view=confirmation_view(
                outcome.pending,
                confirm_label="CONFIRM: Reset All Data",
                confirm_style=ButtonStyle.danger,
            ),
            ephemeral=True,
        )

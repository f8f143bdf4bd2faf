import sqlite3

from discord import Embed, Interaction, app_commands

from xpbot.commands.confirmations import GENERIC_FAILURE
from xpbot.config.runtime import get_app_config
from xpbot.services.ledger import ensure_account, format_xp


def setup_myinfo(tree: app_commands.CommandTree) -> None:
    @tree.command(name="myinfo", description="Shows your current XP, crates, and equipped perk.")
    async def myinfo(interaction: Interaction) -> None:
        try:
            account = ensure_account(interaction.user.id)
            crate_cost = int(get_app_config("CRATE_COST"))
        except sqlite3.Error as exc:
            print(f"[ledger] myinfo failed user={interaction.user.id}: {exc}")
            await interaction.response.send_message(GENERIC_FAILURE, ephemeral=True)
            return

        xp_needed = crate_cost - (account.balance % crate_cost)
        embed = Embed(
            title=f"👤 {interaction.user.display_name}'s Status",
            description=(
                f"**Current XP:** {format_xp(account.balance)} XP\n"
                f"**Unopened Crates:** {account.crates:,} 📦\n"
                f"**Equipped Perk:** {account.equipped_perk or 'None'} 💎"
            ),
            color=0x57F287,
        )
        embed.add_field(
            name="Next Crate Progress",
            value=f"You need **{format_xp(xp_needed)} XP** to buy your next crate.",
            inline=True,
        )
        embed.set_footer(text=f"Perk Crate Cost: {format_xp(crate_cost)} XP | Use /opencrate to open.")
        await interaction.response.send_message(embed=embed, ephemeral=True)

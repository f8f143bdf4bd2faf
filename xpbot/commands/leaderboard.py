from discord import Interaction, app_commands

from xpbot.config.settings import LEADERBOARD_CHANNEL_ID
from xpbot.services.leaderboard import publish_xp_leaderboard, top_perks
from xpbot.services.leaderboard_images import build_perk_leaderboard_image


def setup_leaderboard(tree: app_commands.CommandTree) -> None:
    @tree.command(name="leaderboard", description="Manually updates the live XP leaderboard.")
    async def leaderboard(interaction: Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        published = await publish_xp_leaderboard(interaction.client, LEADERBOARD_CHANNEL_ID)
        if not published:
            await interaction.followup.send(
                "The leaderboard was not updated (no XP data yet, or the channel is unavailable).",
                ephemeral=True,
            )
            return
        await interaction.followup.send(
            f"✅ The **XP Leaderboard** has been manually triggered to update in <#{LEADERBOARD_CHANNEL_ID}>!",
            ephemeral=True,
        )


def setup_perkboard(tree: app_commands.CommandTree) -> None:
    @tree.command(name="perkboard", description="Shows the perk leaderboard.")
    async def perkboard(interaction: Interaction) -> None:
        await interaction.response.defer(thinking=True)
        rows = top_perks()
        if not rows:
            await interaction.followup.send("No perks have been obtained yet!")
            return
        await interaction.followup.send(
            "💎 **Perk Board (Most Obtained Perks)** 💎",
            file=build_perk_leaderboard_image(rows),
        )

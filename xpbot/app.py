import asyncio
import sys

import discord
from aiohttp import web
from discord import app_commands

from xpbot.commands import setup_commands
from xpbot.commands.confirmations import GENERIC_FAILURE, handle_component_interaction
from xpbot.config.runtime import ensure_app_config_defaults, get_app_config
from xpbot.config.settings import (
    HEALTH_PORT,
    LEADERBOARD_CHANNEL_ID,
    LEADERBOARD_STARTUP_DELAY,
    SHOUTOUT_ROLE_ID,
    VIEW_STOCK_ROLE_ID,
    read_token,
)
from xpbot.db import init_db
from xpbot.services.economy import Economy, build_economy
from xpbot.services.health import start_health_server
from xpbot.services.leaderboard import publish_xp_leaderboard
from xpbot.services.ledger import award_message_xp


class XPBot(discord.Client):
    def __init__(self, economy: Economy) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(intents=intents)
        self.tree = discord.app_commands.CommandTree(self)
        self.economy = economy
        self._synced = False
        self._leaderboard_task: asyncio.Task | None = None
        self._health_runner: web.AppRunner | None = None

    async def setup_hook(self) -> None:
        setup_commands(self.tree, self.economy)
        self.tree.error(self._on_app_command_error)
        try:
            self._health_runner = await start_health_server(HEALTH_PORT)
        except OSError as exc:
            print(f"[health] could not bind port {HEALTH_PORT}: {exc}")

    async def on_ready(self) -> None:
        if self._synced:
            return
        await self.tree.sync()
        self._synced = True
        print(f"Bot is online! Logged in as {self.user}")
        if self._leaderboard_task is None:
            self._leaderboard_task = asyncio.create_task(self._leaderboard_loop())

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or not message.content or message.guild is None:
            return
        try:
            award_message_xp(message.author.id)
        except Exception as exc:
            print(f"[ledger] failed to award message XP user={message.author.id}: {exc}")

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        try:
            await handle_component_interaction(interaction, self.economy)
        except Exception as exc:
            print(f"[interaction] handler error user={interaction.user.id}: {exc}")

    async def _on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        if isinstance(error, app_commands.MissingPermissions):
            message = "❌ You don't have permission to use this command."
        else:
            command = getattr(interaction.command, "name", "unknown")
            print(f"[commands] /{command} failed user={interaction.user.id}: {error}")
            message = GENERIC_FAILURE
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as exc:
            print(f"[commands] could not report error to user={interaction.user.id}: {exc}")

    async def _leaderboard_loop(self) -> None:
        await asyncio.sleep(LEADERBOARD_STARTUP_DELAY)
        interval = int(get_app_config("LEADERBOARD_INTERVAL"))
        print(f"[leaderboard] automatic updates started, interval {interval}s")
        while not self.is_closed():
            try:
                await publish_xp_leaderboard(self, LEADERBOARD_CHANNEL_ID)
            except Exception as exc:
                print(f"[leaderboard] update loop error: {exc}")
            await asyncio.sleep(int(get_app_config("LEADERBOARD_INTERVAL")))

    async def close(self) -> None:
        if self._leaderboard_task is not None:
            self._leaderboard_task.cancel()
        if self._health_runner is not None:
            await self._health_runner.cleanup()
        await super().close()


def run() -> None:
    token = read_token()
    if not token or not LEADERBOARD_CHANNEL_ID or not VIEW_STOCK_ROLE_ID or not SHOUTOUT_ROLE_ID:
        print(
            "FATAL ERROR: Missing one or more required settings "
            "(DISCORD_BOT_TOKEN, LEADERBOARD_CHANNEL_ID, VIEW_STOCK_ROLE_ID, SHOUTOUT_ROLE_ID)."
        )
        sys.exit(1)
    init_db()
    ensure_app_config_defaults()
    bot = XPBot(build_economy())
    bot.run(token)

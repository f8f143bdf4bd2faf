from discord import Embed, Interaction, app_commands

from xpbot.config.runtime import APP_CONFIG_SPECS, get_all_app_configs, get_app_config, set_app_config


def setup_botconfig(tree: app_commands.CommandTree) -> None:
    @tree.command(name="botconfig", description="ADMIN: show or change runtime settings.")
    @app_commands.checks.has_permissions(administrator=True)
    @app_commands.describe(
        name="Setting to show or change. Leave empty to list all.",
        value="New value. Leave empty to show the current one.",
    )
    @app_commands.choices(
        name=[app_commands.Choice(name=key, value=key) for key in APP_CONFIG_SPECS]
    )
    async def botconfig(
        interaction: Interaction,
        name: str | None = None,
        value: str | None = None,
    ) -> None:
        if name is None:
            embed = Embed(title="Runtime Settings")
            for row in get_all_app_configs():
                embed.add_field(
                    name=row["name"],
                    value=f"`{row['value']}` (default `{row['default']}`)\n{row['description']}",
                    inline=False,
                )
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        if value is None:
            await interaction.response.send_message(
                f"`{name}` = `{get_app_config(name)}`",
                ephemeral=True,
            )
            return

        try:
            updated = set_app_config(name, value.strip())
        except (TypeError, ValueError):
            await interaction.response.send_message(
                f"Invalid value for `{name}`: `{value}`.",
                ephemeral=True,
            )
            return
        print(f"[config] {name} set to {updated} by user={interaction.user.id}")
        await interaction.response.send_message(f"Updated `{name}` to `{updated}`.", ephemeral=True)

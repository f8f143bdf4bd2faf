from __future__ import annotations

import discord

from xpbot.config.runtime import get_app_config
from xpbot.db import get_perk_stats, get_state_value, get_top_users_by_xp, set_state_value
from xpbot.services.leaderboard_images import build_xp_leaderboard_image

LEADERBOARD_MESSAGE_KEY = "leaderboard_message_id"
LEADERBOARD_CONTENT = "📈 **LIVE XP LEADERBOARD** 📈\n\n"


def top_balances(limit: int | None = None) -> list[tuple[str, int]]:
    size = int(limit) if limit is not None else int(get_app_config("LEADERBOARD_SIZE"))
    return [(str(row["id"]), int(row["xp"])) for row in get_top_users_by_xp(size)]


def top_perks(limit: int | None = None) -> list[tuple[str, int]]:
    size = int(limit) if limit is not None else int(get_app_config("LEADERBOARD_SIZE"))
    return [(str(row["name"]), int(row["obtained"])) for row in get_perk_stats(size)]


def get_leaderboard_message_id() -> int | None:
    raw = get_state_value(LEADERBOARD_MESSAGE_KEY)
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


def set_leaderboard_message_id(message_id: int) -> None:
    set_state_value(LEADERBOARD_MESSAGE_KEY, str(message_id))


async def _fetch_avatar(user: discord.abc.User) -> bytes | None:
    # Default avatars are skipped; only custom ones are drawn.
    if user.avatar is None:
        return None
    try:
        return await user.avatar.replace(format="png", size=128).read()
    except (discord.NotFound, discord.HTTPException, ValueError) as exc:
        print(f"[leaderboard] failed to load avatar for {user.name}: {exc}")
        return None


async def resolve_profiles(
    client: discord.Client,
    user_ids: list[str],
) -> dict[str, tuple[str, bytes | None]]:
    profiles: dict[str, tuple[str, bytes | None]] = {}
    for user_id in user_ids:
        user = client.get_user(int(user_id))
        if user is None:
            try:
                user = await client.fetch_user(int(user_id))
            except (discord.NotFound, discord.HTTPException):
                user = None
        if user is None:
            profiles[user_id] = (f"User ID: {user_id}", None)
        else:
            profiles[user_id] = (user.name, await _fetch_avatar(user))
    return profiles


async def publish_xp_leaderboard(client: discord.Client, channel_id: int) -> bool:
    channel = client.get_channel(channel_id)
    if channel is None:
        try:
            channel = await client.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            channel = None
    if not isinstance(channel, (discord.TextChannel, discord.Thread)):
        print(f"[leaderboard] channel {channel_id} is missing or not a text channel")
        return False

    rows = top_balances()
    if not rows:
        print("[leaderboard] skipping update: no XP data to display")
        return False

    profiles = await resolve_profiles(client, [user_id for user_id, _ in rows])
    board_rows = [(profiles[user_id][0], xp) for user_id, xp in rows]
    avatars = [profiles[user_id][1] for user_id, _ in rows]
    image = build_xp_leaderboard_image(board_rows, avatars)

    last_message_id = get_leaderboard_message_id()
    if last_message_id is not None:
        try:
            message = await channel.fetch_message(last_message_id)
            await message.edit(content=LEADERBOARD_CONTENT, attachments=[image], embeds=[], view=None)
            return True
        except (discord.NotFound, discord.Forbidden, discord.HTTPException) as exc:
            print(f"[leaderboard] could not edit message {last_message_id} ({exc}); sending a new one")
            image = build_xp_leaderboard_image(board_rows, avatars)

    message = await channel.send(content=LEADERBOARD_CONTENT, file=image)
    set_leaderboard_message_id(message.id)
    print(f"[leaderboard] sent leaderboard message {message.id}")
    return True

import tempfile
import unittest
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
from matplotlib import pyplot as plt

from xpbot.config.runtime import set_app_config
from xpbot.db import configure_database, increment_perk_obtained, init_db, seed_perk_stats
from xpbot.db.database import database_path
from xpbot.services.leaderboard import (
    get_leaderboard_message_id,
    resolve_profiles,
    set_leaderboard_message_id,
    top_balances,
    top_perks,
)
from xpbot.services.leaderboard_images import build_perk_leaderboard_image, build_xp_leaderboard_image
from xpbot.services.ledger import credit, ensure_account


class LeaderboardTests(unittest.TestCase):
    def setUp(self) -> None:
        self._previous_path = database_path()
        self._tmp = tempfile.TemporaryDirectory()
        configure_database(Path(self._tmp.name) / "board.sqlite")
        init_db()

    def tearDown(self) -> None:
        configure_database(self._previous_path)
        self._tmp.cleanup()

    def test_top_balances_uses_configured_size_and_tiebreak(self) -> None:
        set_app_config("LEADERBOARD_SIZE", 2)
        for user_id, amount in (("30", 5), ("10", 5), ("20", 7)):
            ensure_account(user_id)
            credit(user_id, amount)
        self.assertEqual(top_balances(), [("20", 7), ("10", 5)])
        self.assertEqual(len(top_balances(limit=10)), 3)

    def test_top_perks_lists_undrawn_entries_last(self) -> None:
        self.assertEqual(top_perks(), [])
        seed_perk_stats(["A", "B", "C"])
        increment_perk_obtained("B")
        increment_perk_obtained("B")
        increment_perk_obtained("C")
        self.assertEqual(top_perks(), [("B", 2), ("C", 1), ("A", 0)])

    def test_message_pointer_survives_round_trip(self) -> None:
        self.assertIsNone(get_leaderboard_message_id())
        set_leaderboard_message_id(1234567890123)
        self.assertEqual(get_leaderboard_message_id(), 1234567890123)


def _png_bytes() -> bytes:
    fig = plt.figure(figsize=(0.5, 0.5))
    buf = BytesIO()
    fig.savefig(buf, format="png")
    plt.close(fig)
    return buf.getvalue()


class FakeAsset:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.requested: dict = {}

    def replace(self, **kwargs) -> "FakeAsset":
        self.requested = kwargs
        return self

    async def read(self) -> bytes:
        return self.data


class LeaderboardImageTests(unittest.TestCase):
    def test_xp_board_draws_avatars_and_skips_bad_ones(self) -> None:
        image = build_xp_leaderboard_image(
            [("alice", 10**30), ("bob", 5), ("carol", 1)],
            [_png_bytes(), b"not an image", None],
        )
        self.assertEqual(image.filename, "xp-leaderboard.png")
        self.assertTrue(image.fp.read().startswith(b"\x89PNG"))

    def test_perk_board_renders_zero_rows(self) -> None:
        image = build_perk_leaderboard_image([("Gold XP Boost", 3), ("Shoutout (Role)", 0)])
        self.assertTrue(image.fp.read().startswith(b"\x89PNG"))


class ResolveProfilesTests(unittest.IsolatedAsyncioTestCase):
    async def test_names_and_custom_avatars(self) -> None:
        custom = FakeAsset(b"png-bytes")
        users = {
            1: SimpleNamespace(name="alice", avatar=custom),
            2: SimpleNamespace(name="bob", avatar=None),
        }
        client = SimpleNamespace(
            get_user=lambda user_id: users.get(user_id),
            fetch_user=AsyncMock(
                side_effect=discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown User")
            ),
        )
        profiles = await resolve_profiles(client, ["1", "2", "3"])
        self.assertEqual(profiles["1"], ("alice", b"png-bytes"))
        self.assertEqual(custom.requested, {"format": "png", "size": 128})
        self.assertEqual(profiles["2"], ("bob", None))
        self.assertEqual(profiles["3"], ("User ID: 3", None))


if __name__ == "__main__":
    unittest.main()

import unittest

from xpbot.services.cooldowns import GrantCooldowns, format_remaining


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class GrantCooldownTests(unittest.TestCase):
    def test_window_scenario(self) -> None:
        clock = FakeClock()
        cooldowns = GrantCooldowns(120, clock=clock)

        self.assertTrue(cooldowns.check("giver").ok)
        cooldowns.commit("giver")

        clock.now = 119
        status = cooldowns.check("giver")
        self.assertFalse(status.ok)
        self.assertAlmostEqual(status.remaining, 1.0)

        clock.now = 121
        self.assertTrue(cooldowns.check("giver").ok)

    def test_check_does_not_reserve(self) -> None:
        cooldowns = GrantCooldowns(120, clock=FakeClock())
        for _ in range(3):
            self.assertTrue(cooldowns.check("giver").ok)

    def test_actors_are_independent(self) -> None:
        cooldowns = GrantCooldowns(60, clock=FakeClock())
        cooldowns.commit("a")
        self.assertFalse(cooldowns.check("a").ok)
        self.assertTrue(cooldowns.check("b").ok)

    def test_window_can_follow_live_config(self) -> None:
        window = {"seconds": 60}
        clock = FakeClock()
        cooldowns = GrantCooldowns(lambda: window["seconds"], clock=clock)
        cooldowns.commit(7)
        clock.now = 30
        self.assertFalse(cooldowns.check("7").ok)
        window["seconds"] = 10
        self.assertTrue(cooldowns.check("7").ok)

    def test_clear_forgets_everything(self) -> None:
        cooldowns = GrantCooldowns(60, clock=FakeClock())
        cooldowns.commit("a")
        cooldowns.clear()
        self.assertTrue(cooldowns.check("a").ok)

    def test_format_remaining(self) -> None:
        self.assertEqual(format_remaining(0.4), "0m 0s")
        self.assertEqual(format_remaining(119.9), "1m 59s")
        self.assertEqual(format_remaining(3725), "1h 2m 5s")


if __name__ == "__main__":
    unittest.main()

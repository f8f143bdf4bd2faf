import asyncio
import gc
import tempfile
import unittest
from pathlib import Path

from xpbot.core.perk_catalog import build_default_catalog
from xpbot.db import configure_database, init_db, set_current_perk
from xpbot.db.database import database_path
from xpbot.services.ledger import ensure_account
from xpbot.services.perks import PerkStateMachine

VIEW_STOCK = 111
SHOUTOUT = 222


class FakeRoles:
    def __init__(self, *, fail_add: bool = False, fail_remove: bool = False) -> None:
        self.held: set[int] = set()
        self.calls: list[tuple[str, int]] = []
        self.fail_add = fail_add
        self.fail_remove = fail_remove

    async def has_role(self, role_id: int) -> bool:
        return role_id in self.held

    async def add_role(self, role_id: int) -> None:
        self.calls.append(("add", role_id))
        if self.fail_add:
            raise RuntimeError("missing permissions")
        self.held.add(role_id)

    async def remove_role(self, role_id: int) -> None:
        self.calls.append(("remove", role_id))
        if self.fail_remove:
            raise RuntimeError("missing permissions")
        self.held.discard(role_id)


class YieldingRoles(FakeRoles):
    async def has_role(self, role_id: int) -> bool:
        await asyncio.sleep(0)
        return await super().has_role(role_id)

    async def add_role(self, role_id: int) -> None:
        await asyncio.sleep(0)
        await super().add_role(role_id)


class PerkStateMachineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._previous_path = database_path()
        self._tmp = tempfile.TemporaryDirectory()
        configure_database(Path(self._tmp.name) / "state.sqlite")
        init_db()
        self.machine = PerkStateMachine(build_default_catalog(VIEW_STOCK, SHOUTOUT))

    def tearDown(self) -> None:
        configure_database(self._previous_path)
        self._tmp.cleanup()

    async def test_equip_role_perk_grants_role(self) -> None:
        roles = FakeRoles()
        change = await self.machine.equip("u", "View Stock (Role)", roles)
        self.assertEqual(change.equipped, "View Stock (Role)")
        self.assertIsNone(change.previous)
        self.assertEqual(roles.held, {VIEW_STOCK})
        self.assertEqual(ensure_account("u").equipped_perk, "View Stock (Role)")

    async def test_switching_perks_removes_old_role_before_granting_new(self) -> None:
        roles = FakeRoles()
        await self.machine.equip("u", "View Stock (Role)", roles)
        change = await self.machine.equip("u", "Shoutout (Role)", roles)
        self.assertEqual(change.previous, "View Stock (Role)")
        self.assertEqual(
            roles.calls,
            [("add", VIEW_STOCK), ("remove", VIEW_STOCK), ("add", SHOUTOUT)],
        )
        self.assertEqual(roles.held, {SHOUTOUT})
        self.assertEqual(ensure_account("u").equipped_perk, "Shoutout (Role)")

    async def test_equip_records_perk_even_when_role_calls_fail(self) -> None:
        await self.machine.equip("u", "View Stock (Role)", FakeRoles())
        roles = FakeRoles(fail_add=True, fail_remove=True)
        roles.held.add(VIEW_STOCK)
        change = await self.machine.equip("u", "Shoutout (Role)", roles)
        self.assertEqual(roles.calls, [("remove", VIEW_STOCK), ("add", SHOUTOUT)])
        self.assertEqual(len(change.warnings), 2)
        self.assertEqual(ensure_account("u").equipped_perk, "Shoutout (Role)")

    async def test_unequip_is_idempotent(self) -> None:
        roles = FakeRoles()
        await self.machine.equip("u", "Shoutout (Role)", roles)
        first = await self.machine.unequip("u", roles)
        second = await self.machine.unequip("u", roles)
        self.assertEqual(first.previous, "Shoutout (Role)")
        self.assertIsNone(second.previous)
        self.assertEqual(roles.calls, [("add", SHOUTOUT), ("remove", SHOUTOUT)])
        self.assertIsNone(ensure_account("u").equipped_perk)

    async def test_unequip_skips_revert_when_role_already_gone(self) -> None:
        await self.machine.equip("u", "Shoutout (Role)", FakeRoles())
        roles = FakeRoles()
        change = await self.machine.unequip("u", roles)
        self.assertEqual(roles.calls, [])
        self.assertEqual(change.warnings, [])
        self.assertIsNone(ensure_account("u").equipped_perk)

    async def test_boost_perk_has_no_external_side_effect(self) -> None:
        roles = FakeRoles()
        await self.machine.equip("u", "Gold XP Boost", roles)
        await self.machine.equip("u", "Silver XP Boost", roles)
        self.assertEqual(roles.calls, [])
        self.assertEqual(ensure_account("u").equipped_perk, "Silver XP Boost")

    async def test_stale_stored_perk_is_cleared(self) -> None:
        ensure_account("u")
        set_current_perk("u", "Retired Perk")
        roles = FakeRoles()
        change = await self.machine.unequip("u", roles)
        self.assertEqual(change.previous, "Retired Perk")
        self.assertEqual(roles.calls, [])
        self.assertIsNone(ensure_account("u").equipped_perk)

    async def test_unknown_perk_name_raises(self) -> None:
        with self.assertRaises(KeyError):
            await self.machine.equip("u", "Diamond XP Boost", FakeRoles())

    async def test_concurrent_equips_leave_one_role(self) -> None:
        roles = YieldingRoles()
        await asyncio.gather(
            self.machine.equip("u", "View Stock (Role)", roles),
            self.machine.equip("u", "Shoutout (Role)", roles),
        )
        self.assertEqual(roles.held, {SHOUTOUT})
        self.assertEqual(ensure_account("u").equipped_perk, "Shoutout (Role)")

    async def test_user_lock_is_dropped_after_use(self) -> None:
        await self.machine.equip("u", "Gold XP Boost", FakeRoles())
        await self.machine.unequip("v", FakeRoles())
        gc.collect()
        self.assertEqual(len(self.machine._locks), 0)


if __name__ == "__main__":
    unittest.main()

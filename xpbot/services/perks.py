from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass, field
from typing import Protocol

import discord

from xpbot.core.perk_catalog import Perk, PerkCatalog, RandomSource, RoleGrant, XpBoost
from xpbot.db import ensure_user, increment_perk_obtained, set_current_perk


class RoleGateway(Protocol):
    async def has_role(self, role_id: int) -> bool: ...

    async def add_role(self, role_id: int) -> None: ...

    async def remove_role(self, role_id: int) -> None: ...


class MemberRoleGateway:
    """Applies perk roles to a guild member."""

    def __init__(self, member: discord.Member) -> None:
        self.member = member

    def _role(self, role_id: int) -> discord.abc.Snowflake:
        return self.member.guild.get_role(role_id) or discord.Object(id=role_id)

    async def has_role(self, role_id: int) -> bool:
        return self.member.get_role(role_id) is not None

    async def add_role(self, role_id: int) -> None:
        await self.member.add_roles(self._role(role_id), reason="Perk equipped")

    async def remove_role(self, role_id: int) -> None:
        await self.member.remove_roles(self._role(role_id), reason="Perk unequipped")


@dataclass
class PerkChange:
    previous: str | None
    equipped: str | None
    warnings: list[str] = field(default_factory=list)


def draw_perk(catalog: PerkCatalog, rng: RandomSource | None = None) -> Perk:
    """
    Draw one perk and count it.

    The counter tracks draws, not equips: it is bumped here even if the
    caller never equips the result.
    """
    perk = catalog.draw(rng)
    increment_perk_obtained(perk.name)
    return perk


class PerkStateMachine:
    def __init__(self, catalog: PerkCatalog) -> None:
        self.catalog = catalog
        # Entries vanish once no coroutine holds or waits on the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _apply_effect(self, perk: Perk, roles: RoleGateway, *, revert: bool) -> str | None:
        effect = perk.effect
        if isinstance(effect, XpBoost):
            return None
        if isinstance(effect, RoleGrant):
            action = "remove" if revert else "grant"
            try:
                if revert:
                    if await roles.has_role(effect.role_id):
                        await roles.remove_role(effect.role_id)
                else:
                    await roles.add_role(effect.role_id)
            except Exception as exc:
                print(f"[perks] failed to {action} role {effect.role_id} for perk {perk.name!r}: {exc}")
                return f"Could not {action} the role for **{perk.name}** ({exc.__class__.__name__})."
            return None
        raise TypeError(f"Unknown perk effect: {effect!r}")

    async def _unequip(self, user_id: str, roles: RoleGateway) -> PerkChange:
        current = ensure_user(user_id).get("current_perk")
        if not current:
            return PerkChange(previous=None, equipped=None)
        change = PerkChange(previous=current, equipped=None)
        perk = self.catalog.by_name(current)
        if perk is not None:
            warning = await self._apply_effect(perk, roles, revert=True)
            if warning:
                change.warnings.append(warning)
        set_current_perk(user_id, None)
        return change

    async def unequip(self, user_id: str | int, roles: RoleGateway) -> PerkChange:
        uid = str(user_id)
        async with self._lock(uid):
            return await self._unequip(uid, roles)

    async def equip(self, user_id: str | int, perk_name: str, roles: RoleGateway) -> PerkChange:
        perk = self.catalog.by_name(perk_name)
        if perk is None:
            raise KeyError(f"Unknown perk: {perk_name}")
        uid = str(user_id)
        async with self._lock(uid):
            removed = await self._unequip(uid, roles)
            set_current_perk(uid, perk.name)
            change = PerkChange(previous=removed.previous, equipped=perk.name, warnings=list(removed.warnings))
            warning = await self._apply_effect(perk, roles, revert=False)
            if warning:
                change.warnings.append(warning)
            return change

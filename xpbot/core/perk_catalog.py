from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class XpBoost:
    """Informational multiplier; stored with the perk, not applied to accrual."""

    multiplier: float


@dataclass(frozen=True)
class RoleGrant:
    role_id: int


PerkEffect = Union[XpBoost, RoleGrant]


@dataclass(frozen=True)
class Perk:
    slug: str
    name: str
    weight: float
    effect: PerkEffect

    @property
    def role_id(self) -> int | None:
        if isinstance(self.effect, RoleGrant):
            return self.effect.role_id
        return None

    def describe(self) -> str:
        if isinstance(self.effect, XpBoost):
            return f"+{self.effect.multiplier * 100:.0f}% XP boost"
        if isinstance(self.effect, RoleGrant):
            return f"grants <@&{self.effect.role_id}>"
        raise TypeError(f"Unknown perk effect: {self.effect!r}")


class RandomSource(Protocol):
    def random(self) -> float: ...


class PerkCatalog:
    def __init__(self, perks: list[Perk] | tuple[Perk, ...]) -> None:
        if not perks:
            raise ValueError("Perk catalog needs at least one perk.")
        names: set[str] = set()
        slugs: set[str] = set()
        for perk in perks:
            if perk.weight <= 0:
                raise ValueError(f"Perk {perk.name!r} must have a positive weight.")
            if perk.name in names:
                raise ValueError(f"Duplicate perk name: {perk.name!r}")
            if perk.slug in slugs:
                raise ValueError(f"Duplicate perk slug: {perk.slug!r}")
            if ":" in perk.slug:
                raise ValueError(f"Perk slug cannot contain ':': {perk.slug!r}")
            names.add(perk.name)
            slugs.add(perk.slug)
        self._perks = tuple(perks)
        self._by_name = {perk.name: perk for perk in self._perks}
        self._by_slug = {perk.slug: perk for perk in self._perks}
        self.total_weight = float(sum(perk.weight for perk in self._perks))

    def __iter__(self):
        return iter(self._perks)

    def __len__(self) -> int:
        return len(self._perks)

    @property
    def perks(self) -> tuple[Perk, ...]:
        return self._perks

    @property
    def names(self) -> list[str]:
        return [perk.name for perk in self._perks]

    def by_name(self, name: str | None) -> Perk | None:
        if name is None:
            return None
        return self._by_name.get(name)

    def by_slug(self, slug: str) -> Perk | None:
        return self._by_slug.get(slug)

    def pick(self, roll: float) -> Perk:
        # A roll exactly on a boundary belongs to the entry it enters.
        cumulative = 0.0
        for perk in self._perks:
            cumulative += perk.weight
            if roll < cumulative:
                return perk
        return self._perks[0]

    def draw(self, rng: RandomSource | None = None) -> Perk:
        source = rng if rng is not None else random
        return self.pick(source.random() * self.total_weight)


def build_default_catalog(view_stock_role_id: int, shoutout_role_id: int) -> PerkCatalog:
    return PerkCatalog(
        [
            Perk("silver_xp_boost", "Silver XP Boost", 50, XpBoost(0.05)),
            Perk("view_stock_role", "View Stock (Role)", 25, RoleGrant(int(view_stock_role_id))),
            Perk("gold_xp_boost", "Gold XP Boost", 12, XpBoost(0.10)),
            Perk("rainbow_xp_boost", "Rainbow XP Boost", 9, XpBoost(0.20)),
            Perk("shoutout_role", "Shoutout (Role)", 4, RoleGrant(int(shoutout_role_id))),
        ]
    )

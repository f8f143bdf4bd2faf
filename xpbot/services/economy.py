from __future__ import annotations

import random
from dataclasses import dataclass, field

from xpbot.config.runtime import get_app_config
from xpbot.config.settings import SHOUTOUT_ROLE_ID, VIEW_STOCK_ROLE_ID
from xpbot.core.perk_catalog import PerkCatalog, RandomSource, build_default_catalog
from xpbot.db import seed_perk_stats
from xpbot.services.cooldowns import GrantCooldowns
from xpbot.services.perks import PerkStateMachine


@dataclass
class Economy:
    """Process-wide collaborators shared by every command handler."""

    catalog: PerkCatalog
    cooldowns: GrantCooldowns
    perk_machine: PerkStateMachine
    rng: RandomSource = field(default_factory=random.Random)


def build_economy(catalog: PerkCatalog | None = None) -> Economy:
    catalog = catalog or build_default_catalog(VIEW_STOCK_ROLE_ID, SHOUTOUT_ROLE_ID)
    seed_perk_stats(catalog.names)
    return Economy(
        catalog=catalog,
        cooldowns=GrantCooldowns(lambda: int(get_app_config("GIVE_XP_COOLDOWN"))),
        perk_machine=PerkStateMachine(catalog),
    )

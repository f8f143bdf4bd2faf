from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class CooldownStatus:
    ok: bool
    remaining: float = 0.0


def format_remaining(seconds: float) -> str:
    sec = max(0, int(seconds))
    mm, ss = divmod(sec, 60)
    hh, mm = divmod(mm, 60)
    if hh > 0:
        return f"{hh}h {mm}m {ss}s"
    return f"{mm}m {ss}s"


class GrantCooldowns:
    """
    Per-giver cooldown for peer XP grants.

    Held in memory only; a restart clears every cooldown. `check` never
    mutates, `commit` is called once the grant has actually been applied.
    """

    def __init__(
        self,
        window_seconds: float | Callable[[], float],
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._last_grant: dict[str, float] = {}

    @property
    def window(self) -> float:
        if callable(self._window):
            return float(self._window())
        return float(self._window)

    def _now(self, now: float | None) -> float:
        return float(now) if now is not None else float(self._clock())

    def check(self, actor_id: str | int, now: float | None = None) -> CooldownStatus:
        last = self._last_grant.get(str(actor_id))
        if last is None:
            return CooldownStatus(ok=True)
        remaining = self.window - (self._now(now) - last)
        if remaining > 0:
            return CooldownStatus(ok=False, remaining=remaining)
        return CooldownStatus(ok=True)

    def commit(self, actor_id: str | int, now: float | None = None) -> None:
        self._last_grant[str(actor_id)] = self._now(now)

    def clear(self) -> None:
        self._last_grant.clear()

"""Loyalty tier and weekly streak computation.

Pure functions: no I/O and no exceptions. Bad input degrades to the base
tier or to a streak restart.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

TIER_THRESHOLDS = {
    "plata": 30,
    "oro": 100,
}

STREAK_WINDOW_DAYS = 7
STREAK_GRACE_DAYS = 14

# Stamps needed for a reward when the program does not set its own goal.
DEFAULT_PUNTOS_META = 10

_SECONDS_PER_DAY = 24 * 3600


class Tier(str, Enum):
    BRONCE = "bronce"
    PLATA = "plata"
    ORO = "oro"


_TIER_BADGES = {
    Tier.ORO: "\U0001F947",
    Tier.PLATA: "\U0001F948",
    Tier.BRONCE: "\U0001F949",
}


@dataclass(frozen=True)
class StreakResult:
    new_streak: int
    streak_updated: bool


@dataclass(frozen=True)
class LoyaltyState:
    """Customer counters as the engine sees them."""

    puntos_actuales: int = 0
    total_puntos_historicos: int = 0
    current_streak: int = 0
    last_visit_at: Optional[datetime] = None

    @property
    def tier(self) -> Tier:
        return calculate_tier(self.total_puntos_historicos)


@dataclass(frozen=True)
class VisitResult:
    state: LoyaltyState
    reached_goal: bool
    puntos_meta: int


def calculate_tier(total_points: int) -> Tier:
    """Tier from lifetime points; lower bounds are inclusive."""
    if not isinstance(total_points, (int, float)) or isinstance(total_points, bool):
        return Tier.BRONCE
    if total_points >= TIER_THRESHOLDS["oro"]:
        return Tier.ORO
    if total_points >= TIER_THRESHOLDS["plata"]:
        return Tier.PLATA
    return Tier.BRONCE


def get_tier_badge(tier: Union[Tier, str]) -> str:
    try:
        return _TIER_BADGES[Tier(tier)]
    except ValueError:
        return _TIER_BADGES[Tier.BRONCE]


def to_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_days(last_visit_at: datetime, now: datetime) -> int:
    """Whole-day gap, rounded up, between two instants."""
    seconds = abs((now - last_visit_at).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def process_streak(
    last_visit_at: Union[datetime, str, None],
    current_streak: int,
    now: Optional[datetime] = None,
) -> StreakResult:
    """Advance, keep or restart the weekly visit streak.

    Pass a precise instant for ``last_visit_at``; a date-only value shifts
    the day gap at the boundaries.
    """
    last_visit = to_utc(last_visit_at)
    if last_visit is None:
        return StreakResult(new_streak=1, streak_updated=True)

    now = to_utc(now) or datetime.now(timezone.utc)
    diff_days = elapsed_days(last_visit, now)

    # Same weekly window: the visit counts but does not advance the streak.
    if diff_days < STREAK_WINDOW_DAYS:
        return StreakResult(new_streak=current_streak, streak_updated=False)

    if diff_days <= STREAK_GRACE_DAYS:
        return StreakResult(new_streak=current_streak + 1, streak_updated=True)

    return StreakResult(new_streak=1, streak_updated=True)


def apply_visit(
    state: LoyaltyState,
    puntos_meta: Optional[int] = None,
    now: Optional[datetime] = None,
) -> VisitResult:
    """Record one stamp visit.

    Reaching ``puntos_meta`` earns a reward and resets the current balance
    to 0; lifetime points always grow by one.
    """
    goal = puntos_meta if puntos_meta and puntos_meta > 0 else DEFAULT_PUNTOS_META
    now = to_utc(now) or datetime.now(timezone.utc)
    streak = process_streak(state.last_visit_at, state.current_streak, now=now)

    puntos = max(0, state.puntos_actuales) + 1
    reached_goal = puntos >= goal
    next_state = replace(
        state,
        puntos_actuales=0 if reached_goal else puntos,
        total_puntos_historicos=max(0, state.total_puntos_historicos) + 1,
        current_streak=streak.new_streak,
        last_visit_at=now,
    )
    return VisitResult(state=next_state, reached_goal=reached_goal, puntos_meta=goal)

"""Point-of-sale reward math for the program types that compute amounts."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from vuelve_engine.common.config import VuelveSettings, get_settings
from vuelve_engine.common.exceptions import ValidationError
from vuelve_engine.gamification.engine import to_utc
from vuelve_engine.programs.variants import CashbackConfig, DescuentoConfig, DiscountTier


@dataclass
class CashbackResult:
    earned: int
    new_balance: int
    porcentaje: float
    capped: bool


@dataclass
class DiscountLevel:
    current_discount: float
    total_visits: int
    next_discount: Optional[float]
    visits_to_next: Optional[int]
    leveled_up: bool


def compute_cashback(
    purchase_amount: float,
    config: CashbackConfig,
    current_balance: int = 0,
) -> CashbackResult:
    """Cashback earned on a purchase, clipped to the monthly cap."""
    if purchase_amount is None or purchase_amount <= 0:
        raise ValidationError("Purchase amount must be positive for cashback")

    earned = round(purchase_amount * (config.porcentaje / 100))
    capped = False
    if current_balance + earned > config.tope_mensual:
        earned = max(0, config.tope_mensual - current_balance)
        capped = True
    return CashbackResult(
        earned=earned,
        new_balance=current_balance + earned,
        porcentaje=config.porcentaje,
        capped=capped,
    )


def resolve_discount_level(total_visits: int, config: DescuentoConfig) -> DiscountLevel:
    """Find the discount tier reached after ``total_visits`` visits."""
    current = DiscountTier(visitas=0, descuento=0)
    following: Optional[DiscountTier] = None

    for tier in sorted(config.niveles, key=lambda t: t.visitas):
        if total_visits >= tier.visitas:
            current = tier
            following = None
        else:
            following = tier
            break

    return DiscountLevel(
        current_discount=current.descuento,
        total_visits=total_visits,
        next_discount=following.descuento if following else None,
        visits_to_next=following.visitas - total_visits if following else None,
        leveled_up=total_visits == current.visitas and current.descuento > 0,
    )


def consume_pass(remaining_uses: Optional[int]) -> tuple[int, bool]:
    """Use one multi-pass entry. Returns (remaining, pack_completed)."""
    if not remaining_uses or remaining_uses <= 0:
        raise ValidationError("No active pass uses left")
    remaining = remaining_uses - 1
    return remaining, remaining <= 0


def reward_expiry_cutoff(now: Optional[datetime] = None, days: int = 30) -> datetime:
    """Rewards created before this instant are expired."""
    now = to_utc(now) or datetime.now(timezone.utc)
    return now - timedelta(days=days)


def is_reward_expired(
    created_at: Union[datetime, str, None],
    canjeado: bool = False,
    now: Optional[datetime] = None,
    settings: VuelveSettings | None = None,
) -> bool:
    """An unredeemed reward older than the configured expiration window."""
    if canjeado:
        return False
    created = to_utc(created_at)
    if created is None:
        return False
    settings = settings or get_settings()
    days = settings.reward_expiration_days if settings.reward_expiration_days > 0 else 30
    return created < reward_expiry_cutoff(now, days)


def is_membership_expired(
    fecha_fin: Union[datetime, str, None], now: Optional[datetime] = None
) -> bool:
    """Memberships without an end date never expire."""
    end = to_utc(fecha_fin)
    if end is None:
        return False
    return end < (to_utc(now) or datetime.now(timezone.utc))

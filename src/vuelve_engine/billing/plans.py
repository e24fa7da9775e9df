"""Billing plan catalog and plan-derived entitlements.

Three paid tiers: pyme, pro, full. A tenant row stores both ``plan`` (what is
currently paid for) and ``selected_plan`` (what the owner picked, possibly
still awaiting payment); ``get_effective_plan`` is the only place that
reconciles them.

Enforcement philosophy:
- Unknown program type → never allowed
- full → every program type, effectively unlimited capacity
- pyme / pro → the tenant's selected program types, capped per plan
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from vuelve_engine.common.config import VuelveSettings, get_settings
from vuelve_engine.common.exceptions import EntitlementError
from vuelve_engine.programs.types import (
    DEFAULT_PROGRAM_TYPE,
    PROGRAM_TYPE_VALUES,
    is_program_type,
)

BILLING_PLAN_VALUES = ("pyme", "pro", "full")
DEFAULT_BILLING_PLAN = "pro"

# Historical plan values still present on old tenant rows.
PLAN_ALIASES = {
    "premium": "pro",
}

CAPABILITIES = ("export_csv", "analytics_advanced")
CAPACITY_RESOURCES = (
    "program_choices",
    "staff",
    "scheduled_campaigns",
    "notification_recipients",
)


@dataclass(frozen=True)
class PlanLimits:
    max_program_choices: int
    max_staff: int
    max_scheduled_campaigns: int
    monthly_notification_recipients: int
    export_csv: bool
    analytics_advanced: bool


@dataclass(frozen=True)
class PlanDefinition:
    code: str
    label: str
    monthly_price: int
    description: str
    limits: PlanLimits


@dataclass(frozen=True)
class CapacityCheck:
    allowed: bool
    limit: int
    remaining: int


PLAN_CATALOG: dict[str, PlanDefinition] = {
    "pyme": PlanDefinition(
        code="pyme",
        label="Pyme Inicia",
        monthly_price=19990,
        description="Parte rápido y opera tu fidelización con foco en lo esencial.",
        limits=PlanLimits(
            max_program_choices=1,
            max_staff=2,
            max_scheduled_campaigns=5,
            monthly_notification_recipients=500,
            export_csv=False,
            analytics_advanced=False,
        ),
    ),
    "pro": PlanDefinition(
        code="pro",
        label="Pro",
        monthly_price=34990,
        description="Escala tu programa con más motores y herramientas de gestión.",
        limits=PlanLimits(
            max_program_choices=4,
            max_staff=8,
            max_scheduled_campaigns=20,
            monthly_notification_recipients=3000,
            export_csv=True,
            analytics_advanced=True,
        ),
    ),
    "full": PlanDefinition(
        code="full",
        label="Full",
        monthly_price=99990,
        description="Desbloquea todo el stack sin límites operativos relevantes.",
        limits=PlanLimits(
            max_program_choices=len(PROGRAM_TYPE_VALUES),
            max_staff=9999,
            max_scheduled_campaigns=9999,
            monthly_notification_recipients=999_999,
            export_csv=True,
            analytics_advanced=True,
        ),
    ),
}


def is_billing_plan(value: Any) -> bool:
    return isinstance(value, str) and value in BILLING_PLAN_VALUES


def normalize_plan_code(value: Any) -> Any:
    """Map historical plan aliases onto their current code."""
    if isinstance(value, str):
        return PLAN_ALIASES.get(value, value)
    return value


def get_effective_plan(
    stored_plan: Optional[str], stored_selected_plan: Optional[str]
) -> str:
    """Resolve the plan that actually entitles the tenant.

    ``stored_plan`` wins when it is a paid tier, then ``stored_selected_plan``,
    then the default ``pro``.
    """
    plan = normalize_plan_code(stored_plan)
    if is_billing_plan(plan):
        return plan
    selected = normalize_plan_code(stored_selected_plan)
    if is_billing_plan(selected):
        return selected
    return DEFAULT_BILLING_PLAN


def get_plan(plan: str) -> PlanDefinition:
    """Catalog entry for a plan code; unknown codes fall back to the default."""
    return PLAN_CATALOG.get(normalize_plan_code(plan), PLAN_CATALOG[DEFAULT_BILLING_PLAN])


def normalize_program_choices(raw_choices: Any, plan: str) -> list[str]:
    """Clamp a tenant's chosen program types to what the plan allows."""
    if plan == "full":
        return list(PROGRAM_TYPE_VALUES)

    items: Iterable[Any] = raw_choices if isinstance(raw_choices, (list, tuple)) else ()
    unique: list[str] = []
    for item in items:
        if is_program_type(item) and item not in unique:
            unique.append(item)

    capped = unique[: get_plan(plan).limits.max_program_choices]
    return capped or [DEFAULT_PROGRAM_TYPE]


def is_program_allowed_for_plan(
    program_type: Optional[str],
    selected_types: Optional[list[str]],
    plan: str,
) -> bool:
    if not program_type or not is_program_type(program_type):
        return False
    if plan == "full":
        return True
    available = selected_types if selected_types else [DEFAULT_PROGRAM_TYPE]
    return program_type in available


def _capacity_limit(limits: PlanLimits, resource: str) -> int:
    if resource == "program_choices":
        return limits.max_program_choices
    if resource == "staff":
        return limits.max_staff
    if resource == "scheduled_campaigns":
        return limits.max_scheduled_campaigns
    if resource == "notification_recipients":
        return limits.monthly_notification_recipients
    raise ValueError(
        f"Unknown capacity resource: {resource}. Must be one of {', '.join(CAPACITY_RESOURCES)}"
    )


def has_capability(plan: str, capability: str) -> bool:
    """Boolean plan features: ``export_csv`` and ``analytics_advanced``."""
    if capability not in CAPABILITIES:
        raise ValueError(
            f"Unknown capability: {capability}. Must be one of {', '.join(CAPABILITIES)}"
        )
    return bool(getattr(get_plan(plan).limits, capability))


def check_capacity(plan: str, resource: str, current_count: int, requested: int = 1) -> CapacityCheck:
    """Whether ``requested`` more units fit on top of ``current_count``."""
    limit = _capacity_limit(get_plan(plan).limits, resource)
    used = max(0, current_count)
    return CapacityCheck(
        allowed=used + requested <= limit,
        limit=limit,
        remaining=max(0, limit - used),
    )


def require_capability(plan: str, capability: str) -> None:
    if not has_capability(plan, capability):
        raise EntitlementError(f"Your plan does not include {capability.replace('_', ' ')}")


def require_capacity(plan: str, resource: str, current_count: int, requested: int = 1) -> CapacityCheck:
    check = check_capacity(plan, resource, current_count, requested)
    if not check.allowed:
        raise EntitlementError(
            f"Plan limit reached for {resource.replace('_', ' ')} ({check.limit})"
        )
    return check


def get_flow_plan_id(plan: str, settings: VuelveSettings | None = None) -> str:
    """Payment provider plan id for a billing tier."""
    settings = settings or get_settings()
    plan = normalize_plan_code(plan)
    if plan == "pyme":
        return settings.flow_plan_id_pyme
    if plan == "full":
        return settings.flow_plan_id_full
    return settings.flow_plan_id_pro

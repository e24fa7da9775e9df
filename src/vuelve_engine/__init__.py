"""Vuelve-Engine: tenant entitlements and loyalty computation."""

from vuelve_engine.auth.pin import hash_pin, is_valid_pin, verify_pin
from vuelve_engine.billing.plans import (
    get_effective_plan,
    is_program_allowed_for_plan,
    normalize_program_choices,
)
from vuelve_engine.gamification.engine import calculate_tier, process_streak
from vuelve_engine.programs.motor_config import (
    get_all_motor_configs,
    get_motor_config,
    merge_motor_config,
)

__all__ = [
    "hash_pin",
    "is_valid_pin",
    "verify_pin",
    "get_effective_plan",
    "is_program_allowed_for_plan",
    "normalize_program_choices",
    "calculate_tier",
    "process_streak",
    "get_all_motor_configs",
    "get_motor_config",
    "merge_motor_config",
]
__version__ = "0.1.0"

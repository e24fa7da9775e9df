"""Dependency injection singletons for Vuelve-Engine."""

from vuelve_engine.auth.lockout import LoginLockout
from vuelve_engine.auth.rate_limit import RateLimiter, get_rate_limiter
from vuelve_engine.auth.service import AdminAuthService, StaffAuthService
from vuelve_engine.auth.sso import SSOService
from vuelve_engine.common.config import get_settings
from vuelve_engine.common.database import DatabaseManager
from vuelve_engine.tenants.service import TenantService

_db: DatabaseManager | None = None
_tenants: TenantService | None = None
_lockout: LoginLockout | None = None
_sso: SSOService | None = None
_admin_auth: AdminAuthService | None = None
_staff_auth: StaffAuthService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService()
    return _tenants


def get_limiter() -> RateLimiter:
    return get_rate_limiter()


def get_lockout() -> LoginLockout:
    global _lockout
    if _lockout is None:
        _lockout = LoginLockout.from_settings(get_settings())
    return _lockout


def get_sso_service() -> SSOService:
    global _sso
    if _sso is None:
        _sso = SSOService(get_settings(), get_tenant_service())
    return _sso


def get_admin_auth_service() -> AdminAuthService:
    global _admin_auth
    if _admin_auth is None:
        _admin_auth = AdminAuthService(get_settings(), get_limiter(), get_lockout())
    return _admin_auth


def get_staff_auth_service() -> StaffAuthService:
    global _staff_auth
    if _staff_auth is None:
        _staff_auth = StaffAuthService(
            get_settings(), get_tenant_service(), get_limiter(), get_lockout()
        )
    return _staff_auth


def reset_singletons() -> None:
    """Reset all singletons and in-memory counters (for testing)."""
    global _db, _tenants, _lockout, _sso, _admin_auth, _staff_auth
    _db = None
    _tenants = None
    _lockout = None
    _sso = None
    _admin_auth = None
    _staff_auth = None
    counter = get_rate_limiter().counter
    if hasattr(counter, "clear"):
        counter.clear()

"""Admin panel and point-of-sale staff login flows."""

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vuelve_engine.auth.admin_session import (
    create_admin_session_token,
    is_allowed_admin_email,
    normalize_email,
)
from vuelve_engine.auth.lockout import LoginLockout
from vuelve_engine.auth.pin import is_valid_pin, needs_rehash, verify_pin
from vuelve_engine.auth.rate_limit import RateLimiter
from vuelve_engine.common.config import VuelveSettings
from vuelve_engine.common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ExternalDependencyError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from vuelve_engine.tenants.models import StaffProfileModel, TenantModel
from vuelve_engine.tenants.service import TenantService

logger = logging.getLogger(__name__)


@dataclass
class StaffLoginResult:
    staff: StaffProfileModel
    tenant: TenantModel
    pin_upgraded: bool = False


class AdminAuthService:
    """Password login for the operator panel."""

    def __init__(
        self,
        settings: VuelveSettings,
        rate_limiter: RateLimiter,
        lockout: LoginLockout,
    ):
        self.settings = settings
        self.rate_limiter = rate_limiter
        self.lockout = lockout

    def login(self, email: str, password: str, client_ip: str = "unknown") -> str:
        """Return a signed session token, or raise the matching error."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        rate = self.rate_limiter.check(
            f"admin-login:{client_ip}",
            self.settings.admin_login_ip_limit,
            self.settings.admin_login_window,
        )
        if not rate.allowed:
            raise RateLimitedError(retry_after=rate.retry_after_seconds)

        subject = f"admin:{normalize_email(email)}"
        state = self.lockout.get_state(subject)
        if state.locked:
            raise RateLimitedError(
                "Too many attempts. Try again in a few minutes.",
                retry_after=state.retry_after_seconds,
            )

        configured = self.settings.admin_panel_password
        if not configured:
            raise ConfigurationError("Admin password is not configured")
        if not is_allowed_admin_email(email, self.settings):
            raise AuthorizationError("Restricted to super admins")

        if not hmac.compare_digest(password.encode("utf-8"), configured.encode("utf-8")):
            self.lockout.register_failure(subject)
            logger.warning("Failed admin login for %s from %s", normalize_email(email), client_ip)
            raise AuthenticationError("Invalid credentials")

        self.lockout.register_success(subject)
        logger.info("Admin login for %s", normalize_email(email))
        return create_admin_session_token(email, self.settings)


class StaffAuthService:
    """PIN login for cashiers at a tenant's point of sale."""

    def __init__(
        self,
        settings: VuelveSettings,
        tenant_service: TenantService,
        rate_limiter: RateLimiter,
        lockout: LoginLockout,
    ):
        self.settings = settings
        self.tenants = tenant_service
        self.rate_limiter = rate_limiter
        self.lockout = lockout

    def _check_rate(self, key: str, limit: int, message: str) -> None:
        rate = self.rate_limiter.check(key, limit, self.settings.staff_login_window)
        if not rate.allowed:
            raise RateLimitedError(message, retry_after=rate.retry_after_seconds)

    async def login(
        self,
        session: AsyncSession,
        slug: str,
        pin: str,
        client_ip: str = "unknown",
    ) -> StaffLoginResult:
        slug = slug.strip() if isinstance(slug, str) else ""
        pin = pin.strip() if isinstance(pin, str) else ""

        self._check_rate(
            f"staff-login-ip:{client_ip}",
            self.settings.staff_login_ip_limit,
            "Too many requests. Try again in a few minutes.",
        )
        self._check_rate(
            f"staff-login:{client_ip}:{slug}",
            self.settings.staff_login_slug_limit,
            "Too many attempts. Try again in a few minutes.",
        )

        subject = f"staff:{slug}:{client_ip}"
        state = self.lockout.get_state(subject)
        if state.locked:
            raise RateLimitedError(
                "Too many attempts. Try again in a few minutes.",
                retry_after=state.retry_after_seconds,
            )

        if not slug or not pin:
            raise ValidationError("Missing credentials")
        if not is_valid_pin(pin):
            raise ValidationError("Invalid PIN")

        try:
            tenant = await self.tenants.get_by_slug(session, slug)
            if tenant is None:
                raise NotFoundError("Business not found")
            staff_list = await self.tenants.list_active_staff(session, tenant.id)
        except SQLAlchemyError as exc:
            logger.error("Staff login lookup failed: %s", exc)
            raise ExternalDependencyError() from exc

        staff = next(
            (row for row in staff_list if verify_pin(pin, row.pin_hash, row.pin)),
            None,
        )
        if staff is None:
            self.lockout.register_failure(subject)
            raise AuthenticationError("Wrong PIN or inactive account")

        self.lockout.register_success(subject)

        upgraded = False
        if needs_rehash(staff.pin_hash, staff.pin):
            await self.tenants.upgrade_staff_pin(session, staff, pin)
            upgraded = True
            logger.info("Upgraded legacy PIN for staff %s", staff.id)

        return StaffLoginResult(staff=staff, tenant=tenant, pin_upgraded=upgraded)

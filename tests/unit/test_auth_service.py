"""Tests for admin password login and staff PIN login."""

import pytest

from vuelve_engine.auth.admin_session import verify_admin_session_token
from vuelve_engine.auth.lockout import LoginLockout
from vuelve_engine.auth.rate_limit import InMemoryCounter, RateLimiter
from vuelve_engine.auth.service import AdminAuthService, StaffAuthService
from vuelve_engine.common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from vuelve_engine.tenants.service import TenantService
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, make_settings

IP = "203.0.113.7"


@pytest.fixture
def counter(clock):
    return InMemoryCounter(clock)


def _admin(settings, counter):
    return AdminAuthService(settings, RateLimiter(counter), LoginLockout.from_settings(settings, counter))


def _staff(settings, counter):
    return StaffAuthService(
        settings, TenantService(), RateLimiter(counter), LoginLockout.from_settings(settings, counter)
    )


class TestAdminLogin:
    def test_success(self, settings, counter):
        token = _admin(settings, counter).login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        result = verify_admin_session_token(token, settings)
        assert result.valid is True
        assert result.email == ADMIN_EMAIL

    def test_missing_fields(self, settings, counter):
        with pytest.raises(ValidationError):
            _admin(settings, counter).login("", ADMIN_PASSWORD, IP)
        with pytest.raises(ValidationError):
            _admin(settings, counter).login(ADMIN_EMAIL, "", IP)

    def test_wrong_password(self, settings, counter):
        with pytest.raises(AuthenticationError):
            _admin(settings, counter).login(ADMIN_EMAIL, "nope", IP)

    def test_not_allowlisted(self, settings, counter):
        with pytest.raises(AuthorizationError):
            _admin(settings, counter).login("owner@cafe.cl", ADMIN_PASSWORD, IP)

    def test_password_not_configured(self, counter):
        settings = make_settings(admin_panel_password="")
        with pytest.raises(ConfigurationError):
            _admin(settings, counter).login(ADMIN_EMAIL, "anything", IP)

    def test_lockout_after_failures(self, settings, counter, clock):
        svc = _admin(settings, counter)
        for _ in range(5):
            with pytest.raises(AuthenticationError):
                svc.login(ADMIN_EMAIL, "nope", IP)
        with pytest.raises(RateLimitedError) as exc_info:
            svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        assert exc_info.value.retry_after == 900

        clock.advance(900)
        assert svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)

    def test_success_resets_failures(self, settings, counter):
        svc = _admin(settings, counter)
        for _ in range(4):
            with pytest.raises(AuthenticationError):
                svc.login(ADMIN_EMAIL, "nope", IP)
        svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        assert svc.lockout.get_state(f"admin:{ADMIN_EMAIL}").remaining_attempts == 5

    def test_ip_rate_limit(self, counter):
        settings = make_settings(admin_login_ip_limit=2)
        svc = _admin(settings, counter)
        svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        with pytest.raises(RateLimitedError):
            svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, IP)
        assert svc.login(ADMIN_EMAIL, ADMIN_PASSWORD, "198.51.100.1")


async def _seed_staff(db, slug="cafe-sur", pin="1234"):
    tenants = TenantService()
    async with db.get_session() as session:
        tenant = await tenants.create_tenant(session, nombre="Café Sur", slug=slug)
        staff = await tenants.create_staff(session, tenant, "Ana", pin)
        return tenant, staff


class TestStaffLogin:
    async def test_success(self, db, settings, counter):
        tenant, staff = await _seed_staff(db)
        async with db.get_session() as session:
            result = await _staff(settings, counter).login(session, "cafe-sur", "1234", IP)
        assert result.staff.id == staff.id
        assert result.tenant.id == tenant.id
        assert result.pin_upgraded is False

    async def test_surrounding_whitespace_trimmed(self, db, settings, counter):
        await _seed_staff(db)
        async with db.get_session() as session:
            result = await _staff(settings, counter).login(session, " cafe-sur ", " 1234 ", IP)
        assert result.staff.nombre == "Ana"

    async def test_wrong_pin(self, db, settings, counter):
        await _seed_staff(db)
        async with db.get_session() as session:
            with pytest.raises(AuthenticationError):
                await _staff(settings, counter).login(session, "cafe-sur", "9999", IP)

    async def test_invalid_pin_format(self, db, settings, counter):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await _staff(settings, counter).login(session, "cafe-sur", "12a4", IP)
            with pytest.raises(ValidationError):
                await _staff(settings, counter).login(session, "", "1234", IP)

    async def test_unknown_tenant(self, db, settings, counter):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await _staff(settings, counter).login(session, "nope", "1234", IP)

    async def test_inactive_staff(self, db, settings, counter):
        await _seed_staff(db)
        tenants = TenantService()
        async with db.get_session() as session:
            tenant = await tenants.get_by_slug(session, "cafe-sur")
            for row in await tenants.list_active_staff(session, tenant.id):
                row.activo = False
        async with db.get_session() as session:
            with pytest.raises(AuthenticationError):
                await _staff(settings, counter).login(session, "cafe-sur", "1234", IP)

    async def test_legacy_pin_upgraded(self, db, settings, counter):
        _, staff = await _seed_staff(db)
        tenants = TenantService()
        async with db.get_session() as session:
            row = (await tenants.list_active_staff(session, staff.tenant_id))[0]
            row.pin_hash = None
            row.pin = "4321"

        async with db.get_session() as session:
            result = await _staff(settings, counter).login(session, "cafe-sur", "4321", IP)
        assert result.pin_upgraded is True

        async with db.get_session() as session:
            row = (await tenants.list_active_staff(session, staff.tenant_id))[0]
            assert row.pin is None
            assert row.pin_hash.startswith("scrypt$")
            result = await _staff(settings, counter).login(session, "cafe-sur", "4321", IP)
            assert result.pin_upgraded is False

    async def test_lockout_per_slug_and_ip(self, db, settings, counter):
        await _seed_staff(db)
        svc = _staff(settings, counter)
        async with db.get_session() as session:
            for _ in range(5):
                with pytest.raises(AuthenticationError):
                    await svc.login(session, "cafe-sur", "0000", IP)
            with pytest.raises(RateLimitedError):
                await svc.login(session, "cafe-sur", "1234", IP)
            result = await svc.login(session, "cafe-sur", "1234", "198.51.100.1")
        assert result.staff.nombre == "Ana"

    async def test_slug_rate_limit(self, db, settings, counter):
        await _seed_staff(db)
        svc = _staff(make_settings(staff_login_slug_limit=2), counter)
        async with db.get_session() as session:
            await svc.login(session, "cafe-sur", "1234", IP)
            await svc.login(session, "cafe-sur", "1234", IP)
            with pytest.raises(RateLimitedError) as exc_info:
                await svc.login(session, "cafe-sur", "1234", IP)
        assert exc_info.value.retry_after == 600

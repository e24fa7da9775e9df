"""Tests for tenant service — plans, program gating, staff seats."""

import pytest

from vuelve_engine.auth.pin import verify_pin
from vuelve_engine.common.exceptions import EntitlementError, NotFoundError, ValidationError
from vuelve_engine.programs.motor_config import get_motor_config
from vuelve_engine.programs.types import PROGRAM_TYPE_VALUES
from vuelve_engine.tenants.service import TenantService, effective_plan_for


@pytest.fixture
def svc():
    return TenantService()


class TestTenantCreate:
    async def test_create_tenant(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="Café Sur", slug="cafe-sur")
            assert tenant.id is not None
            assert tenant.slug == "cafe-sur"
            assert tenant.plan == "trial"
            assert tenant.estado == "activo"
            assert effective_plan_for(tenant) == "pro"
            assert tenant.selected_program_types == ["sellos"]

    async def test_premium_normalized(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="T", slug="t", plan="premium")
            assert tenant.plan == "pro"

    async def test_choices_clamped_to_plan(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(
                session,
                nombre="T",
                slug="t",
                selected_plan="pyme",
                selected_program_types=["cashback", "sellos"],
            )
            assert tenant.selected_program_types == ["cashback"]

    async def test_full_plan_gets_every_type(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="T", slug="t", plan="full")
            assert tenant.selected_program_types == list(PROGRAM_TYPE_VALUES)

    async def test_trial_days(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="T", slug="t", trial_days=14)
            assert tenant.trial_hasta is not None


class TestTenantLookup:
    async def test_get_by_slug_and_id(self, db, svc):
        async with db.get_session() as session:
            created = await svc.create_tenant(session, nombre="A", slug="alpha")
            tenant_id = created.id
        async with db.get_session() as session:
            by_slug = await svc.get_by_slug(session, "alpha")
            by_id = await svc.get_by_id(session, tenant_id)
            assert by_slug.id == tenant_id
            assert by_id.slug == "alpha"

    async def test_missing(self, db, svc):
        async with db.get_session() as session:
            assert await svc.get_by_slug(session, "nope") is None
            assert await svc.get_by_id(session, "nope") is None

    async def test_update_program_choices(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="pro")
            updated = await svc.update_program_choices(
                session, tenant.id, ["cupon", "regalo", "bogus", "cupon"]
            )
            assert updated.selected_program_types == ["cupon", "regalo"]

    async def test_update_program_choices_missing_tenant(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await svc.update_program_choices(session, "nope", ["sellos"])


class TestPrograms:
    async def test_create_allowed_program(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(
                session, nombre="A", slug="a", plan="pro", selected_program_types=["sellos", "cashback"]
            )
            program = await svc.create_program(session, tenant, "cashback", {"porcentaje": 8})
            assert program.activo is True
            active = await svc.get_active_program(session, tenant.id, "cashback")
            assert active.id == program.id

    async def test_program_not_selected(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="pyme")
            with pytest.raises(EntitlementError):
                await svc.create_program(session, tenant, "cashback")

    async def test_unknown_program_type(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="full")
            with pytest.raises(ValidationError):
                await svc.create_program(session, tenant, "puntos")

    async def test_one_active_program_per_type(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="full")
            program = await svc.create_program(session, tenant, "sellos")
            with pytest.raises(ValidationError):
                await svc.create_program(session, tenant, "sellos")
            await svc.disable_program(session, program)
            assert await svc.get_active_program(session, tenant.id, "sellos") is None
            await svc.create_program(session, tenant, "sellos")

    async def test_update_motor_configs(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="full")
            program = await svc.create_program(
                session, tenant, "cashback", {"porcentaje": 10, "tema": "oscuro"}
            )
            await svc.update_motor_configs(session, program, {"cashback": {"porcentaje": 3}})
            assert program.config["tema"] == "oscuro"
            assert get_motor_config(program.config, "cashback") == {"porcentaje": 3}

    async def test_stamp_goal(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="full")
            program = await svc.create_program(session, tenant, "sellos")
            assert program.puntos_meta == 10
            other = await svc.create_program(session, tenant, "cashback", puntos_meta=6)
            assert other.puntos_meta == 6

    async def test_stamp_goal_must_be_positive(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="full")
            with pytest.raises(ValidationError):
                await svc.create_program(session, tenant, "sellos", puntos_meta=0)


class TestStaff:
    async def test_create_staff_hashes_pin(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a")
            staff = await svc.create_staff(session, tenant, "Ana", "1234")
            assert staff.pin is None
            assert staff.pin_hash.startswith("scrypt$")
            assert verify_pin("1234", staff.pin_hash) is True
            assert staff.rol == "cajero"

    async def test_invalid_pin(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a")
            with pytest.raises(ValidationError):
                await svc.create_staff(session, tenant, "Ana", "12345")

    async def test_seat_limit(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a", plan="pyme")
            await svc.create_staff(session, tenant, "Ana", "1111")
            await svc.create_staff(session, tenant, "Beto", "2222")
            with pytest.raises(EntitlementError):
                await svc.create_staff(session, tenant, "Carla", "3333")
            assert await svc.count_active_staff(session, tenant.id) == 2

    async def test_list_active_staff(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a")
            ana = await svc.create_staff(session, tenant, "Ana", "1111")
            beto = await svc.create_staff(session, tenant, "Beto", "2222")
            beto.activo = False
            await session.flush()
            staff = await svc.list_active_staff(session, tenant.id)
            assert [s.id for s in staff] == [ana.id]

    async def test_upgrade_staff_pin(self, db, svc):
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, nombre="A", slug="a")
            staff = await svc.create_staff(session, tenant, "Ana", "1111")
            staff.pin_hash = None
            staff.pin = "1111"
            await svc.upgrade_staff_pin(session, staff, "1111")
            assert staff.pin is None
            assert verify_pin("1111", staff.pin_hash) is True

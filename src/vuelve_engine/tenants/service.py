"""Tenant, program and staff record operations."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vuelve_engine.auth.pin import hash_pin, is_valid_pin
from vuelve_engine.billing.plans import (
    get_effective_plan,
    is_program_allowed_for_plan,
    normalize_plan_code,
    normalize_program_choices,
    require_capacity,
)
from vuelve_engine.common.exceptions import EntitlementError, NotFoundError, ValidationError
from vuelve_engine.gamification.engine import DEFAULT_PUNTOS_META
from vuelve_engine.programs.motor_config import merge_motor_config
from vuelve_engine.programs.types import is_program_type
from vuelve_engine.tenants.models import (
    ProgramModel,
    SSOTokenModel,
    StaffProfileModel,
    TenantModel,
)

# Upper bound on staff rows scanned during PIN login.
STAFF_LOOKUP_LIMIT = 200


def effective_plan_for(tenant: TenantModel) -> str:
    return get_effective_plan(tenant.plan, tenant.selected_plan)


class TenantService:
    """Tenant management operations."""

    async def create_tenant(
        self,
        session: AsyncSession,
        nombre: str,
        slug: str,
        plan: Optional[str] = "trial",
        selected_plan: Optional[str] = None,
        selected_program_types: Optional[list[str]] = None,
        auth_user_id: Optional[str] = None,
        estado: str = "activo",
        trial_days: Optional[int] = None,
    ) -> TenantModel:
        plan = normalize_plan_code(plan)
        selected_plan = normalize_plan_code(selected_plan)
        effective = get_effective_plan(plan, selected_plan)
        tenant = TenantModel(
            nombre=nombre,
            slug=slug,
            plan=plan,
            selected_plan=selected_plan,
            selected_program_types=normalize_program_choices(selected_program_types, effective),
            auth_user_id=auth_user_id,
            estado=estado,
            trial_hasta=(
                datetime.now(timezone.utc) + timedelta(days=trial_days)
                if trial_days
                else None
            ),
        )
        session.add(tenant)
        await session.flush()
        return tenant

    async def get_by_id(
        self, session: AsyncSession, tenant_id: str
    ) -> TenantModel | None:
        return await session.get(TenantModel, tenant_id)

    async def get_by_slug(
        self, session: AsyncSession, slug: str
    ) -> TenantModel | None:
        result = await session.execute(
            select(TenantModel).where(TenantModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def update_program_choices(
        self, session: AsyncSession, tenant_id: str, choices: Any
    ) -> TenantModel:
        """Store the tenant's program-type selection, clamped to its plan."""
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            raise NotFoundError("Business not found")
        tenant.selected_program_types = normalize_program_choices(
            choices, effective_plan_for(tenant)
        )
        await session.flush()
        return tenant

    # ── Programs ──

    async def get_active_program(
        self, session: AsyncSession, tenant_id: str, tipo_programa: Optional[str] = None
    ) -> ProgramModel | None:
        stmt = select(ProgramModel).where(
            ProgramModel.tenant_id == tenant_id, ProgramModel.activo.is_(True)
        )
        if tipo_programa:
            stmt = stmt.where(ProgramModel.tipo_programa == tipo_programa)
        result = await session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def create_program(
        self,
        session: AsyncSession,
        tenant: TenantModel,
        tipo_programa: str,
        config: Optional[dict] = None,
        puntos_meta: int = DEFAULT_PUNTOS_META,
    ) -> ProgramModel:
        if not is_program_type(tipo_programa):
            raise ValidationError("Unknown program type")
        if puntos_meta < 1:
            raise ValidationError("Stamp goal must be at least 1")
        if not is_program_allowed_for_plan(
            tipo_programa, tenant.selected_program_types, effective_plan_for(tenant)
        ):
            raise EntitlementError("Program type not enabled for this business")
        if await self.get_active_program(session, tenant.id, tipo_programa):
            raise ValidationError("An active program of this type already exists")

        program = ProgramModel(
            tenant_id=tenant.id,
            tipo_programa=tipo_programa,
            config=config or {},
            puntos_meta=puntos_meta,
            activo=True,
        )
        session.add(program)
        await session.flush()
        return program

    async def update_motor_configs(
        self, session: AsyncSession, program: ProgramModel, by_motor: dict[str, dict]
    ) -> ProgramModel:
        program.config = merge_motor_config(program.config, by_motor)
        await session.flush()
        return program

    async def disable_program(self, session: AsyncSession, program: ProgramModel) -> ProgramModel:
        program.activo = False
        await session.flush()
        return program

    # ── Staff ──

    async def count_active_staff(self, session: AsyncSession, tenant_id: str) -> int:
        result = await session.execute(
            select(func.count()).select_from(StaffProfileModel).where(
                StaffProfileModel.tenant_id == tenant_id,
                StaffProfileModel.activo.is_(True),
            )
        )
        return int(result.scalar_one())

    async def list_active_staff(
        self, session: AsyncSession, tenant_id: str
    ) -> list[StaffProfileModel]:
        result = await session.execute(
            select(StaffProfileModel)
            .where(
                StaffProfileModel.tenant_id == tenant_id,
                StaffProfileModel.activo.is_(True),
            )
            .limit(STAFF_LOOKUP_LIMIT)
        )
        return list(result.scalars().all())

    async def create_staff(
        self,
        session: AsyncSession,
        tenant: TenantModel,
        nombre: str,
        pin: str,
        rol: str = "cajero",
    ) -> StaffProfileModel:
        """Add a staff member, enforcing the plan's seat limit."""
        if not nombre:
            raise ValidationError("Staff name is required")
        if not is_valid_pin(pin):
            raise ValidationError("PIN must be exactly 4 digits")

        current = await self.count_active_staff(session, tenant.id)
        require_capacity(effective_plan_for(tenant), "staff", current)

        staff = StaffProfileModel(
            tenant_id=tenant.id,
            nombre=nombre,
            rol=rol or "cajero",
            pin_hash=hash_pin(pin),
        )
        session.add(staff)
        await session.flush()
        return staff

    async def upgrade_staff_pin(
        self, session: AsyncSession, staff: StaffProfileModel, pin: str
    ) -> None:
        """Replace a legacy plaintext PIN with its hash."""
        staff.pin_hash = hash_pin(pin)
        staff.pin = None
        await session.flush()

    # ── SSO ──

    async def create_sso_token(
        self,
        session: AsyncSession,
        tenant_id: str,
        token: str,
        expires_at: datetime,
    ) -> SSOTokenModel:
        record = SSOTokenModel(tenant_id=tenant_id, token=token, expires_at=expires_at)
        session.add(record)
        await session.flush()
        return record

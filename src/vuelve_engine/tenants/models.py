"""SQLAlchemy models for tenants, programs, staff and SSO tokens."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vuelve_engine.common.models import Base, TimestampMixin, generate_uuid


class TenantModel(Base, TimestampMixin):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    plan: Mapped[Optional[str]] = mapped_column(String(20), default="trial")
    selected_plan: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    selected_program_types: Mapped[list] = mapped_column(JSON, default=list)
    estado: Mapped[str] = mapped_column(String(20), default="activo")
    auth_user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    trial_hasta: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ProgramModel(Base, TimestampMixin):
    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )
    tipo_programa: Mapped[str] = mapped_column(String(20), default="sellos")
    puntos_meta: Mapped[int] = mapped_column(Integer, default=10)
    config: Mapped[dict] = mapped_column(JSON, default=dict)
    activo: Mapped[bool] = mapped_column(Boolean, default=True)


class StaffProfileModel(Base, TimestampMixin):
    __tablename__ = "staff_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    rol: Mapped[str] = mapped_column(String(30), default="cajero")
    # Legacy plaintext PIN; cleared once pin_hash is written.
    pin: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    pin_hash: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    activo: Mapped[bool] = mapped_column(Boolean, default=True)


class SSOTokenModel(Base, TimestampMixin):
    __tablename__ = "sso_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel


class AdminLoginRequest(BaseModel):
    # Optional so that missing fields answer 400 from the service, not 422.
    email: str = ""
    password: str = ""


class AdminSessionResponse(BaseModel):
    authenticated: bool
    email: str | None = None


class SSOExchangeRequest(BaseModel):
    tenant_id: str = ""
    secret: str = ""


class SSOExchangeResponse(BaseModel):
    sso_token: str
    tenant_slug: str
    tenant_nombre: str | None = None
    expires_in: int


class StaffLoginRequest(BaseModel):
    slug: str = ""
    pin: str = ""


class StaffInfo(BaseModel):
    id: str
    nombre: str
    rol: str


class TenantInfo(BaseModel):
    id: str
    nombre: str
    slug: str


class StaffLoginResponse(BaseModel):
    success: bool = True
    staff: StaffInfo
    tenant: TenantInfo

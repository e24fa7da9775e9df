"""Authentication API router — admin panel, SSO exchange, staff PIN login."""

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from vuelve_engine.auth.admin_session import get_admin_email
from vuelve_engine.auth.rate_limit import get_client_ip
from vuelve_engine.auth.schemas import (
    AdminLoginRequest,
    AdminSessionResponse,
    SSOExchangeRequest,
    SSOExchangeResponse,
    StaffInfo,
    StaffLoginRequest,
    StaffLoginResponse,
    TenantInfo,
)

router = APIRouter(tags=["auth"])


def _settings():
    from vuelve_engine.common.config import get_settings
    return get_settings()


def _get_db():
    from vuelve_engine.deps import get_db
    return get_db()


@router.post("/admin/auth/login")
async def admin_login(body: AdminLoginRequest, request: Request):
    from vuelve_engine.deps import get_admin_auth_service

    settings = _settings()
    token = get_admin_auth_service().login(
        body.email, body.password, client_ip=get_client_ip(request.headers)
    )
    response = JSONResponse({"ok": True})
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=token,
        max_age=settings.admin_session_ttl,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
        path="/",
    )
    return response


@router.get("/admin/auth/session", response_model=AdminSessionResponse)
async def admin_session(request: Request):
    email = get_admin_email(request, _settings())
    if email is None:
        return JSONResponse({"authenticated": False}, status_code=401)
    return AdminSessionResponse(authenticated=True, email=email)


@router.post("/admin/auth/logout")
async def admin_logout(response: Response):
    response.delete_cookie(_settings().admin_cookie_name, path="/")
    return {"ok": True}


@router.post("/sso/exchange", response_model=SSOExchangeResponse)
async def sso_exchange(body: SSOExchangeRequest):
    from vuelve_engine.deps import get_sso_service

    svc = get_sso_service()
    db = _get_db()
    async with db.get_session() as session:
        exchange = await svc.issue_exchange_token(session, body.tenant_id, body.secret)
    return SSOExchangeResponse(
        sso_token=exchange.sso_token,
        tenant_slug=exchange.tenant_slug,
        tenant_nombre=exchange.tenant_nombre,
        expires_in=exchange.expires_in,
    )


@router.post("/staff/login", response_model=StaffLoginResponse)
async def staff_login(body: StaffLoginRequest, request: Request):
    from vuelve_engine.deps import get_staff_auth_service

    svc = get_staff_auth_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.login(
            session, body.slug, body.pin, client_ip=get_client_ip(request.headers)
        )
        return StaffLoginResponse(
            staff=StaffInfo(id=result.staff.id, nombre=result.staff.nombre, rol=result.staff.rol),
            tenant=TenantInfo(id=result.tenant.id, nombre=result.tenant.nombre, slug=result.tenant.slug),
        )

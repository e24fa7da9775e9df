"""Authorization gate for tenant-scoped and admin-scoped operations.

Each check returns an ``AuthzResult``. On denial it carries a ready JSON
response with a short message; callers return it immediately:

    result = await gate.require_tenant_owner_by_id(request, tenant_id)
    if not result.ok:
        return result.response
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import Request
from starlette.responses import JSONResponse

from vuelve_engine.auth.admin_session import get_admin_email, is_allowed_admin_email
from vuelve_engine.auth.identity import AuthUser, IdentityProvider
from vuelve_engine.common.config import VuelveSettings, get_settings
from vuelve_engine.common.database import DatabaseManager
from vuelve_engine.tenants.models import TenantModel
from vuelve_engine.tenants.service import TenantService

logger = logging.getLogger(__name__)


@dataclass
class AuthzResult:
    ok: bool
    user: Optional[AuthUser] = None
    tenant: Optional[TenantModel] = None
    admin_email: Optional[str] = None
    response: Optional[JSONResponse] = None

    @property
    def status_code(self) -> int:
        return 200 if self.ok else self.response.status_code


def _deny(status_code: int, message: str) -> AuthzResult:
    return AuthzResult(
        ok=False,
        response=JSONResponse({"error": message}, status_code=status_code),
    )


class AuthorizationGate:
    """Composes identity, ownership and admin checks into allow/deny."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        db: DatabaseManager,
        tenant_service: TenantService | None = None,
        settings: VuelveSettings | None = None,
    ):
        self.identity = identity_provider
        self.db = db
        self.tenants = tenant_service or TenantService()
        self.settings = settings or get_settings()

    async def require_authenticated_user(self, request: Request) -> AuthzResult:
        try:
            user = await self.identity.get_current_user(request)
        except Exception:
            logger.exception("Identity provider lookup failed")
            user = None
        if user is None:
            return _deny(401, "Not authorized")
        return AuthzResult(ok=True, user=user)

    async def _require_owner(
        self, request: Request, *, tenant_id: str | None = None, slug: str | None = None
    ) -> AuthzResult:
        auth = await self.require_authenticated_user(request)
        if not auth.ok:
            return auth

        try:
            async with self.db.get_session() as session:
                if tenant_id is not None:
                    tenant = await self.tenants.get_by_id(session, tenant_id)
                else:
                    tenant = await self.tenants.get_by_slug(session, slug)
        except SQLAlchemyError as exc:
            logger.error("Tenant ownership lookup failed: %s", exc)
            return _deny(500, "Error loading business")

        if tenant is None:
            return _deny(404, "Business not found")
        if tenant.auth_user_id != auth.user.id:
            return _deny(403, "Not authorized for this business")
        return AuthzResult(ok=True, user=auth.user, tenant=tenant)

    async def require_tenant_owner_by_id(self, request: Request, tenant_id: str) -> AuthzResult:
        return await self._require_owner(request, tenant_id=tenant_id)

    async def require_tenant_owner_by_slug(self, request: Request, slug: str) -> AuthzResult:
        return await self._require_owner(request, slug=slug)

    async def require_super_admin(self, request: Request) -> AuthzResult:
        auth = await self.require_authenticated_user(request)
        if not auth.ok:
            return auth
        if not is_allowed_admin_email(auth.user.email or "", self.settings):
            return _deny(403, "Restricted to super admins")
        return auth

    def require_admin_session(self, request: Request) -> AuthzResult:
        """Admin panel cookie check, independent of the identity provider."""
        email = get_admin_email(request, self.settings)
        if email is None:
            return _deny(401, "Not authorized")
        return AuthzResult(ok=True, admin_email=email)

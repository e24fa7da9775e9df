"""One-time SSO exchange tokens for linked external panels.

A trusted partner presents the shared secret and a tenant id; it gets back a
short-lived random token it hands to the consumer side. Redemption and the
single-use guarantee belong to that consumer. This module stops at issuance.
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vuelve_engine.common.config import VuelveSettings
from vuelve_engine.common.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    ExternalDependencyError,
    NotFoundError,
    ValidationError,
)
from vuelve_engine.tenants.service import TenantService

logger = logging.getLogger(__name__)

SSO_TOKEN_BYTES = 32


@dataclass(frozen=True)
class SSOExchange:
    sso_token: str
    tenant_slug: str
    tenant_nombre: Optional[str]
    expires_in: int
    expires_at: datetime


def secrets_match(supplied: str, configured: str) -> bool:
    """Constant-time equality; different byte lengths never reach the compare."""
    supplied_bytes = supplied.encode("utf-8")
    configured_bytes = configured.encode("utf-8")
    if len(supplied_bytes) != len(configured_bytes):
        return False
    return hmac.compare_digest(supplied_bytes, configured_bytes)


class SSOService:
    """Issues SSO exchange tokens after secret and tenant checks."""

    def __init__(self, settings: VuelveSettings, tenant_service: TenantService):
        self.settings = settings
        self.tenants = tenant_service

    async def issue_exchange_token(
        self,
        session: AsyncSession,
        tenant_id: Optional[str],
        secret: Optional[str],
        now: Optional[datetime] = None,
    ) -> SSOExchange:
        if not tenant_id or not secret:
            raise ValidationError("tenant_id and secret are required")

        configured = self.settings.sso_secret
        if not configured:
            raise ConfigurationError("SSO is not configured on this server")
        if not secrets_match(secret, configured):
            raise AuthorizationError("Invalid secret", code="INVALID_SECRET")

        try:
            tenant = await self.tenants.get_by_id(session, tenant_id)
        except SQLAlchemyError as exc:
            logger.error("SSO tenant lookup failed: %s", exc)
            raise ExternalDependencyError() from exc

        if tenant is None:
            raise NotFoundError("Business not found")
        if not tenant.auth_user_id:
            raise ConflictError("Business has no linked user")
        if tenant.estado == "suspended":
            raise AuthorizationError("Business suspended", code="SUSPENDED")

        token = secrets.token_hex(SSO_TOKEN_BYTES)
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(seconds=self.settings.sso_token_ttl)

        try:
            await self.tenants.create_sso_token(session, tenant.id, token, expires_at)
        except SQLAlchemyError as exc:
            logger.error("SSO token insert failed: %s", exc)
            raise ExternalDependencyError("Could not create SSO session") from exc

        logger.info("SSO exchange token issued for tenant %s", tenant.slug)
        return SSOExchange(
            sso_token=token,
            tenant_slug=tenant.slug,
            tenant_nombre=tenant.nombre,
            expires_in=self.settings.sso_token_ttl,
            expires_at=expires_at,
        )

"""Admin panel cookie-based session tokens.

Tokens are self-contained: ``{email, iat, exp}`` serialized URL-safe and
HMAC-SHA256 signed as ``payload.signature``. Nothing is stored server-side,
so revocation is by rotating ``VUELVE_ADMIN_PANEL_SECRET``.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, URLSafeSerializer
from starlette.requests import Request

from vuelve_engine.common.config import VuelveSettings, get_settings
from vuelve_engine.common.exceptions import ConfigurationError

SESSION_SALT = "admin-session"


@dataclass(frozen=True)
class AdminSessionResult:
    valid: bool
    email: Optional[str] = None


def _get_serializer(settings: VuelveSettings) -> Optional[URLSafeSerializer]:
    if not settings.admin_panel_secret:
        return None
    return URLSafeSerializer(
        settings.admin_panel_secret,
        salt=SESSION_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_allowed_admin_email(email: str, settings: VuelveSettings | None = None) -> bool:
    """Allowlist membership, or the default domain when no allowlist is set."""
    settings = settings or get_settings()
    normalized = normalize_email(email)
    if not normalized:
        return False
    allowlist = settings.admin_allowlist
    if allowlist:
        return normalized in allowlist
    domain = settings.admin_email_domain.strip().lower()
    if not domain.lstrip("@"):
        return False
    if not domain.startswith("@"):
        domain = f"@{domain}"
    return normalized.endswith(domain)


def create_admin_session_token(
    email: str,
    settings: VuelveSettings | None = None,
    now: Optional[int] = None,
) -> str:
    """Sign a session payload and return the cookie value."""
    settings = settings or get_settings()
    serializer = _get_serializer(settings)
    if serializer is None:
        raise ConfigurationError("Admin session secret is not configured")

    issued_at = int(time.time()) if now is None else int(now)
    payload = {
        "email": normalize_email(email),
        "iat": issued_at,
        "exp": issued_at + settings.admin_session_ttl,
    }
    return serializer.dumps(payload)


def verify_admin_session_token(
    token: Optional[str],
    settings: VuelveSettings | None = None,
    now: Optional[int] = None,
) -> AdminSessionResult:
    """Verify and decode a session token. Fails closed on any problem."""
    settings = settings or get_settings()
    if not token or not isinstance(token, str) or "." not in token:
        return AdminSessionResult(valid=False)

    serializer = _get_serializer(settings)
    if serializer is None:
        return AdminSessionResult(valid=False)

    try:
        payload = serializer.loads(token)
    except BadData:
        return AdminSessionResult(valid=False)

    if not isinstance(payload, dict):
        return AdminSessionResult(valid=False)
    email = payload.get("email")
    expires_at = payload.get("exp")
    if not isinstance(email, str) or not email:
        return AdminSessionResult(valid=False)
    if not isinstance(expires_at, int) or isinstance(expires_at, bool):
        return AdminSessionResult(valid=False)

    current = int(time.time()) if now is None else int(now)
    if expires_at < current:
        return AdminSessionResult(valid=False)
    if not is_allowed_admin_email(email, settings):
        return AdminSessionResult(valid=False)
    return AdminSessionResult(valid=True, email=email)


def get_admin_email(request: Request, settings: VuelveSettings | None = None) -> Optional[str]:
    """Extract and verify the admin session from a request's cookie."""
    settings = settings or get_settings()
    cookie = request.cookies.get(settings.admin_cookie_name)
    if not cookie:
        return None
    result = verify_admin_session_token(cookie, settings)
    return result.email if result.valid else None

"""Vuelve-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "admin_panel_secret": "insecure-admin-secret-change-me",
}


class VuelveSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="VUELVE_")

    environment: str = "development"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/vuelve.db"

    # API
    api_title: str = "Vuelve-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Admin panel session
    admin_panel_secret: str = "insecure-admin-secret-change-me"
    admin_panel_password: str = ""
    # Comma-separated list; when empty, admin_email_domain is used instead.
    super_admin_emails: str = ""
    admin_email_domain: str = "@vuelve.cl"
    admin_cookie_name: str = "vuelve_admin_session"
    admin_session_ttl: int = 8 * 3600  # seconds

    # SSO exchange
    sso_secret: str = ""
    sso_token_ttl: int = 60  # seconds

    # Rewards
    reward_expiration_days: int = 30

    # Rate limits (fixed window)
    staff_login_ip_limit: int = 80
    staff_login_slug_limit: int = 20
    staff_login_window: int = 600  # seconds
    admin_login_ip_limit: int = 20
    admin_login_window: int = 600  # seconds

    # Failed-login lockout, shared by admin and staff logins
    login_max_failures: int = 5
    login_failure_window: int = 600  # seconds
    login_block_seconds: int = 900

    # Flow payment provider
    flow_api_key: str = ""
    flow_secret_key: str = ""
    flow_url: str = ""
    flow_plan_id_pyme: str = "vuelve_pyme_inicia_mensual"
    flow_plan_id_pro: str = "vuelve_pro_mensual"
    flow_plan_id_full: str = "vuelve_full_mensual"

    @property
    def admin_allowlist(self) -> list[str]:
        """Return the normalized super-admin allowlist."""
        return [
            email.strip().lower()
            for email in self.super_admin_emails.split(",")
            if email.strip()
        ]

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"VUELVE_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default admin secret — set VUELVE_ADMIN_PANEL_SECRET for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> VuelveSettings:
    settings = VuelveSettings()
    settings.validate_for_production()
    return settings

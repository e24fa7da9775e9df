"""Shared test fixtures for Vuelve-Engine."""

import pytest
from httpx import ASGITransport, AsyncClient

from vuelve_engine.common.config import VuelveSettings
from vuelve_engine.common.database import DatabaseManager


ADMIN_SECRET = "test-admin-secret-for-unit-tests"
ADMIN_PASSWORD = "test-admin-password"
ADMIN_EMAIL = "ops@vuelve.cl"
SSO_SECRET = "test-sso-shared-secret"


def make_settings(**overrides) -> VuelveSettings:
    defaults = {
        "admin_panel_secret": ADMIN_SECRET,
        "admin_panel_password": ADMIN_PASSWORD,
        "sso_secret": SSO_SECRET,
        "db_url": "sqlite+aiosqlite://",
    }
    defaults.update(overrides)
    return VuelveSettings(**defaults)


class FakeClock:
    """Manually advanced clock for counters."""

    def __init__(self, start: float = 1_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def app(monkeypatch):
    """Create a test app with in-memory DB."""
    monkeypatch.setenv("VUELVE_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("VUELVE_ADMIN_PANEL_SECRET", ADMIN_SECRET)
    monkeypatch.setenv("VUELVE_ADMIN_PANEL_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("VUELVE_SSO_SECRET", SSO_SECRET)

    # Clear caches and singletons so new env vars take effect
    from vuelve_engine.common.config import get_settings
    get_settings.cache_clear()

    from vuelve_engine.deps import reset_singletons
    reset_singletons()

    from vuelve_engine.app import create_app
    yield create_app()

    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from vuelve_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()

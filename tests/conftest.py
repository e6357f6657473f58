"""Shared test fixtures for MER automation."""

import pytest
from httpx import ASGITransport, AsyncClient


API_KEY = "test-admin-api-key"

HEADER = [
    "Tool Usage Export",
    "Generated 2024-06-01",
    "Date\tTime\tGroup\tUser\tTool\tUse",
]
FOOTER = "End of report"


def usage_export(*lines: str) -> str:
    """A usage export file: three header lines, the body, one footer line."""
    return "\n".join([*HEADER, *lines, FOOTER]) + "\n"


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def log_root(tmp_path):
    root = tmp_path / "invoices"
    root.mkdir()
    return root


@pytest.fixture
def write_usage(log_root):
    """Write one export of tab-separated usage lines under ``<month>/inv/``."""

    def write(month_id: str, *lines: str, name: str = "export-1.txt"):
        usage_dir = log_root / month_id / "inv"
        usage_dir.mkdir(parents=True, exist_ok=True)
        path = usage_dir / name
        path.write_text(usage_export(*lines), encoding="utf-8")
        return path

    return write


@pytest.fixture
async def file_db(tmp_path):
    """File-backed database; each session gets its own connection."""
    from mer_automation.common.config import MerSettings
    from mer_automation.common.database import DatabaseManager

    manager = DatabaseManager(
        MerSettings(db_url=f"sqlite+aiosqlite:///{tmp_path / 'mer.db'}")
    )
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def app(tmp_path, log_root, monkeypatch):
    """Create a test app with in-memory DB and temporary data paths."""
    monkeypatch.setenv("MER_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("MER_API_KEY", API_KEY)
    monkeypatch.setenv("MER_LOG_ROOT", str(log_root))
    monkeypatch.setenv("MER_EXEMPTIONS_PATH", str(tmp_path / "exemptions.json"))
    monkeypatch.setenv("MER_EMAIL_PROVIDER", "")

    # Clear caches and singletons so new env vars take effect
    from mer_automation.common.config import get_settings
    get_settings.cache_clear()

    from mer_automation.deps import reset_singletons
    reset_singletons()

    from mer_automation.app import create_app
    yield create_app()

    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from mer_automation.deps import get_basket_service, get_db
    db = get_db()
    await db.init()
    await db.create_all()
    async with db.get_session() as session:
        await get_basket_service().ensure_tables(session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Mer-Api-Key": API_KEY}

import os
import sys
import tempfile

_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

_SQLITE_PATH = Path(tempfile.gettempdir()) / "billing_test.db"
TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{_SQLITE_PATH}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from billing import database
from billing.core.tenant import TenantContext
from billing.models import Customer, Expense, Project, TimeEntry


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if url.drivername.startswith("sqlite"):
        # start every session from an empty file so migrations run from scratch
        if url.database and os.path.exists(url.database):
            os.remove(url.database)
        return

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def ctx() -> TenantContext:
    return TenantContext(company_id=1, user_id="admin", role="SUPERADMIN")


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from billing.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    def _headers(company_id: int = 1, user_id: str = "admin", role: str = "SUPERADMIN") -> dict:
        resp = client.post("/auth/token", json={"user_id": user_id, "company_id": company_id, "role": role})
        assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
        data = resp.json()
        assert "access_token" in data, f"token response missing access_token: {data}"
        return {"X-Company-Id": str(company_id), "Authorization": f"Bearer {data['access_token']}"}

    return _headers


def _persist(row):
    session = database.SessionLocal()
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
    finally:
        session.close()


@pytest.fixture
def customer_factory():
    def _create(company_id: int = 1, **overrides) -> Customer:
        fields = {
            "company_id": company_id,
            "name": "Acme GmbH",
            "country": "AT",
            "tax_exempt": False,
            "reverse_charge": False,
            "default_tax_rate": "standard_20",
            "payment_terms_days": 14,
            "currency": "EUR",
        }
        fields.update(overrides)
        return _persist(Customer(**fields))

    return _create


@pytest.fixture
def project_factory():
    counter = {"n": 0}

    def _create(customer_id: str, company_id: int = 1, **overrides) -> Project:
        counter["n"] += 1
        fields = {
            "company_id": company_id,
            "customer_id": customer_id,
            "name": f"Project {counter['n']}",
            "code": f"P-{counter['n']:03d}",
            "hourly_rate": Decimal("100.00"),
            "billing_type": "hourly",
        }
        fields.update(overrides)
        return _persist(Project(**fields))

    return _create


@pytest.fixture
def time_entry_factory():
    def _create(project_id: str, company_id: int = 1, **overrides) -> TimeEntry:
        fields = {
            "company_id": company_id,
            "user_id": "employee-1",
            "project_id": project_id,
            "date": date(2024, 3, 15),
            "hours": Decimal("2.00"),
            "description": "Work",
            "hourly_rate": None,
            "is_billable": True,
            "status": "approved",
        }
        fields.update(overrides)
        return _persist(TimeEntry(**fields))

    return _create


@pytest.fixture
def expense_factory():
    def _create(company_id: int = 1, **overrides) -> Expense:
        fields = {
            "company_id": company_id,
            "user_id": "employee-1",
            "project_id": None,
            "date": date(2024, 3, 15),
            "amount": Decimal("50.00"),
            "tax_rate": "standard_20",
            "tax_amount": Decimal("10.00"),
            "category": "materials",
            "description": None,
            "merchant": None,
            "is_reimbursable": True,
            "status": "approved",
        }
        fields.update(overrides)
        return _persist(Expense(**fields))

    return _create

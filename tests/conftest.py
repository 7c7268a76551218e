"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Every test starts from freshly created
tables, which are dropped again afterwards.
"""

import os

# Point the application at SQLite before anything imports the
# settings, so the module-level engine is never built for Postgres.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from invoice_ledger.main import app
from invoice_ledger.models.base import Base, configure_sqlite, get_db
from invoice_ledger.schemas.invoice import InvoiceInput


# Use SQLite for tests: no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = configure_sqlite(create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
))

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

USER_ID = 1


@pytest.fixture(autouse=True)
def setup_database():
    """
    Create all tables before each test, drop them after.

    autouse=True means every test gets this automatically.
    This ensures each test starts with a clean database.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    We override the get_db dependency so the FastAPI app
    uses our test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, headers={"X-User-Id": str(USER_ID)})
    app.dependency_overrides.clear()


def invoice_payload(
    client_name: str = "Acme",
    rate: str = "1000",
    quantity: str = "1",
    invoice_date: str = "2024-05-01",
    **overrides,
) -> dict:
    """A valid invoice body; subtotal = quantity x rate, GST 18%."""
    payload = {
        "client_name": client_name,
        "items": [
            {"name": "Consulting", "quantity": quantity, "rate": rate, "unit": "hrs"},
        ],
        "bill_from": {"name": "Studio", "street_address": "1 Main Road"},
        "bill_to": {"street_address": "9 Market Street", "city": "Pune"},
        "invoice_date": invoice_date,
    }
    payload.update(overrides)
    return payload


def make_invoice_input(**kwargs) -> InvoiceInput:
    return InvoiceInput.model_validate(invoice_payload(**kwargs))


@pytest.fixture
def invoice_body():
    """Factory for JSON invoice bodies."""
    return invoice_payload


@pytest.fixture
def invoice_input():
    """Factory for validated InvoiceInput objects."""
    return make_invoice_input

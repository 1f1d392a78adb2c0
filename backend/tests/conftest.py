"""Shared test fixtures."""

import os

# Keep the app's own engine off the filesystem; tests use their own session below
os.environ.setdefault("TAXTRACK_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import datetime
from decimal import Decimal
import uuid

from taxtrack.config import settings
from taxtrack.database import Base, get_db
from taxtrack.main import app
from taxtrack.models.categorization_rule import CategorizationRule
from taxtrack.models.category import Category
from taxtrack.models.transaction import Transaction, TransactionType, BusinessType
from taxtrack.services import import_service
from taxtrack.services.deduplication_service import generate_transaction_fingerprint


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def import_dirs(tmp_path, monkeypatch):
    """Point the import inbox and archive directories at a temp dir."""
    monkeypatch.setattr(settings, "import_inbox_path", str(tmp_path / "inbox"))
    monkeypatch.setattr(settings, "import_processed_path", str(tmp_path / "processed"))
    monkeypatch.setattr(settings, "import_failed_path", str(tmp_path / "failed"))
    import_service.PENDING_IMPORTS.clear()
    yield tmp_path
    import_service.PENDING_IMPORTS.clear()


@pytest.fixture
def make_transaction(db_session):
    """Factory for stored transactions with a fingerprint and sensible defaults."""
    def _make(
        date=datetime(2024, 5, 10),
        amount="-12.50",
        description="TFL TRAVEL CHARGE",
        tags=None,
        type=TransactionType.unreviewed,
        business_type=None,
        category=None,
        fingerprint=True,
        reference=None,
    ):
        amount = Decimal(amount)
        txn = Transaction(
            id=str(uuid.uuid4()),
            fingerprint=(
                generate_transaction_fingerprint(date, amount, description) if fingerprint else None
            ),
            date=date,
            description=description,
            merchant=description,
            reference=reference,
            amount=amount,
            type=type,
            business_type=business_type,
            category=category,
            tags=tags or [],
        )
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn

    return _make


@pytest.fixture
def sample_transaction(make_transaction):
    """A live-feed expense with no category."""
    return make_transaction()


@pytest.fixture
def sample_rule(db_session):
    """Keyword rule mapping Uber rides to travel costs."""
    rule = CategorizationRule(
        id=str(uuid.uuid4()),
        keyword="uber",
        type=TransactionType.business,
        business_type=BusinessType.expense,
        category="Travel & Vehicle",
    )
    db_session.add(rule)
    db_session.commit()
    db_session.refresh(rule)
    return rule


@pytest.fixture
def sample_category(db_session):
    """SA103F box 20 expense category."""
    category = Category(
        id=str(uuid.uuid4()),
        code="E20",
        label="Travel & Vehicle",
        description="Car, van and travel expenses",
        type="Expense",
        hmrc_box="20",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category

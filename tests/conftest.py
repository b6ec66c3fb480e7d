"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fintrack.api.main import create_app
from fintrack.infrastructure.database.models import Base
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.datasets.loader import DatasetPatternStore
from fintrack.domain.models import Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed clock for domain tests
NOW = datetime(2024, 6, 15, 12, 0, 0)


def make_transaction(
    amount,
    merchant: str = "Test Merchant",
    date: datetime = NOW,
    type: str = "expense",
    category: str = "Other",
    is_fraudulent: bool = False,
    user_id: str = "user_1",
) -> Transaction:
    return Transaction(
        user_id=user_id,
        date=date,
        amount=Decimal(str(amount)),
        merchant=merchant,
        category=category,
        type=type,
        is_fraudulent=is_fraudulent,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_txn():
    """Factory for domain transactions dated at the fixed test clock by default"""
    return make_transaction


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def dataset_store() -> DatasetPatternStore:
    """Empty pattern cache; tests fill it when they need dataset patterns"""
    return DatasetPatternStore()


@pytest.fixture
def client(db: Session, dataset_store: DatasetPatternStore) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(dataset_store=dataset_store)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Three months of salary plus weekly grocery spending, ending at NOW"""
    transactions = []

    # Monthly salary deposits
    for month in range(3):
        transactions.append(
            make_transaction(
                3000,
                merchant="Employer Payroll",
                date=NOW - timedelta(days=5 + month * 25),
                type="income",
                category="Income",
            )
        )

    # Weekly groceries
    for week in range(12):
        transactions.append(
            make_transaction(
                250,
                merchant="Whole Foods",
                date=NOW - timedelta(days=3 + week * 7),
                category="Groceries",
            )
        )

    return transactions

"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database. API tests talk to the
FastAPI app through ``TestClient`` with ``get_db`` overridden; repository and
service tests use ``db_session`` directly.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expense_budget.database import get_db, init_db
from expense_budget.main import app
from expense_budget.services.repository import (
    BudgetItemRepository,
    EventRepository,
    ExpenseCategoryRepository,
)


def months_payload(amounts, field):
    """``{"months": [...]}`` for months 1..12; missing months default to 0."""
    return {
        "months": [
            {"fiscalMonth": month, field: amounts.get(month, 0)}
            for month in range(1, 13)
        ]
    }


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create a fresh database session for each test"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORY-LEVEL FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_event(db_session):
    return EventRepository(db_session).create(
        {"event_code": "1Q", "event_name": "1Q", "event_order": 1}
    )


@pytest.fixture
def sample_category(db_session):
    return ExpenseCategoryRepository(db_session).create(
        {"expense_category_code": "TRAVEL", "expense_category_name": "旅費交通費"}
    )


@pytest.fixture
def sample_item(db_session, sample_event, sample_category):
    return BudgetItemRepository(db_session).create({
        "fiscal_year": 2025,
        "budget_item_code": "BI-001",
        "budget_item_name": "出張旅費",
        "event_id": sample_event.event_id,
        "expense_category_id": sample_category.expense_category_id,
    })


# ═══════════════════════════════════════════════════════════════════════════════
# API-LEVEL FACTORIES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def create_event(client):
    def _create(code="1Q", name=None, order=1):
        response = client.post("/events", json={
            "eventCode": code,
            "eventName": name or code,
            "eventOrder": order,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_category(client):
    def _create(code="TRAVEL", name="旅費交通費"):
        response = client.post("/expense-categories", json={
            "expenseCategoryCode": code,
            "expenseCategoryName": name,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_item(client):
    def _create(event, category, code="BI-001", name="出張旅費", fiscal_year=2025):
        response = client.post("/budget-items", json={
            "fiscalYear": fiscal_year,
            "eventId": event["eventId"],
            "expenseCategoryId": category["expenseCategoryId"],
            "budgetItemCode": code,
            "budgetItemName": name,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return _create

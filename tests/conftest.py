import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import salad_cart.db as db
from salad_cart.app_factory import create_app
from salad_cart.catalog.gateway import StaticCatalogGateway
from salad_cart.models import Base
from salad_cart.services.carts import clear_cache


# Minimal catalog shared by the tests. Field spellings follow the remote
# document service ("price", "fats", ingredient lists in several shapes).
INGREDIENTS = {
    "lettuce": {"name": "Lettuce", "price": 0.5, "calories": 15, "protein": 1, "carbs": 3, "fats": 0.2},
    "cheese": {"name": "Cheese", "price": 1.5, "calories": 110, "protein": 7, "carbs": 1, "fats": 9},
    "tomato": {"name": "Tomato", "price": 0.75, "calories": 20, "protein": 1, "carbs": 4, "fats": 0.1},
    "feta": {"name": "Feta", "price": 1.25, "calories": 75, "protein": 4, "carbs": 1, "fats": 6},
}

COMPOSITES = {
    "garden": {"name": "Garden Salad", "price": 5.0, "ingredients": {"lettuce": 1, "cheese": 0}},
    "greek": {"name": "Greek Salad", "price": 7.0, "ingredients": ["lettuce", "tomato", "feta"]},
}

SAVED_COMPOSITES = {
    "mine": {
        "name": "My Salad",
        "total_price": 6.5,
        "ingredients": [{"id": "lettuce", "quantity": 2}, {"id": "feta", "quantity": 1}],
    },
}


@pytest.fixture
def gateway():
    """Fresh in-memory catalog for each test."""
    return StaticCatalogGateway(
        ingredients=INGREDIENTS,
        composites=COMPOSITES,
        saved_composites=SAVED_COMPOSITES,
    )


@pytest.fixture
def mirror_engine():
    """In-memory SQLite DB with the mirror tables.

    Uses StaticPool so all connections share the same in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(mirror_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=mirror_engine)


@pytest.fixture
def client(gateway, mirror_engine, session_factory, monkeypatch):
    """Shared FastAPI TestClient using the in-memory catalog and mirror DB."""
    # Patch the db module used by the app
    monkeypatch.setattr(db, "engine", mirror_engine)
    monkeypatch.setattr(db, "SessionLocal", session_factory)

    # Clear cart cache before each test
    clear_cache()

    app = create_app(gateway=gateway)

    with TestClient(app) as test_client:
        yield test_client

    # Clear cart cache after each test
    clear_cache()

"""
Kafiza Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file under pytest's tmp_path,
       reached through a real ConnectionManager (aiosqlite driver). The HTTP
       client swaps that manager into the app with dependency_overrides.

Fixture Hierarchy (all function-scoped):
    connections          ConnectionManager on a fresh SQLite file, tables created
    ├── farmers          Farmer repository
    ├── roasters         Roaster repository
    └── test_client      HTTPX AsyncClient over ASGITransport
    farmer_payload       Valid POST /api/farmers body (camelCase)
    roaster_payload      Valid POST /api/roasters body (camelCase)
"""

import os

# Override settings for testing BEFORE any kafiza imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DATABASE_NAME"] = "kafiza-test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CORS_ORIGINS"] = "*"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import kafiza.models  # noqa: F401
from kafiza.database import Base, ConnectionManager, get_connection_manager
from kafiza.services.farmers import farmer_repository
from kafiza.services.roasters import roaster_repository

SQLITE_URL = "sqlite+aiosqlite://"


def make_manager(database_path, **kwargs) -> ConnectionManager:
    """ConnectionManager on a SQLite file with fast, single-shot connects."""
    options = {"connect_attempts": 1, "connect_min_wait": 0, "connect_max_wait": 1, "connect_timeout": 5}
    options.update(kwargs)
    return ConnectionManager(url=SQLITE_URL, database_name=str(database_path), **options)


@pytest_asyncio.fixture
async def connections(tmp_path):
    """A connected manager whose database already has every table."""
    manager = make_manager(tmp_path / "kafiza.db")
    engine = await manager.get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def farmers(connections):
    return farmer_repository(connections)


@pytest.fixture
def roasters(connections):
    return roaster_repository(connections)


@pytest_asyncio.fixture
async def test_client(connections):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    from kafiza.main import app

    app.dependency_overrides[get_connection_manager] = lambda: connections
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def farmer_payload():
    return {
        "name": "João Silva",
        "farmName": "Fazenda Boa Vista",
        "location": {"state": "Minas Gerais", "city": "Carmo de Minas"},
        "coffeeTypes": ["Arabica", "Bourbon Amarelo"],
        "certifications": ["Organic"],
        "contact": {"email": "Joao@BoaVista.com.br", "phone": "+55 35 99999-0000"},
        "description": "Family farm at 1,100m in the Mantiqueira range.",
        "rating": 4.5,
    }


@pytest.fixture
def roaster_payload():
    return {
        "businessName": "Flight Coffee",
        "ownerName": "Ana Costa",
        "location": {"city": "Wellington", "region": "Wellington", "address": "119 Hania St"},
        "contact": {"email": "ana@flightcoffee.co.nz", "phone": "+64 4 385 0000"},
        "businessType": "roastery",
        "description": "Specialty roaster sourcing direct trade lots.",
        "subscriptionTier": "premium",
    }

from contextlib import contextmanager
from datetime import timedelta
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.session import get_async_db, get_session_factory

# Import all models so metadata includes every table
from services.communications_service import models as _communications_models  # noqa: F401
from services.customers_service import models as _customers_models  # noqa: F401
from services.loyalty_service import models as _loyalty_models  # noqa: F401
from services.store_service import models as _store_models  # noqa: F401

settings = get_settings()

CUSTOMER_ID = "cust-0001"
ADMIN_ID = "admin-0001"


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_token(user_id: str = CUSTOMER_ID, role: str = "customer", **claims) -> str:
    """Sign a storefront login token the way the auth flow issues them."""
    payload = {
        "sub": user_id,
        "role": role,
        "name": claims.pop("name", "Budi Santoso"),
        "phone": claims.pop("phone", "081234567890"),
        "exp": utc_now() + timedelta(hours=1),
        **claims,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers_for(user_id: str = CUSTOMER_ID, role: str = "customer", **claims) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role, **claims)}"}


@pytest.fixture
def customer_headers() -> dict:
    return auth_headers_for(CUSTOMER_ID)


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers_for(ADMIN_ID, role="admin", name="Admin Toko")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """A fresh SQLite database per test, with every table created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test body and the app under test."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# External HTTP services
# ---------------------------------------------------------------------------


@pytest.fixture
def route_distance_m() -> dict:
    """Driving distance (metres) the fake routing service answers with."""
    return {"value": 5000}


@pytest.fixture
def routing_client(route_distance_m):
    from services.store_service.services.shipping import RoutingClient

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"code": "Ok", "routes": [{"distance": route_distance_m["value"]}]},
        )

    return RoutingClient(
        base_url="http://osrm.test/route/v1/driving",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def geocoder_results() -> dict:
    """Nominatim answers keyed by a substring of the query."""
    return {
        "Jl. Kaliurang": [
            {
                "lat": "-7.7500",
                "lon": "110.3900",
                "display_name": "Jalan Kaliurang, Sleman, Yogyakarta, Indonesia",
                "address": {"city": "Sleman", "country": "Indonesia"},
            }
        ]
    }


@pytest.fixture
def geocoder(geocoder_results):
    from services.store_service.services.shipping import GeocoderClient

    def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q", "")
        for needle, results in geocoder_results.items():
            if needle.lower() in query.lower():
                return httpx.Response(200, json=results)
        return httpx.Response(200, json=[])

    return GeocoderClient(
        base_url="http://nominatim.test/search",
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Service clients
# ---------------------------------------------------------------------------


@contextmanager
def override_db(app, db_session, session_factory):
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


async def _client_for(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def store_client(
    db_session, session_factory, geocoder, routing_client
) -> AsyncGenerator[AsyncClient, None]:
    from services.store_service.app.main import app
    from services.store_service.services.shipping import (
        get_geocoder,
        get_routing_client,
    )

    with override_db(app, db_session, session_factory):
        app.dependency_overrides[get_geocoder] = lambda: geocoder
        app.dependency_overrides[get_routing_client] = lambda: routing_client
        async with await _client_for(app) as ac:
            yield ac


@pytest_asyncio.fixture
async def loyalty_client(db_session, session_factory) -> AsyncGenerator[AsyncClient, None]:
    from services.loyalty_service.app.main import app

    with override_db(app, db_session, session_factory):
        async with await _client_for(app) as ac:
            yield ac


@pytest_asyncio.fixture
async def customers_client(db_session, session_factory) -> AsyncGenerator[AsyncClient, None]:
    from services.customers_service.app.main import app

    with override_db(app, db_session, session_factory):
        async with await _client_for(app) as ac:
            yield ac


@pytest_asyncio.fixture
async def communications_client(
    db_session, session_factory
) -> AsyncGenerator[AsyncClient, None]:
    from services.communications_service.app.main import app

    with override_db(app, db_session, session_factory):
        async with await _client_for(app) as ac:
            yield ac

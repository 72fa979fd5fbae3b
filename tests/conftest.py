from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core import database
from app.core.database import get_db


ACQUISITION_ROW = {
    "id": 1,
    "acquisition_id": 1,
    "acquiring_object_id": "c:11",
    "acquired_object_id": "c:10",
    "term_code": None,
    "price_amount": Decimal("20000000.0"),
    "price_currency_code": "USD",
    "acquired_at": date(2007, 5, 29),
    "source_url": "http://venturebeat.com/2007/05/30/fox-interactive-confirms-purchase-of-photobucket-and-flektor/",
    "source_description": "Fox Interactive confirms purchase of Photobucket and Flektor",
    "created_at": datetime(2007, 5, 31, 21, 19, 54),
    "updated_at": datetime(2008, 5, 21, 18, 23, 44),
    "acquired_id": "c:10",
    "acquired_name": "Flektor",
    "acquired_category": "games_video",
    "acquired_status": "acquired",
    "acquired_country": "USA",
    "acquiring_id": "c:11",
    "acquiring_name": "Fox Interactive Media",
    "acquiring_category": "web",
    "acquiring_status": "operating",
    "acquiring_country": "USA",
}

META_ROW = {
    "total": 9562,
    "min": Decimal("1.0"),
    "max": Decimal("2600000000000.0"),
    "avg": Decimal("388619054.84448860"),
    "sum": Decimal("3715975402423.0"),
    "earliest_date": date(2007, 5, 29),
    "latest_date": date(2007, 5, 29),
}

CURRENCY_ROWS = [{"price_currency_code": "USD", "count": 1}]

COMPANY_ROW = {"distinct_acquiring_companies": 1, "distinct_acquired_companies": 1}

MISSING_ID = 1234


def default_rows(sql, params):
    """Canned rows picked by statement, the way Postgres would answer them."""
    if "MIN(price_amount) AS min" in sql:
        return [META_ROW]
    if "GROUP BY price_currency_code" in sql:
        return CURRENCY_ROWS
    if "COUNT(DISTINCT acquired_object_id)" in sql:
        return [COMPANY_ROW]
    if params == [MISSING_ID] or params == [None]:
        return []
    return [ACQUISITION_ROW]


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def scalar(self):
        if not self._rows:
            return None
        return next(iter(self._rows[0].values()))


class FakeConnection:
    """Stands in for an AsyncConnection; records every (sql, params) pair."""

    def __init__(self, responder=default_rows):
        self.responder = responder
        self.calls = []

    async def exec_driver_sql(self, sql, params=None):
        params = list(params or ())
        self.calls.append((sql, params))
        rows = self.responder(sql, params)
        if isinstance(rows, Exception):
            raise rows
        return FakeResult(rows)


@pytest.fixture
def fake_db():
    return FakeConnection()


# Client with the fake connection injected for every request
@pytest_asyncio.fixture(scope="function")
async def client(fake_db):
    async def override_get_db():
        yield fake_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Pool checkouts outside of FastAPI dependencies get the fake connection too
@pytest.fixture
def fake_connect(monkeypatch, fake_db):
    @asynccontextmanager
    async def connect():
        yield fake_db

    monkeypatch.setattr(database, "connect", connect)
    return fake_db

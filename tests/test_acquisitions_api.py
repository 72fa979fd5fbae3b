from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from app.core.errors import QueryExecutionError


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Acquisitions API"}


@pytest.mark.asyncio
async def test_list_acquisitions(client: AsyncClient, fake_db):
    """Filters from the query string reach the data store in the fixed order"""
    response = await client.get(
        "/v1/acquisitions",
        params={
            "currency": "GBP",
            "term_code": "cash",
            "sort_by": "acquired_at",
            "sort_order": "DESC",
            "limit": 2,
            "offset": 1,
        },
    )
    assert response.status_code == 200
    data = response.json()

    assert data["rows"][0]["id"] == 1
    assert data["rows"][0]["price_amount"] == 20000000.0
    assert data["rows"][0]["acquired_at"] == "2007-05-29"
    assert data["rows"][0]["acquiring_company"]["name"] == "Fox Interactive Media"
    assert data["metadata"]["totalCount"] == 9562
    assert data["metadata"]["currencyCounts"] == [{"currency": "USD", "count": 1}]

    listing_sql, listing_params = fake_db.calls[0]
    assert listing_params == ["cash", "GBP", 2, 1]
    assert "ORDER BY acquired_at DESC, id ASC" in listing_sql


@pytest.mark.asyncio
async def test_list_rejects_unknown_sort_field(client: AsyncClient, fake_db):
    response = await client.get("/v1/acquisitions", params={"sort_by": "id; DROP"})
    assert response.status_code == 422
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_list_failure_is_opaque(client: AsyncClient, fake_db):
    fake_db.responder = lambda sql, params: RuntimeError("password authentication failed")

    response = await client.get("/v1/acquisitions")

    assert response.status_code == 500
    assert response.json() == {"detail": QueryExecutionError.message}
    assert "password" not in response.text


@pytest.mark.asyncio
async def test_list_with_empty_aggregates_reports_null_total(client: AsyncClient, fake_db):
    fake_db.responder = lambda sql, params: [{}] if "COUNT" in sql else []

    response = await client.get("/v1/acquisitions")

    assert response.status_code == 200
    assert response.json()["metadata"]["totalCount"] is None


@pytest.mark.asyncio
async def test_get_acquisition(client: AsyncClient):
    response = await client.get("/v1/acquisitions/1")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == 1
    assert data["acquired_company"] == {
        "id": "c:10",
        "name": "Flektor",
        "category_code": "games_video",
        "status": "acquired",
        "country_code": "USA",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("acquisition_id", ["1234", "not-a-number"])
async def test_get_acquisition_not_found(client: AsyncClient, acquisition_id):
    response = await client.get(f"/v1/acquisitions/{acquisition_id}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Acquisition not found"


@pytest.mark.asyncio
async def test_graphql_typename(client: AsyncClient):
    response = await client.post("/v1/acquisitions", json={"query": "query { __typename }"})
    assert response.status_code == 200
    assert response.json() == {"data": {"__typename": "Query"}}


@pytest.mark.asyncio
async def test_graphql_acquisitions(client: AsyncClient, fake_db):
    response = await client.post(
        "/v1/acquisitions",
        json={
            "query": "query($from: DateTime) { acquisitions(acquired_from: $from) "
            "{ rows { id price } metadata { totalCount earliestDate } } }",
            "variables": {"from": "2001-01-01"},
        },
    )
    assert response.status_code == 200
    data = response.json()["data"]["acquisitions"]
    assert data["rows"] == [{"id": "1", "price": "20000000.0 USD"}]
    assert data["metadata"] == {"totalCount": 9562, "earliestDate": "2007-05-29"}
    assert fake_db.calls[0][0].count("acquired_at >= $1") == 1


@pytest.mark.asyncio
async def test_graphql_db_failure_is_reported_as_error(client: AsyncClient, fake_db):
    fake_db.responder = lambda sql, params: RuntimeError("relation does not exist")

    response = await client.post(
        "/v1/acquisitions",
        json={"query": "{ acquisitions { metadata { totalCount } } }"},
    )
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["message"] == QueryExecutionError.message


@pytest.mark.asyncio
async def test_llm_missing_prompt(client: AsyncClient):
    response = await client.post("/v1/llm/acquisitions", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing prompt"}


@pytest.mark.asyncio
async def test_llm_invalid_output_is_opaque(client: AsyncClient, monkeypatch, fake_connect):
    from app.ai_feature import client as llm_client

    async def run_llm(user_prompt, system_prompt):
        return "not a JSON string"

    monkeypatch.setattr(llm_client, "run_llm", run_llm)

    response = await client.post("/v1/llm/acquisitions", json={"prompt": "hello"})
    assert response.status_code == 502
    assert "detail" in response.json()
    assert fake_connect.calls == []


@pytest.mark.asyncio
async def test_llm_prompt_roundtrip(client: AsyncClient, monkeypatch, fake_connect):
    from app.ai_feature import client as llm_client

    async def run_llm(user_prompt, system_prompt):
        return '{"queryText": "{ acquisitions(limit: 1) { metadata { totalCount } } }", "variables": {}}'

    monkeypatch.setattr(llm_client, "run_llm", run_llm)

    response = await client.post("/v1/llm/acquisitions", json={"prompt": "How many deals?"})
    assert response.status_code == 200
    assert response.json() == {
        "llmGeneratedQuery": {
            "queryText": "{ acquisitions(limit: 1) { metadata { totalCount } } }",
            "variables": {},
        },
        "response": {"data": {"acquisitions": {"metadata": {"totalCount": 9562}}}},
    }
    assert fake_connect.calls[0][1] == [1, 0]


@pytest.mark.asyncio
async def test_llm_request_without_body(client: AsyncClient):
    response = await client.post("/v1/llm/acquisitions")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing prompt"}


@pytest.mark.asyncio
async def test_graphql_acquired_from_accepts_datetime(client: AsyncClient, fake_db):
    response = await client.post(
        "/v1/acquisitions",
        json={
            "query": "query($from: DateTime) { acquisitions(acquired_from: $from) "
            "{ metadata { totalCount } } }",
            "variables": {"from": "2001-01-15T10:30:00Z"},
        },
    )
    body = response.json()
    assert "errors" not in body
    assert body["data"]["acquisitions"]["metadata"]["totalCount"] == 9562
    assert fake_db.calls[0][1][0] == datetime(2001, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_graphql_bad_arguments_get_a_stable_message(client: AsyncClient, fake_db):
    response = await client.post(
        "/v1/acquisitions",
        json={"query": "{ acquisitions(limit: -1) { metadata { totalCount } } }"},
    )
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["message"] == "Invalid acquisitions arguments"
    assert "pydantic" not in response.text
    assert fake_db.calls == []

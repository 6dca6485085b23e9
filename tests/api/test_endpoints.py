"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.routes.tables import get_deck_source
from api.sources import StaticDeckSource

DECK_TEXT = 'deck:\n  - "A,H"\n  - "K,S"\n'


@pytest_asyncio.fixture
async def client(memory_store):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def session_id(client):
    """Start a session and return its ID."""
    response = await client.post("/api/tables/new")
    return response.json()["session_id"]


async def first_table(client, session_id):
    response = await client.get("/api/tables/", headers={"X-Session-ID": session_id})
    return response.json()["tables"][0]


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health check endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_session_has_one_table(client, session_id):
    """Test a new session starts with one empty table."""
    table = await first_table(client, session_id)
    assert table["name"] == "Table 1"
    assert table["cards_remaining"] == 0
    assert table["dealer_cards_remaining"] == 52
    assert table["drawn_cards"] == []
    assert table["result"] is None


@pytest.mark.asyncio
async def test_unknown_session(client):
    """Test unsigned or unknown session IDs are rejected."""
    response = await client.get("/api/tables/", headers={"X-Session-ID": "bogus"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_table(client, session_id):
    """Test creating a named table."""
    response = await client.post(
        "/api/tables/",
        json={"name": "Practice", "with_player_deck": True},
        headers={"X-Session-ID": session_id},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Practice"
    assert response.json()["cards_remaining"] == 52

    response = await client.get("/api/tables/", headers={"X-Session-ID": session_id})
    assert len(response.json()["tables"]) == 2


@pytest.mark.asyncio
async def test_draw_from_empty_deck(client, session_id):
    """Test drawing with no player deck is a conflict."""
    table = await first_table(client, session_id)
    response = await client.post(
        f"/api/tables/{table['id']}/draw", headers={"X-Session-ID": session_id}
    )
    assert response.status_code == 409
    assert "No cards left" in response.json()["detail"]


@pytest.mark.asyncio
async def test_standard_deck_then_draw(client, session_id):
    """Test drawing from a standard deck."""
    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}
    await client.post(f"/api/tables/{table['id']}/deck/standard", headers=headers)

    response = await client.post(f"/api/tables/{table['id']}/draw-both", headers=headers)
    assert response.status_code == 200
    drawn = response.json()["tables"][0]
    assert drawn["cards_remaining"] == 51
    assert drawn["dealer_cards_remaining"] == 51
    assert len(drawn["drawn_cards"]) == 1
    assert len(drawn["dealer_hand"]) == 1
    assert drawn["input"] == drawn["drawn_cards"][0]["token"]


@pytest.mark.asyncio
async def test_dealer_draw_and_reset(client, session_id):
    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}
    response = await client.post(f"/api/tables/{table['id']}/dealer-draw", headers=headers)
    assert response.json()["tables"][0]["dealer_cards_remaining"] == 51

    response = await client.post(
        f"/api/tables/{table['id']}/dealer-deck/reset", headers=headers
    )
    reset = response.json()["tables"][0]
    assert reset["dealer_cards_remaining"] == 52
    assert reset["dealer_hand"] == []


@pytest.mark.asyncio
async def test_load_deck(client, session_id):
    """Test loading a deck description from the configured source."""
    app.dependency_overrides[get_deck_source] = lambda: StaticDeckSource(DECK_TEXT)
    table = await first_table(client, session_id)
    response = await client.post(
        f"/api/tables/{table['id']}/deck/load", headers={"X-Session-ID": session_id}
    )
    loaded = response.json()["tables"][0]
    assert loaded["cards_remaining"] == 2
    assert loaded["load_error"] is None
    assert loaded["is_loading"] is False


@pytest.mark.asyncio
async def test_load_deck_parse_error(client, session_id):
    """Test a bad description is reported on the table, not as an HTTP error."""
    app.dependency_overrides[get_deck_source] = lambda: StaticDeckSource("deck: []")
    table = await first_table(client, session_id)
    response = await client.post(
        f"/api/tables/{table['id']}/deck/load", headers={"X-Session-ID": session_id}
    )
    assert response.status_code == 200
    assert response.json()["tables"][0]["load_error"].startswith("Error loading deck: ")


@pytest.mark.asyncio
async def test_check(client, session_id):
    """Test scoring manual input."""
    table = await first_table(client, session_id)
    response = await client.post(
        f"/api/tables/{table['id']}/check",
        json={"input": "A,H A,S 9,D"},
        headers={"X-Session-ID": session_id},
    )
    assert response.status_code == 200
    checked = response.json()["tables"][0]
    assert checked["result"] == {"total": 21, "bust": False}
    assert checked["input"] == "A,H A,S 9,D"


@pytest.mark.asyncio
async def test_check_stored_input(client, session_id):
    """Test check without a body scores the stored input."""
    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}
    await client.put(
        f"/api/tables/{table['id']}/input", json={"input": "K,H Q,S 5,D"}, headers=headers
    )
    response = await client.post(f"/api/tables/{table['id']}/check", headers=headers)
    assert response.json()["tables"][0]["result"] == {"total": 25, "bust": True}


@pytest.mark.asyncio
async def test_check_malformed(client, session_id):
    """Test malformed input is rejected and the table is unchanged."""
    table = await first_table(client, session_id)
    response = await client.post(
        f"/api/tables/{table['id']}/check",
        json={"input": "A,H ZZ"},
        headers={"X-Session-ID": session_id},
    )
    assert response.status_code == 422
    assert "ZZ" in response.json()["detail"]
    assert (await first_table(client, session_id))["input"] == ""


@pytest.mark.asyncio
async def test_clear_and_reset(client, session_id):
    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}
    await client.post(f"/api/tables/{table['id']}/deck/standard", headers=headers)
    await client.post(f"/api/tables/{table['id']}/draw", headers=headers)

    response = await client.post(f"/api/tables/{table['id']}/clear", headers=headers)
    cleared = response.json()["tables"][0]
    assert cleared["drawn_cards"] == []
    assert cleared["cards_remaining"] == 51

    response = await client.post(f"/api/tables/{table['id']}/reset", headers=headers)
    assert response.json()["tables"][0]["cards_remaining"] == 0


@pytest.mark.asyncio
async def test_remove_table(client, session_id):
    """Test removing known and unknown tables."""
    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}

    response = await client.delete("/api/tables/missing", headers=headers)
    assert len(response.json()["tables"]) == 1

    response = await client.delete(f"/api/tables/{table['id']}", headers=headers)
    assert response.json()["tables"] == []


@pytest.mark.asyncio
async def test_session_survives_cache_loss(client, session_id):
    """Test a session is restored from the store after the cache is dropped."""
    import api.tables as tables_module

    table = await first_table(client, session_id)
    headers = {"X-Session-ID": session_id}
    await client.put(
        f"/api/tables/{table['id']}/input", json={"input": "7,C"}, headers=headers
    )
    tables_module._table_sessions.clear()

    assert (await first_table(client, session_id))["input"] == "7,C"


@pytest.mark.asyncio
async def test_end_session(client, session_id):
    """Test an ended session is gone."""
    headers = {"X-Session-ID": session_id}
    response = await client.delete("/api/tables/session", headers=headers)
    assert response.status_code == 204

    response = await client.get("/api/tables/", headers=headers)
    assert response.status_code == 404

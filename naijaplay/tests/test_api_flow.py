"""
End-to-end API flows against the test database.

Requests go through the real dependencies (get_db_session, JWT auth) and
services; the session factory is the one installed by the test_engine
fixture.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from naijaplay.api.main import app
from naijaplay.database.init_defaults import DEFAULT_SHOP_ITEMS, init_defaults


@pytest_asyncio.fixture
async def client(test_engine, session_factory):
    await init_defaults(session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


async def _register(client, username, password="Password1"):
    response = await client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.mark.asyncio
async def test_register_login_and_profile(client):
    user, headers = await _register(client, "ada")
    assert user["coins"] == 1000

    login = await client.post("/api/auth/login", json={"username": "ada", "password": "Password1"})
    assert login.status_code == 200
    assert login.json()["user"]["status"] == "ONLINE"

    bad = await client.post("/api/auth/login", json={"username": "ada", "password": "Wrong1234"})
    assert bad.status_code == 401

    profile = await client.get("/api/user/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["username"] == "ada"

    duplicate = await client.post(
        "/api/auth/register",
        json={"username": "ada", "email": "other@example.com", "password": "Password1"},
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_market_purchase_flow(client):
    _, headers = await _register(client, "ada")

    items = (await client.get("/api/market/items")).json()
    assert len(items) == len(DEFAULT_SHOP_ITEMS)
    prices = [item["price"] for item in items]
    assert prices == sorted(prices)

    affordable = next(item for item in items if item["price"] <= 1000)
    bought = await client.post("/api/market/buy", json={"item_id": affordable["id"]}, headers=headers)
    assert bought.status_code == 200, bought.text
    assert bought.json()["balance"] == 1000 - affordable["price"]

    again = await client.post("/api/market/buy", json={"item_id": affordable["id"]}, headers=headers)
    assert again.status_code == 409

    inventory = (await client.get("/api/market/inventory", headers=headers)).json()
    assert [entry["item_id"] for entry in inventory] == [affordable["id"]]

    missing = await client.post("/api/market/buy", json={"item_id": 999999}, headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_villages_and_quests(client):
    _, headers = await _register(client, "ada")

    villages = (await client.get("/api/villages?region=lagos")).json()
    assert [v["name"] for v in villages] == ["Eko Warriors"]

    joined = await client.post(f"/api/villages/{villages[0]['id']}/join", headers=headers)
    assert joined.status_code == 200
    assert joined.json()["village_id"] == villages[0]["id"]

    quests = (await client.get("/api/quests", headers=headers)).json()
    assert len(quests) == 3
    again = (await client.get("/api/quests", headers=headers)).json()
    assert [q["id"] for q in again] == [q["id"] for q in quests]

    claim = await client.post(f"/api/quests/{quests[0]['id']}/claim", headers=headers)
    assert claim.status_code == 409

    left = await client.post("/api/villages/leave", headers=headers)
    assert left.json()["village_id"] is None


@pytest.mark.asyncio
async def test_friends_and_messages(client):
    ada, ada_headers = await _register(client, "ada")
    bayo, bayo_headers = await _register(client, "bayo")

    blocked = await client.post(
        "/api/social/messages", json={"receiver_id": bayo["id"], "text": "hi"}, headers=ada_headers
    )
    assert blocked.status_code == 403

    request = await client.post(
        "/api/social/request", json={"username": "bayo"}, headers=ada_headers
    )
    assert request.status_code == 200
    request_id = request.json()["id"]

    incoming = (await client.get("/api/social/requests", headers=bayo_headers)).json()
    assert [r["id"] for r in incoming] == [request_id]

    accepted = await client.post(
        f"/api/social/request/{request_id}/respond", json={"accept": True}, headers=bayo_headers
    )
    assert accepted.status_code == 200

    # Both sides unlocked the friends achievement (+100 coins)
    ada_profile = (await client.get("/api/user/profile", headers=ada_headers)).json()
    assert ada_profile["coins"] == 1100
    assert "SQUAD_GOALS" in ada_profile["achievements"]

    sent = await client.post(
        "/api/social/messages",
        json={"receiver_id": bayo["id"], "text": "How far?"},
        headers=ada_headers,
    )
    assert sent.status_code == 200

    thread = (await client.get(f"/api/social/messages/{ada['id']}", headers=bayo_headers)).json()
    assert [m["text"] for m in thread] == ["How far?"]

    friends = (await client.get("/api/social/friends", headers=ada_headers)).json()
    assert friends["total_count"] == 1
    assert friends["items"][0]["username"] == "bayo"


@pytest.mark.asyncio
async def test_daily_reward_already_claimed_for_new_account(client):
    _, headers = await _register(client, "ada")
    response = await client.post("/api/user/daily-reward", headers=headers)
    assert response.status_code == 200
    assert response.json()["claimed"] is False


@pytest.mark.asyncio
async def test_leaderboards(client):
    await _register(client, "ada")

    users = (await client.get("/api/leaderboards/users/global")).json()
    assert users[0]["username"] == "ada"
    assert users[0]["rank"] == 1

    regions = (await client.get("/api/leaderboards/regions")).json()
    assert len(regions) == 5

    economy = (await client.get("/api/leaderboards/economy")).json()
    assert economy["user_count"] == 1
    assert economy["coins"]["total"] == 1000

import pytest

from services import roles
from tests.factories import create_battle, create_knight, create_member, create_stigma, login


async def _roster(db):
    seiya = await create_knight(db, "Seiya", minutes=1)
    shiryu = await create_knight(db, "Shiryu", minutes=2)
    ikki = await create_knight(db, "Ikki", minutes=3)
    athena = await create_stigma(db, "Athena")
    hades = await create_stigma(db, "Hades")
    return seiya, shiryu, ikki, athena, hades


@pytest.mark.asyncio
async def test_create_battle_requires_session(client):
    response = await client.post("/battles/", json={"winner_team": ["a"], "loser_team": ["b"]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_battle_validation(client, db):
    seiya, shiryu, ikki, athena, hades = await _roster(db)
    await create_member(db, "seiya@example.com", full_name="Seiya Fan")
    headers = await login(client, "seiya@example.com")

    valid = {
        "winner_team": [seiya.id, shiryu.id],
        "loser_team": [ikki.id],
        "winner_team_stigma": athena.id,
        "loser_team_stigma": hades.id,
        "tipo": "Athena",
    }
    cases = [
        ({"winner_team": []}, "Add at least one knight to each team"),
        ({"winner_team": [seiya.id, seiya.id]}, "A knight can only appear once per team"),
        ({"loser_team_stigma": None}, "Select a stigma for each team"),
        ({"tipo": "Guerra"}, "Unknown battle type"),
        ({"loser_team": ["missing-id"]}, "Unknown knights: missing-id"),
        ({"winner_team_stigma": "missing-id"}, "Unknown stigma"),
    ]
    for override, detail in cases:
        response = await client.post("/battles/", json={**valid, **override}, headers=headers)
        assert response.status_code == 400, override
        assert response.json()["detail"] == detail

    response = await client.post("/battles/", json=valid, headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["url"] == "seiya-shiryu-x-ikki"
    assert body["creator_name"] == "Seiya Fan"
    assert body["winner_team"] == [seiya.id, shiryu.id]


@pytest.mark.asyncio
async def test_list_battles_filters(client, db):
    seiya, shiryu, ikki, _, _ = await _roster(db)
    await create_battle(db, [seiya], [ikki], minutes=1, tipo="Athena")
    await create_battle(db, [shiryu], [ikki], minutes=2, tipo="Hades")
    await create_battle(db, [ikki], [seiya], minutes=3, tipo="Athena")

    body = (await client.get("/battles/")).json()
    assert body["total"] == 3
    assert [b["url"] for b in body["items"]] == ["ikki-x-seiya", "shiryu-x-ikki", "seiya-x-ikki"]

    body = (await client.get("/battles/", params={"tipo": "Athena", "search": "sei"})).json()
    assert [b["url"] for b in body["items"]] == ["ikki-x-seiya", "seiya-x-ikki"]

    body = (await client.get("/battles/", params={"tipo": "Todos", "limit": 1, "offset": 1})).json()
    assert body["total"] == 3
    assert [b["url"] for b in body["items"]] == ["shiryu-x-ikki"]


@pytest.mark.asyncio
async def test_battle_detail(client, db):
    seiya, shiryu, ikki, _, _ = await _roster(db)
    battle = await create_battle(db, [seiya], [ikki], minutes=1)
    newer = await create_battle(db, [shiryu], [seiya], minutes=5)
    await create_battle(db, [shiryu], [ikki], minutes=9)

    response = await client.get(f"/battles/{battle.id}")
    assert response.status_code == 200
    body = response.json()
    assert body["battle"]["id"] == battle.id
    assert [b["id"] for b in body["related_battles"]] == [newer.id]
    assert set(body["knights"]) == {seiya.id, shiryu.id, ikki.id}
    assert body["reactions"] == {"likes": 0, "dislikes": 0, "state": "none"}
    assert body["comments"] == []

    assert (await client.get("/battles/missing")).status_code == 404


@pytest.mark.asyncio
async def test_delete_battle_is_admin_only(client, db):
    seiya, _, ikki, _, _ = await _roster(db)
    battle = await create_battle(db, [seiya], [ikki])
    await create_member(db, "user@example.com")
    await create_member(db, "admin@example.com", role=roles.ADMIN)
    user_headers = await login(client, "user@example.com")
    admin_headers = await login(client, "admin@example.com")

    response = await client.post(
        f"/battles/{battle.id}/comments", json={"content": "Boa luta"}, headers=user_headers
    )
    assert response.status_code == 201

    assert (await client.delete(f"/battles/{battle.id}", headers=user_headers)).status_code == 403
    assert (await client.delete(f"/battles/{battle.id}", headers=admin_headers)).status_code == 204
    assert (await client.get(f"/battles/{battle.id}")).status_code == 404
    assert (await client.get(f"/battles/{battle.id}/comments")).status_code == 404


@pytest.mark.asyncio
async def test_comment_threads(client, db):
    seiya, _, ikki, _, _ = await _roster(db)
    battle = await create_battle(db, [seiya], [ikki])
    other = await create_battle(db, [ikki], [seiya])
    await create_member(db, "shun@example.com", full_name="Shun")
    headers = await login(client, "shun@example.com")
    url = f"/battles/{battle.id}/comments"

    assert (await client.post(url, json={"content": "   "}, headers=headers)).status_code == 400

    root = (await client.post(url, json={"content": "Primeiro"}, headers=headers)).json()
    reply = (await client.post(url, json={"content": "Resposta", "parent_id": root["id"]}, headers=headers)).json()
    nested = await client.post(url, json={"content": "Fundo", "parent_id": reply["id"]}, headers=headers)
    assert nested.status_code == 400
    assert nested.json()["detail"] == "Cannot reply to a reply"
    await client.post(url, json={"content": "Segundo"}, headers=headers)

    foreign_parent = await client.post(
        f"/battles/{other.id}/comments", json={"content": "x", "parent_id": root["id"]}, headers=headers
    )
    assert foreign_parent.status_code == 400

    threads = (await client.get(url)).json()
    assert {t["content"] for t in threads} == {"Primeiro", "Segundo"}
    first = next(t for t in threads if t["id"] == root["id"])
    assert [r["content"] for r in first["replies"]] == ["Resposta"]
    assert first["author_name"] == "Shun"


@pytest.mark.asyncio
async def test_delete_comment_is_admin_only(client, db):
    seiya, _, ikki, _, _ = await _roster(db)
    battle = await create_battle(db, [seiya], [ikki])
    await create_member(db, "user@example.com")
    await create_member(db, "admin@example.com", role=roles.ADMIN)
    user_headers = await login(client, "user@example.com")
    admin_headers = await login(client, "admin@example.com")
    url = f"/battles/{battle.id}/comments"

    root = (await client.post(url, json={"content": "Raiz"}, headers=user_headers)).json()
    await client.post(url, json={"content": "Filho", "parent_id": root["id"]}, headers=user_headers)

    assert (await client.delete(f"{url}/{root['id']}", headers=user_headers)).status_code == 403
    assert (await client.delete(f"{url}/{root['id']}", headers=admin_headers)).status_code == 204
    assert (await client.get(url)).json() == []


@pytest.mark.asyncio
async def test_reaction_endpoint(client, db):
    seiya, _, ikki, _, _ = await _roster(db)
    battle = await create_battle(db, [seiya], [ikki])
    await create_member(db, "hyoga@example.com")
    headers = await login(client, "hyoga@example.com")
    url = f"/battles/{battle.id}/reactions"

    assert (await client.post(url, json={"reaction_type": "like"})).status_code == 401
    assert (await client.post(url, json={"reaction_type": "love"}, headers=headers)).status_code == 422

    body = (await client.post(url, json={"reaction_type": "like"}, headers=headers)).json()
    assert body == {"likes": 1, "dislikes": 0, "state": "liked"}
    body = (await client.post(url, json={"reaction_type": "dislike"}, headers=headers)).json()
    assert body == {"likes": 0, "dislikes": 1, "state": "disliked"}
    body = (await client.post(url, json={"reaction_type": "dislike"}, headers=headers)).json()
    assert body == {"likes": 0, "dislikes": 0, "state": "none"}

    await client.post(url, json={"reaction_type": "like"}, headers=headers)
    assert (await client.get(url)).json() == {"likes": 1, "dislikes": 0, "state": "none"}
    assert (await client.get(url, headers=headers)).json()["state"] == "liked"

import pytest

from services import roles
from tests.factories import create_battle, create_knight, create_member, login


async def _admin_headers(client, db):
    await create_member(db, "saori@example.com", full_name="Saori", role=roles.ADMIN)
    return await login(client, "saori@example.com")


async def _managed(client, headers, search):
    users = (await client.get("/admin/users", params={"search": search}, headers=headers)).json()
    assert len(users) == 1
    return users[0]


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, db):
    await create_member(db, "seiya@example.com")
    headers = await login(client, "seiya@example.com")

    assert (await client.get("/admin/users")).status_code == 401
    assert (await client.get("/admin/users", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_activate_new_signup(client, db):
    headers = await _admin_headers(client, db)
    await client.post("/auth/signup", json={"email": "kiki@example.com", "password": "secret123"})

    kiki = await _managed(client, headers, "kiki")
    assert kiki["active"] is False
    assert kiki["role"] == roles.USER

    activated = (await client.post(f"/admin/users/{kiki['id']}/toggle-active", headers=headers)).json()
    assert activated["active"] is True
    await login(client, "kiki@example.com")


@pytest.mark.asyncio
async def test_update_user(client, db):
    headers = await _admin_headers(client, db)
    await create_member(db, "jabu@example.com", full_name="Jabu")
    await create_member(db, "nachi@example.com", full_name="Nachi")
    jabu = await _managed(client, headers, "jabu")

    response = await client.patch(
        f"/admin/users/{jabu['id']}", json={"email": "NACHI@example.com"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.patch(
        f"/admin/users/{jabu['id']}",
        json={"full_name": "Jabu de Unicórnio", "email": "Unicornio@Example.com"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["email"] == "unicornio@example.com"
    assert response.json()["full_name"] == "Jabu de Unicórnio"
    await login(client, "unicornio@example.com")


@pytest.mark.asyncio
async def test_change_role(client, db):
    headers = await _admin_headers(client, db)
    user = await create_member(db, "shun@example.com")

    response = await client.put(f"/admin/users/{user.id}/role", json={"role": "admin"}, headers=headers)
    assert response.json()["role"] == roles.ADMIN
    shun_headers = await login(client, "shun@example.com")
    assert (await client.get("/auth/session", headers=shun_headers)).json()["is_admin"] is True

    response = await client.put(f"/admin/users/{user.id}/role", json={"role": "god"}, headers=headers)
    assert response.status_code == 422
    response = await client.put("/admin/users/missing/role", json={"role": "user"}, headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_cascades(client, db):
    headers = await _admin_headers(client, db)
    user = await create_member(db, "ikki@example.com")
    a = await create_knight(db, "A")
    b = await create_knight(db, "B")
    battle = await create_battle(db, [a], [b], created_by=user.id)
    ikki_headers = await login(client, "ikki@example.com")
    await client.post(f"/battles/{battle.id}/comments", json={"content": "Fênix!"}, headers=ikki_headers)
    ikki = await _managed(client, headers, "ikki")

    saori = await _managed(client, headers, "saori")
    assert (await client.delete(f"/admin/users/{saori['id']}", headers=headers)).status_code == 400

    assert (await client.delete(f"/admin/users/{ikki['id']}", headers=headers)).status_code == 204
    assert (await client.get("/admin/users", params={"search": "ikki"}, headers=headers)).json() == []
    assert (await client.get("/auth/session", headers=ikki_headers)).status_code == 401

    body = (await client.get(f"/battles/{battle.id}")).json()
    assert body["battle"]["created_by"] is None
    assert body["comments"] == []

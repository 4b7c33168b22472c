import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from models.profile import Profile
from models.user import User, UserRole
from services import auth_service, roles
from tests.factories import PASSWORD, create_member, login


@pytest.mark.asyncio
async def test_signup_creates_inactive_profile_with_user_role(client, db):
    response = await client.post(
        "/auth/signup",
        json={"email": "Shun@Example.com", "password": PASSWORD, "full_name": "Shun"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "shun@example.com"
    assert body["active"] is False

    profile = (await db.execute(select(Profile).where(Profile.id == body["profile_id"]))).scalar_one()
    role = (await db.execute(select(UserRole.role).where(UserRole.user_id == profile.user_id))).scalar_one()
    assert role == roles.USER


@pytest.mark.asyncio
async def test_signup_rejects_duplicate_email(client):
    payload = {"email": "hyoga@example.com", "password": PASSWORD}
    assert (await client.post("/auth/signup", json=payload)).status_code == 201
    response = await client.post("/auth/signup", json={**payload, "email": "HYOGA@example.com"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_login_refused_while_inactive(client):
    await client.post("/auth/signup", json={"email": "ikki@example.com", "password": PASSWORD})
    response = await client.post("/auth/login", data={"username": "ikki@example.com", "password": PASSWORD})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, db):
    await create_member(db, "shiryu@example.com")
    response = await client.post("/auth/login", data={"username": "shiryu@example.com", "password": "nope123"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_and_logout(client, db):
    user = await create_member(db, "marin@example.com", full_name="Marin")
    headers = await login(client, "marin@example.com")

    response = await client.get("/auth/session", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == user.id
    assert body["full_name"] == "Marin"
    assert body["is_admin"] is False

    assert (await client.post("/auth/logout", headers=headers)).status_code == 204
    assert (await client.get("/auth/session", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_session_requires_token(client):
    assert (await client.get("/auth/session")).status_code == 401
    response = await client.get("/auth/session", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_account_loses_its_session(client, db):
    await create_member(db, "saori@example.com", role=roles.ADMIN)
    await create_member(db, "jabu@example.com", full_name="Jabu")
    admin_headers = await login(client, "saori@example.com")
    headers = await login(client, "jabu@example.com")

    users = (await client.get("/admin/users", params={"search": "jabu"}, headers=admin_headers)).json()
    assert len(users) == 1
    response = await client.post(f"/admin/users/{users[0]['id']}/toggle-active", headers=admin_headers)
    assert response.json()["active"] is False

    assert (await client.get("/auth/session", headers=headers)).status_code == 403
    # the session row is gone, so the token is now simply invalid
    assert (await client.get("/auth/session", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_signup_race_on_same_email_is_a_conflict(db, monkeypatch):
    await create_member(db, "seiya@example.com")

    async def not_found_yet(session, email):
        return None

    # both requests passed the lookup before either one inserted
    monkeypatch.setattr(auth_service, "get_user_by_email", not_found_yet)
    with pytest.raises(HTTPException) as excinfo:
        await auth_service.sign_up(db, "seiya@example.com", PASSWORD, "Seiya")
    assert excinfo.value.status_code == 409

    count = (await db.execute(select(func.count(User.id)))).scalar_one()
    assert count == 1

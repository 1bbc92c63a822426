from datetime import timedelta
from uuid import uuid4

import pytest

from src.api.utils.jwt import generate_jwt
from tests.utils.json_compare import exclude_keys, strip_volatile

SESSION_VOLATILE_KEYS = {"id", "user_id", "last_active_at", "created_at"}


async def open_session(client, headers, user_agent, ip_address="10.0.0.1"):
    response = await client.post(
        "/sessions",
        json={"user_agent": user_agent, "ip_address": ip_address},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_sessions_require_authentication(client, test_data):
    response = await client.get("/sessions")

    assert response.status_code == 401
    assert response.json() == test_data.expected("unauthorized_error")


@pytest.mark.asyncio
async def test_sessions_reject_expired_token(client, create_user):
    user = await create_user()
    token = generate_jwt(user.id, expires_delta=timedelta(seconds=-1))

    response = await client.get("/sessions", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_session_reports_new_device(client, create_user, auth_headers, test_data):
    user = await create_user()
    headers = auth_headers(user)
    chrome = test_data.get("user_agents")["chrome_windows"]

    data = await open_session(client, headers, chrome)

    assert len(data["token"]) == 96
    assert exclude_keys(data["session"], SESSION_VOLATILE_KEYS) == {
        "user_agent": chrome,
        "ip_address": "10.0.0.1",
        "revoked_at": None,
        "is_active": True,
    }
    assert data["session"]["user_id"] == str(user.id)
    assert strip_volatile(data["alerts"]) == [
        {
            "type": "NEW_DEVICE",
            "details": {
                "user_agent": chrome,
                "device": {"type": "desktop", "browser": "Chrome", "os": "Windows", "is_bot": False},
            },
        },
        {"type": "SUSPICIOUS_LOCATION", "details": {"ip_address": "10.0.0.1"}},
    ]

    # Same device and network again: nothing to report
    again = await open_session(client, headers, chrome)
    assert again["alerts"] == []


@pytest.mark.asyncio
async def test_list_and_stats(client, create_user, auth_headers, test_data):
    user = await create_user()
    headers = auth_headers(user)
    agents = test_data.get("user_agents")
    first = await open_session(client, headers, agents["chrome_windows"], "10.0.0.1")
    await open_session(client, headers, agents["firefox_linux"], "10.0.0.2")
    await client.delete(f"/sessions/{first['session']['id']}", headers=headers)

    listing = await client.get("/sessions", params={"active": "true"}, headers=headers)
    stats = await client.get("/sessions/stats", headers=headers)

    assert listing.status_code == 200
    assert listing.json()["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert listing.json()["sessions"][0]["user_agent"] == agents["firefox_linux"]
    assert exclude_keys(stats.json(), {"last_activity"}) == {
        "total_sessions": 2,
        "active_sessions": 1,
        "revoked_sessions": 1,
        "unique_devices": 2,
        "unique_ip_addresses": 2,
    }


@pytest.mark.asyncio
async def test_list_rejects_oversized_page(client, create_user, auth_headers):
    user = await create_user()

    response = await client.get("/sessions", params={"limit": 500}, headers=auth_headers(user))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_revoke_session_idempotent(client, create_user, auth_headers, test_data):
    user = await create_user()
    headers = auth_headers(user)
    session_id = (await open_session(client, headers, "curl/8.0"))["session"]["id"]

    first = await client.delete(f"/sessions/{session_id}", headers=headers)
    second = await client.delete(f"/sessions/{session_id}", headers=headers)

    assert first.json() == {"session_id": session_id, "revoked": True}
    assert second.status_code == 200
    assert second.json() == {"session_id": session_id, "revoked": False}


@pytest.mark.asyncio
async def test_cannot_revoke_foreign_session(client, create_user, auth_headers):
    owner = await create_user()
    intruder = await create_user(email="mallory@example.com")
    session_id = (await open_session(client, auth_headers(owner), "curl/8.0"))["session"]["id"]

    response = await client.delete(f"/sessions/{session_id}", headers=auth_headers(intruder))

    assert response.json()["revoked"] is False
    listing = await client.get(
        "/sessions", params={"active": "true"}, headers=auth_headers(owner)
    )
    assert listing.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_revoke_all_except_current(client, create_user, auth_headers):
    user = await create_user()
    headers = auth_headers(user)
    current = await open_session(client, headers, "curl/8.0")
    for _ in range(3):
        await open_session(client, headers, "curl/8.0")

    response = await client.post(
        "/sessions/revoke-all",
        json={"exclude_session_id": current["session"]["id"]},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Successfully revoked 3 session(s)", "revoked_count": 3}
    listing = await client.get("/sessions", params={"active": "true"}, headers=headers)
    assert [s["id"] for s in listing.json()["sessions"]] == [current["session"]["id"]]


@pytest.mark.asyncio
async def test_bulk_revoke_reports_per_id(client, create_user, auth_headers):
    user = await create_user()
    headers = auth_headers(user)
    valid = (await open_session(client, headers, "curl/8.0"))["session"]["id"]
    unknown = str(uuid4())

    response = await client.post(
        "/sessions/bulk-revoke",
        json={"session_ids": [valid, unknown, "not-a-uuid"]},
        headers=headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert (data["success"], data["failed"]) == (1, 2)
    assert {e["session_id"]: e["error"] for e in data["errors"]} == {
        unknown: "Session not found or already revoked",
        "not-a-uuid": "Invalid session id",
    }


@pytest.mark.asyncio
async def test_touch_session(client, create_user, auth_headers):
    user = await create_user()
    headers = auth_headers(user)
    session_id = (await open_session(client, headers, "curl/8.0"))["session"]["id"]

    response = await client.post(f"/sessions/{session_id}/touch", headers=headers)
    missing = await client.post(f"/sessions/{uuid4()}/touch", headers=headers)

    assert response.status_code == 204
    assert missing.status_code == 204


@pytest.mark.asyncio
async def test_password_reset_revokes_sessions(client, create_user, auth_headers, test_data):
    user = await create_user()
    headers = auth_headers(user)
    await open_session(client, headers, "curl/8.0")
    await open_session(client, headers, "curl/8.0")

    reset = await client.post("/auth/password-reset/request", json={"email": user.email})
    await client.post(
        "/auth/password-reset/confirm",
        json={"token": reset.json()["token"], "new_password": test_data.get("passwords")["strong"]},
    )

    stats = await client.get("/sessions/stats", headers=headers)
    assert stats.json()["active_sessions"] == 0
    assert stats.json()["revoked_sessions"] == 2


@pytest.mark.asyncio
async def test_get_session_owner_only(client, create_user, auth_headers):
    owner = await create_user()
    intruder = await create_user(email="mallory@example.com")
    session = (await open_session(client, auth_headers(owner), "curl/8.0"))["session"]

    own = await client.get(f"/sessions/{session['id']}", headers=auth_headers(owner))
    foreign = await client.get(f"/sessions/{session['id']}", headers=auth_headers(intruder))
    missing = await client.get(f"/sessions/{uuid4()}", headers=auth_headers(owner))

    assert own.status_code == 200
    timestamps = {"last_active_at", "created_at"}
    assert exclude_keys(own.json(), timestamps) == exclude_keys(session, timestamps)
    assert foreign.status_code == 404
    assert foreign.json() == {
        "error": {"code": "SESSION_NOT_FOUND", "message": "Session not found or already revoked"}
    }
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_session_analytics(client, create_user, auth_headers, test_data):
    user = await create_user()
    headers = auth_headers(user)
    agents = test_data.get("user_agents")
    await open_session(client, headers, agents["firefox_linux"], "10.0.0.2")
    await open_session(client, headers, agents["firefox_linux"], "10.0.0.2")
    first = await open_session(client, headers, agents["chrome_windows"], "10.0.0.1")
    await client.delete(f"/sessions/{first['session']['id']}", headers=headers)

    response = await client.get("/sessions/analytics", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert (data["total_sessions"], data["active_sessions"]) == (3, 2)
    assert data["sessions_today"] == data["sessions_this_week"] == data["sessions_this_month"] == 3
    assert data["top_devices"] == [
        {"device": "Firefox", "count": 2},
        {"device": "Chrome", "count": 1},
    ]
    assert data["top_locations"] == [
        {"location": "10.0.0.2", "count": 2},
        {"location": "10.0.0.1", "count": 1},
    ]

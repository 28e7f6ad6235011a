import pytest

from trofify.settings import settings


@pytest.mark.asyncio
async def test_online_users_lists_registry(api_client, container):
	await container.presence.register("bob", "sid-2")
	await container.presence.register("alice", "sid-1")

	response = await api_client.get("/api/debug/online-users")

	assert response.status_code == 200
	assert response.json() == {
		"count": 2,
		"users": [
			{"userId": "alice", "socketId": "sid-1"},
			{"userId": "bob", "socketId": "sid-2"},
		],
	}


@pytest.mark.asyncio
async def test_list_users(api_client, container):
	container.users.add("u1", "bob@example.com", "student")

	response = await api_client.get("/api/debug/users")

	assert response.json() == [{"id": "u1", "email": "bob@example.com", "user_type": "student"}]


@pytest.mark.asyncio
async def test_debug_endpoints_can_be_disabled(api_client, monkeypatch):
	monkeypatch.setattr(settings, "debug_endpoints_enabled", False)

	response = await api_client.get("/api/debug/online-users")

	assert response.status_code == 404

import pytest

from trofify.domain.messaging import Conversation, DeliveryStatus, Message


@pytest.mark.asyncio
async def test_read_conversation_marks_incoming_messages(api_client, container, namespace):
	await container.messages.add_conversation(Conversation("conv-1", "alice", "bob"))
	await container.messages.add_message(Message("m1", "conv-1", "alice", "bob", "hi"))
	await container.messages.add_message(Message("m2", "conv-1", "alice", "bob", "there", delivery_status=DeliveryStatus.DELIVERED))
	await container.messages.add_message(Message("m3", "conv-1", "bob", "alice", "yo"))

	response = await api_client.put("/api/conversations/conv-1/messages/read", json={"userId": "bob"})

	assert response.status_code == 200
	assert response.json() == {"updated": 2}
	assert (await container.messages.get_message("m3")).delivery_status is DeliveryStatus.SENT
	events = [call.args[0] for call in namespace.emit.await_args_list]
	assert events == ["message_read", "message_read"]

	again = await api_client.put("/api/conversations/conv-1/messages/read", json={"userId": "bob"})
	assert again.json() == {"updated": 0}


@pytest.mark.asyncio
async def test_read_conversation_accepts_snake_case_user_id(api_client, container):
	await container.messages.add_conversation(Conversation("conv-1", "alice", "bob"))
	await container.messages.add_message(Message("m1", "conv-1", "alice", "bob", "hi"))

	response = await api_client.put("/api/conversations/conv-1/messages/read", json={"user_id": "bob"})

	assert response.status_code == 200
	assert response.json() == {"updated": 1}
	assert (await container.messages.get_message("m1")).delivery_status is DeliveryStatus.READ


@pytest.mark.asyncio
async def test_read_conversation_requires_user(api_client):
	response = await api_client.put("/api/conversations/conv-1/messages/read", json={})

	assert response.status_code == 422


@pytest.mark.asyncio
async def test_unread_messages(api_client, container):
	await container.messages.add_conversation(Conversation("conv-1", "alice", "bob"))
	await container.messages.add_message(Message("m1", "conv-1", "alice", "bob", "hi"))

	response = await api_client.get("/api/users/bob/unread-messages")

	assert response.json() == {"count": 1}

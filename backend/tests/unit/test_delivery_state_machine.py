import pytest
import pytest_asyncio

from trofify.domain.messaging import (
	Conversation,
	DeliveryStateMachine,
	DeliveryStatus,
	InMemoryMessageRepository,
	Message,
)


def test_status_order():
	assert DeliveryStatus.SENT.can_advance_to(DeliveryStatus.DELIVERED)
	assert DeliveryStatus.SENT.can_advance_to(DeliveryStatus.READ)
	assert DeliveryStatus.DELIVERED.can_advance_to(DeliveryStatus.READ)
	assert not DeliveryStatus.READ.can_advance_to(DeliveryStatus.DELIVERED)
	assert not DeliveryStatus.DELIVERED.can_advance_to(DeliveryStatus.DELIVERED)
	assert DeliveryStatus.READ.predecessors() == (DeliveryStatus.SENT, DeliveryStatus.DELIVERED)
	assert DeliveryStatus.SENT.predecessors() == ()


@pytest_asyncio.fixture
async def repo():
	store = InMemoryMessageRepository()
	await store.add_conversation(Conversation("conv-1", "alice", "bob"))
	await store.add_conversation(Conversation("conv-2", "carol", "dave"))
	await store.add_message(Message("m1", "conv-1", "alice", "bob", "one"))
	await store.add_message(Message("m2", "conv-1", "alice", "bob", "two", delivery_status=DeliveryStatus.READ, is_read=True))
	await store.add_message(Message("m3", "conv-1", "bob", "alice", "three"))
	# addressed to bob but in a conversation he is not part of
	await store.add_message(Message("m4", "conv-2", "carol", "bob", "four"))
	return store


@pytest.mark.asyncio
async def test_flush_pending_only_touches_sent_rows_in_participant_conversations(repo, namespace):
	machine = DeliveryStateMachine(repo)

	updates = await machine.flush_pending("bob")

	assert [u.message_id for u in updates] == ["m1"]
	assert (await repo.get_message("m1")).delivery_status is DeliveryStatus.DELIVERED
	assert (await repo.get_message("m2")).delivery_status is DeliveryStatus.READ
	assert (await repo.get_message("m4")).delivery_status is DeliveryStatus.SENT
	namespace.emit.assert_awaited_once_with(
		"message_delivered",
		{"message_id": "m1", "conversation_id": "conv-1"},
		room="conversation_conv-1",
		skip_sid=None,
	)


@pytest.mark.asyncio
async def test_flush_pending_twice_is_a_noop(repo, namespace):
	machine = DeliveryStateMachine(repo)
	await machine.flush_pending("bob")
	namespace.emit.reset_mock()

	assert await machine.flush_pending("bob") == []
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_read_skips_delivered(repo, namespace):
	machine = DeliveryStateMachine(repo)

	update = await machine.mark_read("m1", "bob")

	assert update is not None and update.status is DeliveryStatus.READ
	message = await repo.get_message("m1")
	assert message.is_read
	assert await machine.mark_delivered("m1", "bob") is None
	assert namespace.emit.await_count == 1


@pytest.mark.asyncio
async def test_transition_requires_matching_receiver(repo, namespace):
	machine = DeliveryStateMachine(repo)

	assert await machine.mark_delivered("m1", "alice") is None
	assert await machine.mark_read("missing", "bob") is None
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_conversation_read(repo, namespace):
	machine = DeliveryStateMachine(repo)

	updates = await machine.mark_conversation_read("conv-1", "bob")

	assert [u.message_id for u in updates] == ["m1"]
	assert await machine.unread_count("bob") == 1  # m4 is still unread
	assert await machine.unread_count("alice") == 1

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from trofify.domain.messaging import DeliveryStatus, PostgresMessageRepository
from trofify.domain.messaging import repo as message_repo
from trofify.domain.notifications import PostgresNotificationRepository
from trofify.domain.notifications import repo as notification_repo
from trofify.domain.users import PostgresUserDirectory
from trofify.domain.users import repo as user_repo


class _Acquire:
	def __init__(self, conn):
		self._conn = conn

	async def __aenter__(self):
		return self._conn

	async def __aexit__(self, exc_type, exc, tb):
		return False


class _Pool:
	def __init__(self, conn):
		self.conn = conn

	def acquire(self):
		return _Acquire(self.conn)


@pytest.fixture
def conn(monkeypatch):
	connection = AsyncMock()
	pool = _Pool(connection)

	async def _get_pool():
		return pool

	for module in (message_repo, notification_repo, user_repo):
		monkeypatch.setattr(module, "get_pool", _get_pool)
	return connection


@pytest.mark.asyncio
async def test_advance_only_from_lower_statuses(conn):
	conn.fetchrow.return_value = {"id": "m1", "conversation_id": "c1"}

	update = await PostgresMessageRepository().advance("m1", "bob", DeliveryStatus.READ)

	assert update.message_id == "m1" and update.status is DeliveryStatus.READ
	args = conn.fetchrow.await_args.args
	assert "COALESCE(delivery_status::text, 'sent') = ANY($5::text[])" in args[0]
	assert args[1:] == ("m1", "bob", "read", True, ["sent", "delivered"])


@pytest.mark.asyncio
async def test_advance_without_matching_row(conn):
	conn.fetchrow.return_value = None

	assert await PostgresMessageRepository().advance("m1", "mallory", DeliveryStatus.DELIVERED) is None
	assert conn.fetchrow.await_args.args[-1] == ["sent"]


@pytest.mark.asyncio
async def test_deliver_pending_requires_participant(conn):
	conn.fetch.return_value = [{"id": "m1", "conversation_id": "c1"}, {"id": "m2", "conversation_id": "c2"}]

	updates = await PostgresMessageRepository().deliver_pending("bob")

	assert [u.message_id for u in updates] == ["m1", "m2"]
	sql = conn.fetch.await_args.args[0]
	assert "c.participant_a_id = $1 OR c.participant_b_id = $1" in sql
	assert "COALESCE(m.delivery_status::text, 'sent') = $3" in sql
	assert conn.fetch.await_args.args[1:] == ("bob", "delivered", "sent")


@pytest.mark.asyncio
async def test_read_conversation_treats_missing_status_as_sent(conn):
	conn.fetch.return_value = [{"id": "m1", "conversation_id": "c1"}]

	updates = await PostgresMessageRepository().read_conversation("c1", "bob")

	assert [u.status for u in updates] == [DeliveryStatus.READ]
	args = conn.fetch.await_args.args
	assert "COALESCE(delivery_status::text, 'sent') = ANY($4::text[])" in args[0]
	assert args[1:] == ("c1", "bob", "read", ["sent", "delivered"])


@pytest.mark.asyncio
async def test_count_unread_messages(conn):
	conn.fetchval.return_value = 4

	assert await PostgresMessageRepository().count_unread("bob") == 4


@pytest.mark.asyncio
async def test_mark_all_read_parses_command_tag(conn):
	conn.execute.return_value = "UPDATE 3"

	assert await PostgresNotificationRepository().mark_all_read("bob") == 3


@pytest.mark.asyncio
async def test_mark_read_returns_owner(conn):
	conn.fetchrow.return_value = {"user_id": "bob"}

	assert await PostgresNotificationRepository().mark_read(7) == "bob"
	assert conn.fetchrow.await_args.args[1] == 7


@pytest.mark.asyncio
async def test_list_notifications_maps_rows(conn):
	created = datetime(2024, 5, 1, tzinfo=timezone.utc)
	conn.fetch.return_value = [
		{
			"id": 9,
			"user_id": "bob",
			"actor_id": None,
			"post_id": "p1",
			"type": "comment",
			"message": "nice",
			"is_read": False,
			"created_at": created,
		}
	]

	items = await PostgresNotificationRepository().list_for_user("bob", limit=5, offset=10)

	assert items[0].id == 9 and items[0].actor_id is None and items[0].post_id == "p1"
	assert conn.fetch.await_args.args[1:] == ("bob", 5, 10)


@pytest.mark.asyncio
async def test_list_users(conn):
	conn.fetch.return_value = [{"id": 1, "email": "bob@example.com", "user_type": "student"}]

	assert await PostgresUserDirectory().list_users() == [
		{"id": "1", "email": "bob@example.com", "user_type": "student"}
	]

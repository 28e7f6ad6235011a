from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from trofify.domain.notifications import InMemoryNotificationRepository, Notification, NotificationCounter


@pytest_asyncio.fixture
async def repo():
    store = InMemoryNotificationRepository()
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for idx in range(1, 4):
        await store.add(
            Notification(
                id=idx,
                user_id="bob",
                actor_id="alice",
                type="comment",
                message=f"comment {idx}",
                created_at=base + timedelta(minutes=idx),
            )
        )
    await store.add(Notification(id=10, user_id="carol", actor_id="alice", type="like", message="like"))
    return store


@pytest.mark.asyncio
async def test_mark_one_read_publishes_recomputed_count(repo, namespace):
    counter = NotificationCounter(repo)

    snapshot = await counter.mark_one_read(2)

    assert snapshot is not None
    assert snapshot.to_payload() == {"userId": "bob", "count": 2}
    namespace.emit.assert_awaited_once_with(
        "unread_count_update",
        {"userId": "bob", "count": 2},
        room="notifications_bob",
        skip_sid=None,
    )


@pytest.mark.asyncio
async def test_mark_one_read_twice_keeps_count(repo, namespace):
    counter = NotificationCounter(repo)
    await counter.mark_one_read(2)

    snapshot = await counter.mark_one_read(2)

    assert snapshot.count == 2


@pytest.mark.asyncio
async def test_unknown_notification(repo, namespace):
    counter = NotificationCounter(repo)

    assert await counter.mark_one_read(404) is None
    namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_all_read_only_touches_owner(repo, namespace):
    counter = NotificationCounter(repo)

    snapshot = await counter.mark_all_read("bob")

    assert snapshot.count == 0
    assert await counter.get_unread_count("carol") == 1


@pytest.mark.asyncio
async def test_list_for_user_newest_first(repo):
    counter = NotificationCounter(repo)

    items = await counter.list_for_user("bob", limit=2)

    assert [n.id for n in items] == [3, 2]
    assert [n.id for n in await counter.list_for_user("bob", limit=2, offset=2)] == [1]

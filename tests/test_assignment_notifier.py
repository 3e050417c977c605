import pytest
from httpx import AsyncClient
from main import app
from database import notifications_collection, tasks_collection
from realtime.channels import ChannelRouter, ConnectionRegistry, Connection
from routes.deps import get_assignment_notifier
from services.assignment_notifier import AssignmentNotifier, should_notify
from conftest import drain


@pytest.mark.parametrize("old,new,actor,expected", [
    (None, "bob", "alice", True),
    ("carol", "bob", "alice", True),
    ("bob", "bob", "alice", False),     # unchanged
    (None, "alice", "alice", False),    # self-assignment
    ("bob", None, "alice", False),      # cleared
    ("bob", "", "alice", False),
])
def test_should_notify(old, new, actor, expected):
    assert should_notify(old, new, actor) is expected


async def _discard(message):
    return None


async def test_notifier_persists_and_delivers():
    router = ChannelRouter(ConnectionRegistry())
    bob = Connection("bob-socket", _discard)
    other = Connection("other-socket", _discard)
    router.connect(bob)
    router.connect(other)
    router.join("bob-socket", "bob")

    notifier = AssignmentNotifier(notifications_collection, router)
    task = {"id": "t1", "title": "Review PR"}
    notification = await notifier.notify_if_assigned(None, "bob", "alice", task)

    assert notification.recipient_id == "bob"
    assert notification.message == "You have been assigned a task: Review PR"
    stored = await notifications_collection.find_one({"id": notification.id})
    assert stored["is_read"] is False

    assert drain(bob) == [
        {"event": "notification", "data": {"message": notification.message, "taskId": "t1"}},
        {"event": "task_assigned", "data": {"task": task, "assignedToId": "bob"}},
    ]
    assert drain(other) == [{"event": "task_assigned", "data": {"task": task, "assignedToId": "bob"}}]


async def test_notifier_skips_when_not_triggered():
    router = ChannelRouter(ConnectionRegistry())
    notifier = AssignmentNotifier(notifications_collection, router)
    result = await notifier.notify_if_assigned("bob", "bob", "alice", {"id": "t1", "title": "x"})
    assert result is None
    assert await notifications_collection.count_documents({}) == 0


async def test_self_assignment_on_create_does_not_notify(async_client: AsyncClient, alice_headers: dict, users, listener):
    socket = listener(channel=users["alice"].id)
    resp = await async_client.post(
        "/api/tasks",
        json={"title": "Mine", "description": "d", "priority": "Low", "assignedToId": users["alice"].id},
        headers=alice_headers,
    )
    assert resp.status_code == 201
    assert await notifications_collection.count_documents({}) == 0
    assert [m["event"] for m in drain(socket)] == ["task_created"]


async def test_reassignment_notifications(async_client: AsyncClient, alice_headers: dict, make_task, users):
    bob, carol = users["bob"].id, users["carol"].id
    task = await make_task(title="Rotate", assigned_to_id=bob)

    # Same assignee again: nothing new
    resp = await async_client.put(f"/api/tasks/{task.id}", json={"assignedToId": bob}, headers=alice_headers)
    assert resp.status_code == 200
    assert await notifications_collection.count_documents({}) == 0

    # Bob -> Carol: exactly one, for Carol
    await async_client.put(f"/api/tasks/{task.id}", json={"assignedToId": carol}, headers=alice_headers)
    stored = await notifications_collection.find({}).to_list(length=None)
    assert [n["recipient_id"] for n in stored] == [carol]
    assert stored[0]["message"] == "You have been assigned a task: Rotate"

    # Away and back again produces a fresh duplicate
    await async_client.put(f"/api/tasks/{task.id}", json={"assignedToId": bob}, headers=alice_headers)
    await async_client.put(f"/api/tasks/{task.id}", json={"assignedToId": carol}, headers=alice_headers)
    assert await notifications_collection.count_documents({"recipient_id": carol}) == 2
    assert await notifications_collection.count_documents({"recipient_id": bob}) == 1


async def test_updates_without_assignee_change_do_not_notify(async_client: AsyncClient, alice_headers: dict, make_task, users):
    task = await make_task(title="Quiet", assigned_to_id=users["bob"].id)
    await async_client.put(f"/api/tasks/{task.id}", json={"status": "Review"}, headers=alice_headers)
    assert await notifications_collection.count_documents({}) == 0


class BrokenNotifications:
    async def insert_one(self, document):
        raise RuntimeError("notifications store unavailable")


async def test_notification_failure_after_commit(async_client: AsyncClient, alice_headers: dict, users):
    """The task write is durable even though the caller gets a 500."""
    app.dependency_overrides[get_assignment_notifier] = lambda: AssignmentNotifier(
        BrokenNotifications(), app.state.channel_router
    )
    try:
        resp = await async_client.post(
            "/api/tasks",
            json={"title": "Half done", "description": "d", "priority": "Medium", "assignedToId": users["bob"].id},
            headers=alice_headers,
        )
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"
    assert "X-Request-ID" in resp.headers
    assert await tasks_collection.find_one({"title": "Half done"}) is not None

import pytest
from datetime import datetime
from httpx import AsyncClient
from database import notifications_collection
from models.notification import NotificationModel

pytestmark = pytest.mark.asyncio


async def _notify(recipient, sender=None, task_id=None, message="ping", created_at=None, is_read=False):
    notification = NotificationModel(
        recipient_id=recipient, sender_id=sender, related_task_id=task_id,
        message=message, is_read=is_read, created_at=created_at or datetime(2026, 3, 1),
    )
    await notifications_collection.insert_one(notification.model_dump())
    return notification


async def test_get_notifications_empty(async_client: AsyncClient, alice_headers: dict):
    resp = await async_client.get("/api/notifications", headers=alice_headers)
    assert resp.status_code == 200
    assert resp.json() == []


async def test_list_is_newest_first_with_references(async_client: AsyncClient, bob_headers: dict, users, make_task):
    task = await make_task(title="Prepare demo")
    await _notify(users["bob"].id, message="older", created_at=datetime(2026, 3, 1))
    await _notify(users["bob"].id, sender=users["alice"].id, task_id=task.id, message="newer",
                  created_at=datetime(2026, 3, 2))
    await _notify(users["carol"].id, message="not bob's")

    resp = await async_client.get("/api/notifications", headers=bob_headers)
    data = resp.json()
    assert [n["message"] for n in data] == ["newer", "older"]
    assert data[0]["sender"] == {"id": users["alice"].id, "name": "Alice Owner"}
    assert data[0]["relatedTask"] == {"id": task.id, "title": "Prepare demo"}
    assert data[0]["isRead"] is False
    assert data[1]["sender"] is None
    assert data[1]["relatedTask"] is None


async def test_mark_as_read(async_client: AsyncClient, bob_headers: dict, users):
    notification = await _notify(users["bob"].id)

    resp = await async_client.put(f"/api/notifications/{notification.id}/read", headers=bob_headers)
    assert resp.status_code == 200
    assert resp.json()["isRead"] is True
    stored = await notifications_collection.find_one({"id": notification.id})
    assert stored["is_read"] is True


async def test_mark_someone_elses_notification(async_client: AsyncClient, alice_headers: dict, users):
    notification = await _notify(users["bob"].id)
    resp = await async_client.put(f"/api/notifications/{notification.id}/read", headers=alice_headers)
    assert resp.status_code == 401
    stored = await notifications_collection.find_one({"id": notification.id})
    assert stored["is_read"] is False


async def test_mark_nonexistent_notification(async_client: AsyncClient, alice_headers: dict):
    resp = await async_client.put("/api/notifications/fake_id/read", headers=alice_headers)
    assert resp.status_code == 404


async def test_mark_all_read_only_touches_own(async_client: AsyncClient, bob_headers: dict, users):
    await _notify(users["bob"].id)
    await _notify(users["bob"].id)
    await _notify(users["carol"].id)

    resp = await async_client.get("/api/notifications/unread-count", headers=bob_headers)
    assert resp.json() == {"count": 2}

    resp = await async_client.put("/api/notifications/mark-all-read", headers=bob_headers)
    assert resp.status_code == 200

    resp = await async_client.get("/api/notifications/unread-count", headers=bob_headers)
    assert resp.json() == {"count": 0}
    assert await notifications_collection.count_documents({"recipient_id": users["carol"].id, "is_read": False}) == 1

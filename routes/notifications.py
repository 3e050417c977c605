from fastapi import APIRouter, Depends, HTTPException
from typing import List
from database import notifications_collection, users_collection, tasks_collection
from models.notification import NotificationModel
from models.user import UserModel
from routes.deps import get_current_user
from logging_config import get_logger

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])
logger = get_logger("notifications")


async def with_references(notifications: List[NotificationModel]) -> List[dict]:
    """Join sender name and related task title onto each notification."""
    sender_ids = list({n.sender_id for n in notifications if n.sender_id})
    task_ids = list({n.related_task_id for n in notifications if n.related_task_id})

    senders = {}
    if sender_ids:
        docs = await users_collection.find({"id": {"$in": sender_ids}}).to_list(length=None)
        senders = {d["id"]: {"id": d["id"], "name": d.get("name")} for d in docs}
    tasks = {}
    if task_ids:
        docs = await tasks_collection.find({"id": {"$in": task_ids}}).to_list(length=None)
        tasks = {d["id"]: {"id": d["id"], "title": d.get("title")} for d in docs}

    result = []
    for n in notifications:
        data = n.model_dump(mode="json", by_alias=True)
        data["sender"] = senders.get(n.sender_id)
        data["relatedTask"] = tasks.get(n.related_task_id)
        result.append(data)
    return result


@router.get("", response_model=List[dict])
async def get_notifications(current_user: UserModel = Depends(get_current_user)):
    """Get all notifications for the current user, newest first."""
    docs = await notifications_collection.find(
        {"recipient_id": current_user.id}, sort=[("created_at", -1)]
    ).to_list(length=None)
    return await with_references([NotificationModel(**d) for d in docs])


@router.get("/unread-count")
async def get_unread_count(current_user: UserModel = Depends(get_current_user)):
    """Get count of unread notifications."""
    count = await notifications_collection.count_documents({
        "recipient_id": current_user.id,
        "is_read": False
    })
    return {"count": count}


@router.put("/mark-all-read")
async def mark_all_read(current_user: UserModel = Depends(get_current_user)):
    """Mark all notifications as read for the current user."""
    result = await notifications_collection.update_many(
        {"recipient_id": current_user.id, "is_read": False},
        {"$set": {"is_read": True}}
    )
    logger.info(f"Notifications marked read", extra={"data": {"count": result.modified_count}})
    return {"message": "All marked as read"}


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
):
    """Mark a notification as read."""
    doc = await notifications_collection.find_one({"id": notification_id})
    if not doc:
        logger.warning(f"Notification not found for mark-as-read", extra={"data": {"notification_id": notification_id}})
        raise HTTPException(status_code=404, detail="Notification not found")

    notification = NotificationModel(**doc)
    if notification.recipient_id != current_user.id:
        logger.warning(f"Mark-as-read denied: not the recipient", extra={"data": {"notification_id": notification_id}})
        raise HTTPException(status_code=401, detail="Not authorized")

    await notifications_collection.update_one({"id": notification_id}, {"$set": {"is_read": True}})
    notification.is_read = True
    return notification.model_dump(mode="json", by_alias=True)

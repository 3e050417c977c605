from typing import Optional
from constants import NotificationTypes, TaskEvents
from models.notification import NotificationModel
from realtime.channels import ChannelRouter
from logging_config import get_logger

logger = get_logger("assignment_notifier")


def should_notify(old_assignee_id: Optional[str], new_assignee_id: Optional[str], actor_id: str) -> bool:
    """Only a real hand-off to somebody else notifies. Self-assignment never does."""
    return bool(new_assignee_id) and new_assignee_id != old_assignee_id and new_assignee_id != actor_id


class AssignmentNotifier:
    """Persists and delivers 'you were assigned a task' notifications.

    Runs after the task write has committed, so a failure here leaves the
    task change in place while the caller sees an error.
    """

    def __init__(self, notifications, router: ChannelRouter):
        self.notifications = notifications
        self.router = router

    async def notify_if_assigned(
        self,
        old_assignee_id: Optional[str],
        new_assignee_id: Optional[str],
        actor_id: str,
        task: dict,
        is_new: bool = False,
    ) -> Optional[NotificationModel]:
        if not should_notify(old_assignee_id, new_assignee_id, actor_id):
            return None

        if is_new:
            message = f"You have been assigned a new task: {task['title']}"
        else:
            message = f"You have been assigned a task: {task['title']}"

        notification = NotificationModel(
            recipient_id=new_assignee_id,
            sender_id=actor_id,
            type=NotificationTypes.TASK_ASSIGNED,
            message=message,
            related_task_id=task["id"],
        )
        await self.notifications.insert_one(notification.model_dump())

        self.router.send_to_channel(new_assignee_id, TaskEvents.NOTIFICATION, {
            "message": message,
            "taskId": task["id"],
        })
        self.router.broadcast(TaskEvents.ASSIGNED, {"task": task, "assignedToId": new_assignee_id})

        logger.info(f"Task assignment notification sent", extra={"data": {"task_id": task["id"], "assignee": new_assignee_id}})
        return notification

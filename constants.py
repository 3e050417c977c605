# Global Constants

class TaskPriority:
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class TaskStatus:
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETED = "Completed"


class NotificationTypes:
    TASK_ASSIGNED = "task_assigned"


class TaskEvents:
    CREATED = "task_created"
    UPDATED = "task_updated"
    DELETED = "task_deleted"
    ASSIGNED = "task_assigned"
    NOTIFICATION = "notification"


# Rank used when ordering by priority; anything unrecognised ranks with Low
PRIORITY_RANK = {
    TaskPriority.URGENT: 3,
    TaskPriority.HIGH: 2,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 0,
}

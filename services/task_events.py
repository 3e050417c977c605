from constants import TaskEvents
from realtime.channels import ChannelRouter


class TaskEventPublisher:
    """Mirrors every committed task mutation to all connected clients."""

    def __init__(self, router: ChannelRouter):
        self.router = router

    def task_created(self, snapshot: dict) -> None:
        self.router.broadcast(TaskEvents.CREATED, snapshot)

    def task_updated(self, snapshot: dict) -> None:
        self.router.broadcast(TaskEvents.UPDATED, snapshot)

    def task_deleted(self, task_id: str) -> None:
        self.router.broadcast(TaskEvents.DELETED, task_id)

from typing import Any, Dict, Iterable, List, Optional, Tuple
from models.task import TaskModel
from utils.clock import utcnow
from logging_config import get_logger

logger = get_logger("task_store")

SortSpec = List[Tuple[str, int]]


class TaskStore:
    """Persistence for task documents. No policy lives here."""

    def __init__(self, tasks, users):
        self.tasks = tasks
        self.users = users

    async def find(self, query: Dict[str, Any], sort: Optional[SortSpec] = None) -> List[TaskModel]:
        docs = await self.tasks.find(query, sort=sort or None).to_list(length=None)
        return [TaskModel(**doc) for doc in docs]

    async def get(self, task_id: str) -> Optional[TaskModel]:
        doc = await self.tasks.find_one({"id": task_id})
        return TaskModel(**doc) if doc else None

    async def create(self, task: TaskModel) -> TaskModel:
        await self.tasks.insert_one(task.model_dump())
        return task

    async def save(self, task: TaskModel, changes: Dict[str, Any]) -> TaskModel:
        """Apply changes on top of an already-read task and write the whole document back.

        The write is unconditional: a concurrent update that read the same
        version is overwritten (last write wins).
        """
        merged = task.model_copy(update={**changes, "updated_at": max(utcnow(), task.updated_at)})
        updated = TaskModel.model_validate(merged.model_dump())
        await self.tasks.replace_one({"id": task.id}, updated.model_dump())
        logger.debug(f"Task document replaced", extra={"data": {"task_id": task.id, "fields": list(changes.keys())}})
        return updated

    async def delete(self, task_id: str) -> bool:
        result = await self.tasks.delete_one({"id": task_id})
        return result.deleted_count > 0

    async def user_exists(self, user_id: str) -> bool:
        return await self.users.find_one({"id": user_id}) is not None

    async def user_summaries(self, user_ids: Iterable[Optional[str]]) -> Dict[str, dict]:
        ids = list({uid for uid in user_ids if uid})
        if not ids:
            return {}
        docs = await self.users.find({"id": {"$in": ids}}).to_list(length=None)
        return {d["id"]: {"id": d["id"], "name": d.get("name"), "email": d.get("email")} for d in docs}

    async def snapshot(self, task: TaskModel) -> dict:
        return (await self.snapshots([task]))[0]

    async def snapshots(self, tasks: List[TaskModel]) -> List[dict]:
        """JSON-ready task dicts with creator/assignee summaries joined in."""
        people = await self.user_summaries(
            [t.creator_id for t in tasks] + [t.assigned_to_id for t in tasks]
        )
        result = []
        for task in tasks:
            data = task.model_dump(mode="json", by_alias=True)
            data["creator"] = people.get(task.creator_id)
            data["assignedTo"] = people.get(task.assigned_to_id) if task.assigned_to_id else None
            result.append(data)
        return result

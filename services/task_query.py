"""
Task query engine.

Turns list parameters into a MongoDB filter and sort, runs it through the
TaskStore and, for priority ordering, re-ranks the fetched rows in memory.
"""

import re
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from constants import TaskStatus, PRIORITY_RANK
from models.task import TaskModel
from services.task_store import TaskStore, SortSpec
from utils.clock import utcnow

SORTABLE_FIELDS = {"createdAt": "created_at", "dueDate": "due_date"}
DEFAULT_SORT: SortSpec = [("created_at", -1)]


class TaskQuery(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    assigned_to_me: bool = False
    created_by_me: bool = False
    overdue: bool = False
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    @property
    def ascending(self) -> bool:
        return self.sort_order == "asc"


def build_filter(query: TaskQuery, actor_id: Optional[str], now: Optional[datetime] = None) -> Dict[str, Any]:
    """AND of every requested clause. Unknown enum values just match nothing."""
    clauses: List[Dict[str, Any]] = []

    if query.status:
        clauses.append({"status": query.status})
    if query.priority:
        clauses.append({"priority": query.priority})

    if query.search:
        pattern = {"$regex": re.escape(query.search), "$options": "i"}
        clauses.append({"$or": [{"title": pattern}, {"description": pattern}]})

    if query.assigned_to_me:
        clauses.append({"assigned_to_id": actor_id})
    if query.created_by_me:
        clauses.append({"creator_id": actor_id})

    if query.overdue:
        clauses.append({"due_date": {"$ne": None, "$lt": now or utcnow()}})
        clauses.append({"status": {"$ne": TaskStatus.COMPLETED}})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_sort(query: TaskQuery) -> SortSpec:
    """Sort handed to the database. Priority ordering is not one of them."""
    field = SORTABLE_FIELDS.get(query.sort_by or "")
    if field is None:
        return DEFAULT_SORT
    return [(field, 1 if query.ascending else -1)]


def priority_rank(task: TaskModel) -> int:
    return PRIORITY_RANK.get(task.priority, 0)


def compare_priority(a: TaskModel, b: TaskModel, ascending: bool = False) -> int:
    diff = priority_rank(a) - priority_rank(b)
    return diff if ascending else -diff


def sort_by_priority(tasks: List[TaskModel], ascending: bool = False) -> List[TaskModel]:
    # sorted() is stable: equal priorities keep the order they were fetched in
    return sorted(tasks, key=cmp_to_key(lambda a, b: compare_priority(a, b, ascending)))


async def find_tasks(store: TaskStore, query: TaskQuery, actor_id: Optional[str],
                     now: Optional[datetime] = None) -> List[TaskModel]:
    tasks = await store.find(build_filter(query, actor_id, now), build_sort(query))
    if query.sort_by == "priority":
        tasks = sort_by_priority(tasks, query.ascending)
    return tasks

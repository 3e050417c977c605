from fastapi import APIRouter, Body, HTTPException, Depends, Query
from typing import List, Optional
from models.task import TaskModel, TaskCreate, TaskUpdate
from models.user import UserModel
from routes.deps import get_current_user, get_task_store, get_event_publisher, get_assignment_notifier
from services.task_store import TaskStore
from services.task_query import TaskQuery, find_tasks
from services.task_events import TaskEventPublisher
from services.assignment_notifier import AssignmentNotifier
from logging_config import get_logger

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])
logger = get_logger("tasks")


async def ensure_assignee_exists(store: TaskStore, assignee_id: Optional[str]):
    if assignee_id and not await store.user_exists(assignee_id):
        logger.warning(f"Rejected unknown assignee", extra={"data": {"assignee": assignee_id}})
        raise HTTPException(status_code=400, detail="Assignee not found")

# --- ENDPOINTS ---

@router.get("", response_model=List[dict])
async def list_tasks(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    assigned_to_me: bool = Query(False, alias="assignedToMe"),
    created_by_me: bool = Query(False, alias="createdByMe"),
    overdue: bool = False,
    sort_by: Optional[str] = Query(None, alias="sortBy", description="dueDate, createdAt or priority"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
    current_user: UserModel = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
):
    """List tasks with filtering and sorting"""
    query = TaskQuery(
        status=status,
        priority=priority,
        search=search,
        assigned_to_me=assigned_to_me,
        created_by_me=created_by_me,
        overdue=overdue,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    tasks = await find_tasks(store, query, current_user.id)
    logger.debug(f"Task list served", extra={"data": {"count": len(tasks), "sort_by": sort_by}})
    return await store.snapshots(tasks)

@router.get("/{task_id}")
async def get_task(
    task_id: str,
    current_user: UserModel = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
):
    task = await store.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return await store.snapshot(task)

@router.post("", status_code=201)
async def create_task(
    payload: TaskCreate = Body(...),
    current_user: UserModel = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
    publisher: TaskEventPublisher = Depends(get_event_publisher),
    notifier: AssignmentNotifier = Depends(get_assignment_notifier),
):
    """Create a task; the creator is always the caller"""
    await ensure_assignee_exists(store, payload.assigned_to_id)

    task = await store.create(TaskModel(**payload.model_dump(), creator_id=current_user.id))
    snapshot = await store.snapshot(task)
    publisher.task_created(snapshot)

    await notifier.notify_if_assigned(None, task.assigned_to_id, current_user.id, snapshot, is_new=True)

    logger.info(f"Task created", extra={"data": {"task_id": task.id, "title": task.title, "assignee": task.assigned_to_id}})
    return snapshot

@router.put("/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate = Body(...),
    current_user: UserModel = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
    publisher: TaskEventPublisher = Depends(get_event_publisher),
    notifier: AssignmentNotifier = Depends(get_assignment_notifier),
):
    """Update any subset of task fields. An empty assignedToId clears the assignee."""
    existing = await store.get(task_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Task not found")

    changes = payload.changes()
    if changes.get("assigned_to_id") != existing.assigned_to_id:
        await ensure_assignee_exists(store, changes.get("assigned_to_id"))

    old_assignee = existing.assigned_to_id
    updated = await store.save(existing, changes)
    snapshot = await store.snapshot(updated)
    publisher.task_updated(snapshot)

    await notifier.notify_if_assigned(old_assignee, updated.assigned_to_id, current_user.id, snapshot)

    logger.info(f"Task updated", extra={"data": {"task_id": task_id, "fields_changed": list(changes.keys())}})
    return snapshot

@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    current_user: UserModel = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
    publisher: TaskEventPublisher = Depends(get_event_publisher),
):
    if not await store.delete(task_id):
        logger.warning(f"Task deletion failed: not found", extra={"data": {"task_id": task_id}})
        raise HTTPException(status_code=404, detail="Task not found")

    publisher.task_deleted(task_id)
    logger.info(f"Task deleted", extra={"data": {"task_id": task_id}})
    return {"message": "Task removed"}

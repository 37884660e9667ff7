from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.tasks.schemas import TaskCreate, TaskResponse
from kyn.modules.tasks.service import TaskService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    context: FamilyContext = Depends(require_family_permission("tasks:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return TaskService(supabase, context).list_tasks()


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    task: TaskCreate,
    context: FamilyContext = Depends(require_family_permission("tasks:create", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Add a task, optionally assigned to a family member"""
    return TaskService(supabase, context).create_task(task)


@router.post("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: str,
    context: FamilyContext = Depends(require_family_permission("tasks:complete", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return TaskService(supabase, context).complete_task(task_id)

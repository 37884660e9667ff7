import logging
from supabase import Client
from kyn.modules.tasks.schemas import TaskCreate, TaskResponse
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.service import ProfileService
from kyn.core.errors import AssigneeNotMember, OperationFailed, TaskNotFound
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context
        self.profiles = ProfileService(supabase)

    def list_tasks(self) -> List[TaskResponse]:
        """Family tasks, newest first, with the assignee's name"""
        try:
            result = self.supabase.table("tasks")\
                .select("*")\
                .eq("family_id", self.context.family_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching tasks for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch tasks")

        rows = result.data or []
        names = self.profiles.get_profiles_lite([r["assigned_to"] for r in rows if r.get("assigned_to")])
        return [
            TaskResponse(
                **row,
                assignee_name=names[row["assigned_to"]].full_name if row.get("assigned_to") in names else None,
            )
            for row in rows
        ]

    def create_task(self, task: TaskCreate) -> TaskResponse:
        try:
            if task.assigned_to:
                assignee = self.supabase.table("family_members")\
                    .select("id")\
                    .eq("family_id", self.context.family_id)\
                    .eq("profile_id", task.assigned_to)\
                    .limit(1)\
                    .execute()
                if not assignee.data:
                    raise AssigneeNotMember()

            result = self.supabase.table("tasks").insert({
                "family_id": self.context.family_id,
                "created_by": self.context.profile_id,
                "title": task.title,
                "description": task.description or None,
                "assigned_to": task.assigned_to or None,
                "due_date": task.due_date.isoformat() if task.due_date else None,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to create task")
            logger.info(f"Task {result.data[0]['id']} created in family {self.context.family_id}")
            return TaskResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating task in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to create task")

    def complete_task(self, task_id: str) -> TaskResponse:
        """Mark a task done; completing it twice is harmless"""
        try:
            result = self.supabase.table("tasks")\
                .update({"completed": True})\
                .eq("id", task_id)\
                .eq("family_id", self.context.family_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error completing task {task_id}: {e}")
            raise OperationFailed("Failed to update task")
        if not result.data:
            raise TaskNotFound()
        return TaskResponse(**result.data[0])

"""Built-in todo-list-tool: per-project task lists in a JSON file."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional

from pydantic import BaseModel, ValidationError

from contracts.api import Outcome
from contracts.config import DataConfig
from contracts.tool_sdk import BaseTool, EnumField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, json_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

OPERATIONS = [
    "create_project",
    "add_task",
    "remove_task",
    "list_tasks",
    "complete_task",
    "list_projects",
    "switch_project",
]


# ── Stored data ─────────────────────────────────────────────────────


class Task(BaseModel):
    id: int
    text: str
    priority: Literal["low", "medium", "high"] = "medium"
    due_date: Optional[str] = None
    completed: bool = False


class Project(BaseModel):
    name: str
    tasks: list[Task] = []


class TodoData(BaseModel):
    projects: list[Project] = []
    current_project: Optional[str] = None

    def project(self, name: str | None) -> Project | None:
        return next((p for p in self.projects if p.name == name), None)


class TodoError(Exception):
    pass


class TodoStore:
    """Load-modify-save access to the JSON file, serialised by a lock."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.lock = threading.Lock()

    def load(self) -> TodoData:
        if not self.path.exists():
            return TodoData()
        return TodoData.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, data: TodoData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(data.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")


# ── Tool ────────────────────────────────────────────────────────────


class TodoListTool(BaseTool):
    def __init__(self, data: DataConfig | None = None) -> None:
        self._store = TodoStore((data or DataConfig()).todo_path)

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="todo-list-tool",
            title="To-Do List Tool",
            description="Manages multiple to-do lists for different projects.",
            schema={
                "operation": EnumField(members=OPERATIONS),
                "project_name": StringField(required=False, description="The name of the project."),
                "task": StringField(required=False, description="The text of the task to add."),
                "task_id": NumberField(integer=True, minimum=1, required=False, description="Task to remove or complete."),
                "priority": EnumField(members=["low", "medium", "high"], default="medium"),
                "due_date": StringField(required=False, description="Due date, YYYY-MM-DD."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            return await asyncio.to_thread(self._locked, args)
        except TodoError as exc:
            return error_outcome(str(exc))
        except (OSError, ValidationError) as exc:
            return error_outcome(f"Error performing to-do list operation: {exc}")

    def _locked(self, args: dict[str, Any]) -> Outcome:
        with self._store.lock:
            data = self._store.load()
            outcome = self._apply(data, args)
            if args["operation"] not in ("list_tasks", "list_projects"):
                self._store.save(data)
            return outcome

    def _apply(self, data: TodoData, args: dict[str, Any]) -> Outcome:
        op = args["operation"]
        name = args.get("project_name")

        if op == "list_projects":
            return json_outcome([p.name for p in data.projects])

        if op in ("create_project", "switch_project"):
            if not name:
                raise TodoError("Error: 'project_name' is required.")
            exists = data.project(name) is not None
            if op == "create_project":
                if exists:
                    raise TodoError(f"Error: Project '{name}' already exists.")
                data.projects.append(Project(name=name))
                return text_outcome(f"Project '{name}' created.")
            if not exists:
                raise TodoError(f"Error: Project '{name}' not found.")
            data.current_project = name
            return text_outcome(f"Switched to project '{name}'.")

        if not data.current_project:
            raise TodoError("Error: No project selected. Use 'switch_project' first.")
        project = data.project(data.current_project)
        if project is None:
            raise TodoError("Error: Current project not found.")

        if op == "list_tasks":
            return json_outcome([t.model_dump(exclude_none=True) for t in project.tasks])

        if op == "add_task":
            if not args.get("task"):
                raise TodoError("Error: 'task' is required.")
            next_id = max((t.id for t in project.tasks), default=0) + 1
            project.tasks.append(
                Task(id=next_id, text=args["task"], priority=args["priority"], due_date=args.get("due_date"))
            )
            return text_outcome(f"Task added to project '{project.name}' with ID {next_id}.")

        task_id = args.get("task_id")
        if task_id is None:
            raise TodoError("Error: 'task_id' is required.")
        task = next((t for t in project.tasks if t.id == task_id), None)
        if task is None:
            raise TodoError(f"Error: Task with ID {task_id} not found.")

        if op == "remove_task":
            project.tasks.remove(task)
            return text_outcome(f"Task with ID {task_id} removed.")
        task.completed = True
        return text_outcome(f"Task with ID {task_id} marked as completed.")


def register(server: ToolServer) -> None:
    server.register(TodoListTool(server.config.data).definition())

"""Data models for Task Master.

Result and request envelopes that cross the tool boundary, and the task
document shapes written to ``tasks/tasks.json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


INITIAL_TASK_STATUS = "pending"
TASK_PRIORITIES = ("high", "medium", "low")


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Failure description carried by a ResultEnvelope."""

    code: str
    message: str
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


@dataclass(frozen=True, slots=True)
class ResultEnvelope:
    """Uniform success/error wrapper returned by every operation.

    A successful envelope carries ``data`` and no ``error``; a failed one
    carries an ``error`` with a non-empty message and no ``data``.
    """

    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[ErrorInfo] = None

    def __post_init__(self) -> None:
        if self.success:
            if self.data is None or self.error is not None:
                raise ValueError("A successful result requires data and no error")
        else:
            if self.error is None or self.data is not None:
                raise ValueError("A failed result requires an error and no data")
            if not self.error.message:
                raise ValueError("A failed result requires a non-empty error message")

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "ResultEnvelope":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, details: Optional[str] = None) -> "ResultEnvelope":
        return cls(success=False, error=ErrorInfo(code=code, message=message, details=details))

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error.to_dict()}


@dataclass(frozen=True, slots=True)
class GenerationRequestEnvelope:
    """Prompt pair handed back to the caller when it must run the generation."""

    system_prompt: str
    user_prompt: str
    delegate_to_caller: bool = True

    def __post_init__(self) -> None:
        if self.delegate_to_caller and not (self.system_prompt and self.user_prompt):
            raise ValueError("Delegated requests need both a system and a user prompt")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systemPrompt": self.system_prompt,
            "userPrompt": self.user_prompt,
            "delegateToCaller": self.delegate_to_caller,
        }


@dataclass(slots=True)
class TaskRecord:
    """One entry of a generated task document."""

    id: int
    title: str
    description: str
    status: str = INITIAL_TASK_STATUS
    dependencies: List[int] = field(default_factory=list)
    priority: str = "medium"
    details: str = ""
    test_strategy: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "dependencies": list(self.dependencies),
            "priority": self.priority,
            "details": self.details,
            "testStrategy": self.test_strategy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        return cls(
            id=int(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            status=data.get("status", INITIAL_TASK_STATUS),
            dependencies=[int(dep) for dep in data.get("dependencies", [])],
            priority=data.get("priority", "medium"),
            details=data.get("details", ""),
            test_strategy=data.get("testStrategy", ""),
        )


@dataclass(slots=True)
class TaskMetadata:
    """Metadata block of a task document."""

    project_name: str
    total_tasks: int = 0
    generated_at: str = field(default_factory=lambda: date.today().isoformat())
    source_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "projectName": self.project_name,
            "totalTasks": self.total_tasks,
        }
        if self.source_file is not None:
            data["sourceFile"] = self.source_file
        data["generatedAt"] = self.generated_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskMetadata":
        return cls(
            project_name=data.get("projectName", ""),
            total_tasks=int(data.get("totalTasks", 0)),
            generated_at=data.get("generatedAt") or date.today().isoformat(),
            source_file=data.get("sourceFile"),
        )


@dataclass(slots=True)
class TaskCollection:
    """The ``tasks.json`` document: tasks plus metadata."""

    metadata: TaskMetadata
    tasks: List[TaskRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def empty(cls, project_name: str) -> "TaskCollection":
        return cls(metadata=TaskMetadata(project_name=project_name, total_tasks=0))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskCollection":
        """Parse a task document; ``ValueError`` when it has no task list."""
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise ValueError("Task document must be an object with a 'tasks' list")
        tasks = [TaskRecord.from_dict(task) for task in data["tasks"]]
        metadata = TaskMetadata.from_dict(data.get("metadata") or {})
        metadata.total_tasks = len(tasks)
        return cls(metadata=metadata, tasks=tasks)

    def extend(self, other: "TaskCollection") -> None:
        """Append ``other``'s tasks, renumbering them after the highest existing id.

        Dependencies inside ``other`` are shifted by the same offset.
        """
        offset = max((task.id for task in self.tasks), default=0)
        for task in other.tasks:
            task.id += offset
            task.dependencies = [dep + offset for dep in task.dependencies]
            self.tasks.append(task)
        self.metadata.total_tasks = len(self.tasks)
        self.metadata.generated_at = other.metadata.generated_at

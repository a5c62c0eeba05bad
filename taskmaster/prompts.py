"""Prompt construction for turning a requirements document into tasks."""

from __future__ import annotations

import json
import textwrap
from datetime import date
from typing import Optional

from .models import (
    INITIAL_TASK_STATUS,
    TASK_PRIORITIES,
    GenerationRequestEnvelope,
    TaskMetadata,
    TaskRecord,
)


DEFAULT_PROJECT_NAME = "PRD Implementation"

_SYSTEM_TEMPLATE = textwrap.dedent(
    """\
    You are an AI assistant breaking down a Product Requirements Document (PRD) into sequential development tasks. Produce exactly {count} well-structured, actionable tasks based on the PRD provided.

    Before writing the task list, work through these steps inside <prd_breakdown> tags in your thinking block:

    1. List the key components of the PRD.
    2. Identify the main features and functionality it describes.
    3. Note any specific technical requirements or constraints.
    4. Outline a high-level sequence of work needed to implement the PRD.

    Assume there is no existing codebase. Keep each task detailed enough to act on while keeping the overall plan high level.

    Every task must follow this structure:

    {{
      "id": number,
      "title": string,
      "description": string,
      "status": "{status}",
      "dependencies": number[] (ids of tasks this one depends on),
      "priority": {priorities},
      "details": string (implementation guidance),
      "testStrategy": string (how to validate the task)
    }}

    Rules:
    1. Number tasks from 1 to {count} in ascending order.
    2. Every task starts with status "{status}".
    3. A task may only depend on tasks with a strictly lower id.
    4. Keep each task atomic and focused on a single responsibility.
    5. Start with setup and core functionality, then move to advanced features.
    6. Assign priority from criticality and position in the dependency order.
    7. Put concrete implementation guidance in "details" and a validation approach in "testStrategy".
    8. Follow any libraries, schemas, frameworks or stack choices the PRD names.
    9. Fill gaps the PRD leaves open without contradicting its explicit requirements.
    10. Prefer the most direct implementation path over speculative generality.

    The final output must be a JSON object with exactly this shape:

    {example}

    Respond with valid JSON only: no prose, no markdown fences, no comments."""
)

_USER_TEMPLATE = "Here's the Product Requirements Document (PRD) to break down into {count} tasks:\n\n{document}"


def _example_document(task_count: int, source_path: Optional[str], generated_on: date) -> str:
    example_task = TaskRecord(
        id=1,
        title="Example Task Title",
        description="Brief description of the task",
        dependencies=[],
        priority="high",
        details="Detailed implementation guidance",
        test_strategy="Approach for validating this task",
    )
    metadata = TaskMetadata(
        project_name=DEFAULT_PROJECT_NAME,
        total_tasks=task_count,
        generated_at=generated_on.isoformat(),
        source_file=source_path,
    )
    return json.dumps({"tasks": [example_task.to_dict()], "metadata": metadata.to_dict()}, indent=2)


def build_task_generation_request(
    document_text: str,
    task_count: int,
    *,
    source_path: Optional[str] = None,
    generated_on: Optional[date] = None,
) -> GenerationRequestEnvelope:
    """Build the prompt pair for generating ``task_count`` tasks from a document.

    The user prompt embeds ``document_text`` unchanged. Output is fully
    determined by the arguments; ``generated_on`` defaults to today.
    """
    generated_on = generated_on or date.today()
    system_prompt = _SYSTEM_TEMPLATE.format(
        count=task_count,
        status=INITIAL_TASK_STATUS,
        priorities=" | ".join(f'"{priority}"' for priority in TASK_PRIORITIES),
        example=_example_document(task_count, source_path, generated_on),
    )
    user_prompt = _USER_TEMPLATE.format(count=task_count, document=document_text)
    return GenerationRequestEnvelope(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        delegate_to_caller=True,
    )

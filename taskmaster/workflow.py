"""Direct functions behind the Task Master tools.

Each function validates its arguments, does its work through the
workspace and returns a ResultEnvelope. Nothing raises past these
functions. Argument and payload keys use the tools' camelCase names.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import ModelConfig, coerce_bool, parse_int, resolve_model_config
from .models import GenerationRequestEnvelope, ResultEnvelope, TaskCollection
from .prompts import build_task_generation_request
from .providers import ChatParams
from .selection import NoProviderAvailable, ProviderSelection, select_model
from .taskmaster_logging import log_error_with_context, log_operation, log_tool_event
from .workspace import ProjectWorkspace


logger = logging.getLogger("taskmaster.workflow")

DEFAULT_TASK_COUNT = 10

NEXT_STEP_AFTER_INIT = (
    "Now that the project is initialized, the next step is to create the tasks by parsing a PRD. "
    "The parse_prd tool needs a PRD text file as input, usually scripts/prd.txt. If the user does not "
    "have one yet, ask about their idea and use scripts/example_prd.txt as a template to write "
    "scripts/prd.txt. Then call parse_prd to generate the tasks. There is no need to look for tasks "
    "after initialization or to reinitialize the project before parsing."
)


def _failure(log: Any, code: str, message: str, details: Optional[str] = None) -> ResultEnvelope:
    log.error(message)
    return ResultEnvelope.fail(code, message, details)


def parse_task_count(value: Any, log: Any = logger) -> int:
    """Task count from a number or string; absent values and bad input yield the default.

    Only a present but unusable value is logged as a warning.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_TASK_COUNT
    count = parse_int(value)
    if count is None or count < 1:
        log.warning(f"Invalid numTasks value: {value!r}. Using default: {DEFAULT_TASK_COUNT}")
        return DEFAULT_TASK_COUNT
    return count


def _generate_tasks(
    selection: ProviderSelection,
    request: GenerationRequestEnvelope,
    model_config: ModelConfig,
) -> TaskCollection:
    response = selection.client.create_message(ChatParams(
        messages=[{"role": "user", "content": request.user_prompt}],
        model=model_config.model,
        system=request.system_prompt,
        max_tokens=model_config.max_tokens,
        temperature=model_config.temperature,
    ))
    try:
        document = json.loads(response.text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Provider response is not a task document: {e}") from e
    return TaskCollection.from_dict(document)


def _write_tasks(
    workspace: ProjectWorkspace,
    output_path: Path,
    generated: TaskCollection,
    append: bool,
) -> TaskCollection:
    if append and output_path.exists():
        collection = TaskCollection.from_dict(json.loads(workspace.read_document(output_path)))
        collection.extend(generated)
    else:
        collection = generated
    workspace.write_json(output_path, collection.to_dict())
    return collection


def parse_prd_direct(
    args: Mapping[str, Any],
    log: Any = None,
    context: Optional[Mapping[str, Any]] = None,
) -> ResultEnvelope:
    """Turn a requirements document into tasks, or into a request for the caller.

    ``args`` holds ``projectRoot``, ``input``, ``output`` and optionally
    ``numTasks``, ``append`` and ``force``. ``context`` may carry a
    ``session`` mapping and an ``ambient`` mapping of configuration values.

    When the built request delegates to the caller, the output file is not
    written and the envelope carries the prompt pair. Otherwise the selected
    client generates the tasks and they are written to ``output``.
    """
    log = log or logger
    context = context or {}
    session = context.get("session")
    ambient = context.get("ambient")

    try:
        log.info(f"Parsing PRD document with args: {json.dumps(dict(args), default=str)}")

        project_root = args.get("projectRoot")
        if not project_root:
            return _failure(log, "MISSING_PROJECT_ROOT", "Project root is required for parse_prd")

        input_arg = args.get("input")
        if not input_arg:
            return _failure(log, "MISSING_INPUT_PATH", "Input file path is required for parse_prd")

        output_arg = args.get("output")
        if not output_arg:
            return _failure(log, "MISSING_OUTPUT_PATH", "Output file path is required for parse_prd")

        workspace = ProjectWorkspace(project_root)
        input_path = workspace.resolve(input_arg)
        if not input_path.exists():
            return _failure(
                log,
                "INPUT_FILE_NOT_FOUND",
                f"Input file not found: {input_path}",
                details=(
                    f"Checked path: {input_path}\n"
                    f"Project root: {project_root}\n"
                    f"Input argument: {input_arg}"
                ),
            )

        document = workspace.read_document(input_path)

        output_path = workspace.resolve(output_arg)
        workspace.ensure_parent_dir(output_path)

        num_tasks = parse_task_count(args.get("numTasks"), log)
        append = coerce_bool(args.get("append"))
        force = coerce_bool(args.get("force"))

        log.info(
            f"Preparing to parse PRD from {input_path} and output to {output_path} "
            f"with {num_tasks} tasks, append mode: {append}"
        )

        model_config = resolve_model_config(ambient, session)
        try:
            selection = select_model(session, ambient=ambient, log=log)
        except NoProviderAvailable as e:
            return _failure(log, "AI_CLIENT_ERROR", f"Cannot initialize AI client: {e}")

        request = build_task_generation_request(document, num_tasks, source_path=str(input_path))

        if request.delegate_to_caller:
            log_tool_event(
                "prd_parse_delegated",
                input_path=str(input_path),
                output_path=str(output_path),
                num_tasks=num_tasks,
                provider=selection.kind.value,
            )
            return ResultEnvelope.ok({
                "message": "PRD parsing should be handled directly by the calling assistant",
                **request.to_dict(),
                "inputPath": str(input_path),
                "outputPath": str(output_path),
                "numTasks": num_tasks,
                "append": append,
                "force": force,
                "provider": selection.kind.value,
                "modelConfig": model_config.to_dict(),
            })

        generated = _generate_tasks(selection, request, model_config)
        task_count = len(generated.tasks)
        collection = _write_tasks(workspace, output_path, generated, append)

        message = f"Successfully {'appended' if append else 'generated'} {task_count} tasks from PRD"
        log.info(message)
        log_tool_event(
            "prd_parse_completed",
            output_path=str(output_path),
            task_count=task_count,
            total_tasks=collection.metadata.total_tasks,
            provider=selection.kind.value,
        )
        return ResultEnvelope.ok({
            "message": message,
            "delegateToCaller": False,
            "taskCount": task_count,
            "outputPath": str(output_path),
            "appended": append,
        })

    except Exception as e:
        log_error_with_context(e, {"operation": "parse_prd", "args": dict(args)}, log)
        return ResultEnvelope.fail("PARSE_PRD_ERROR", str(e) or "Unknown error parsing PRD")


def initialize_project_direct(args: Mapping[str, Any], log: Any = None) -> ResultEnvelope:
    """Scaffold ``scripts/`` and ``tasks/`` under the project root; safe to repeat.

    ``skipInstall``, ``addAliases`` and ``yes`` are accepted and ignored.
    """
    log = log or logger

    project_root = args.get("projectRoot")
    if not project_root:
        return _failure(log, "MISSING_PROJECT_ROOT", "Project root is required for initialize_project")

    try:
        workspace = ProjectWorkspace(project_root)
        log.info(f"Initializing project at {workspace.root}")
        with log_operation("initialize_project", project_root=str(workspace.root)):
            report = workspace.initialize()
    except Exception as e:
        log.error(f"Error initializing project: {e}")
        return ResultEnvelope.fail("INITIALIZE_PROJECT_ERROR", str(e) or "Unknown error initializing project")

    data: Dict[str, Any] = {
        "message": "Project initialized successfully.",
        "nextStep": NEXT_STEP_AFTER_INIT,
        "projectRoot": str(workspace.root),
        **report.to_dict(),
    }
    return ResultEnvelope.ok(data)

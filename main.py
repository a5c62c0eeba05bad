"""MCP server exposing Task Master project tools for direct generation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

from mcp.server.fastmcp import FastMCP

from taskmaster.config import resolve_log_settings, server_ambient_config
from taskmaster.models import ResultEnvelope
from taskmaster.taskmaster_logging import log_error_with_context, setup_logging
from taskmaster.workflow import initialize_project_direct, parse_prd_direct

mcp = FastMCP("task-master")

logger = logging.getLogger("taskmaster.server")


def _run_tool(name: str, func: Callable[..., ResultEnvelope], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    """Last line of defense: anything escaping a direct function becomes a failed envelope."""
    try:
        return func(*args, **kwargs).to_dict()
    except Exception as e:
        log_error_with_context(e, {"operation": name}, logger)
        return ResultEnvelope.fail("TOOL_EXECUTION_ERROR", str(e) or f"{type(e).__name__} in {name}").to_dict()


# Tool parameters are named exactly as hosts send them on the wire.


@mcp.tool()
def initialize_project(
    projectRoot: Optional[str] = None,
    skipInstall: bool = False,
    addAliases: bool = False,
    yes: bool = True,
) -> Dict[str, Any]:
    """Initialize a Task Master project structure in the given directory.
    Creates scripts/ with an example PRD template and tasks/ with an empty tasks.json.
    Always pass the absolute project root directory as projectRoot."""

    logger.info(f"Initializing project at {projectRoot}")
    return _run_tool(
        "initialize_project",
        initialize_project_direct,
        {
            "projectRoot": projectRoot,
            "skipInstall": skipInstall,
            "addAliases": addAliases,
            "yes": yes,
        },
        logger,
    )


@mcp.tool()
def parse_prd(
    projectRoot: Optional[str] = None,
    input: str = "scripts/prd.txt",
    numTasks: Optional[Union[int, str]] = None,
    output: str = "tasks/tasks.json",
    force: bool = False,
    append: bool = False,
) -> Dict[str, Any]:
    """Parse a Product Requirements Document (PRD) into the prompts for generating initial tasks.
    No tasks are generated here: the result carries systemPrompt and userPrompt for you to
    answer yourself, and the JSON you produce belongs at the returned outputPath.
    numTasks defaults to 10; scale it with project complexity and avoid values above 50.
    Run after initialize_project once scripts/prd.txt exists; reinitializing is not necessary."""

    result = _run_tool(
        "parse_prd",
        parse_prd_direct,
        {
            "projectRoot": projectRoot,
            "input": input,
            "numTasks": numTasks,
            "output": output,
            "force": force,
            "append": append,
        },
        logger,
        {"session": None, "ambient": server_ambient_config()},
    )
    if result["success"] and result["data"].get("delegateToCaller"):
        logger.info("Request should be handled directly by the calling assistant")
    return result


def main() -> None:
    log_level, log_file = resolve_log_settings()
    setup_logging(log_level, log_file)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

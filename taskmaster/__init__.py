"""Task Master MCP server - direct generation core."""

from .config import ExecutionMode, ModelConfig, resolve_mode, resolve_model_config
from .models import GenerationRequestEnvelope, ResultEnvelope, TaskRecord
from .prompts import build_task_generation_request
from .selection import NoProviderAvailable, ProviderSelection, select_model
from .workflow import initialize_project_direct, parse_prd_direct

__all__ = [
    "ExecutionMode",
    "ModelConfig",
    "resolve_mode",
    "resolve_model_config",
    "GenerationRequestEnvelope",
    "ResultEnvelope",
    "TaskRecord",
    "build_task_generation_request",
    "NoProviderAvailable",
    "ProviderSelection",
    "select_model",
    "initialize_project_direct",
    "parse_prd_direct",
]

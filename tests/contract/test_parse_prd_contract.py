"""
Contract tests for the Task Master tool results:
Every operation returns a result envelope with exactly one of data or error,
direct generation hands prompts back to the caller instead of writing tasks,
and failures carry a stable error code and a non-empty message.
"""

import json
from pathlib import Path

import pytest

from taskmaster.config import ExecutionMode, resolve_mode, resolve_model_config
from taskmaster.models import ResultEnvelope
from taskmaster.workflow import initialize_project_direct, parse_prd_direct


DIRECT_CONTEXT = {"session": None, "ambient": {"CLAUDE_DESKTOP": "true"}}


def _assert_envelope_shape(envelope: ResultEnvelope) -> None:
    data = envelope.to_dict()
    if data["success"]:
        assert isinstance(data["data"], dict)
        assert "error" not in data
    else:
        assert "data" not in data
        assert data["error"]["code"]
        assert data["error"]["message"]


class TestExecutionModeContract:
    """Contract tests for mode resolution."""

    @pytest.mark.parametrize("ambient_flag, session_flag", [("true", None), (None, "true"), ("true", "true")])
    def test_any_true_flag_enables_direct_generation(self, ambient_flag, session_flag):
        ambient = {"CLAUDE_DESKTOP": ambient_flag} if ambient_flag else {}
        session = {"CLAUDE_DESKTOP": session_flag} if session_flag else {}

        assert resolve_mode(ambient, session) is ExecutionMode.DIRECT_GENERATION

    @pytest.mark.parametrize("ambient, session", [({}, {}), ({"CLAUDE_DESKTOP": "false"}, None), ({}, {"CLAUDE_DESKTOP": ""})])
    def test_no_true_flag_means_provider_backed(self, ambient, session):
        assert resolve_mode(ambient, session) is ExecutionMode.PROVIDER_BACKED

    def test_model_config_is_total(self):
        """
        Contract Test: malformed numbers fall back to defaults.

        Given: a session with unparseable MAX_TOKENS and TEMPERATURE
        When: the model configuration is resolved
        Then: every field is populated and the defaults are used
        """
        config = resolve_model_config({}, {"MAX_TOKENS": "abc", "TEMPERATURE": "warm"})

        assert config.model == "claude-3-7-sonnet-20250219"
        assert config.max_tokens == 64000
        assert config.temperature == 0.2


class TestParsePrdContract:
    """Contract tests for parse_prd in direct generation mode."""

    @pytest.fixture
    def project(self, tmp_path):
        scripts = tmp_path / "scripts"
        scripts.mkdir()
        return tmp_path

    def test_small_document_with_five_tasks(self, project):
        """
        Contract Test: the request carries the count and the whole document.

        Given: a 50-byte requirements document
        When: parse_prd is called with numTasks=5
        Then: the system prompt names 5 tasks and the user prompt embeds the document
        """
        document = "Build a CLI that tracks daily water intake goals.\n"
        assert len(document.encode("utf-8")) == 50
        (project / "scripts" / "prd.txt").write_text(document, encoding="utf-8")

        result = parse_prd_direct(
            {"projectRoot": str(project), "input": "scripts/prd.txt", "output": "tasks/tasks.json", "numTasks": 5},
            context=DIRECT_CONTEXT,
        )

        _assert_envelope_shape(result)
        assert result.success is True
        assert "exactly 5" in result.data["systemPrompt"]
        assert document in result.data["userPrompt"]
        assert result.data["delegateToCaller"] is True

    def test_missing_input_file(self, project):
        """
        Contract Test: a missing input document is reported, not raised.

        Given: a project without scripts/missing.txt
        When: parse_prd is pointed at it
        Then: the result fails with INPUT_FILE_NOT_FOUND
        """
        result = parse_prd_direct(
            {"projectRoot": str(project), "input": "scripts/missing.txt", "output": "tasks/tasks.json"},
            context=DIRECT_CONTEXT,
        )

        _assert_envelope_shape(result)
        assert result.success is False
        assert result.error.code == "INPUT_FILE_NOT_FOUND"

    def test_output_file_never_created(self, project):
        """
        Contract Test: direct generation leaves the output to the caller.

        Given: a valid requirements document and no tasks file
        When: parse_prd succeeds
        Then: no tasks file exists and outputPath is the resolved absolute path
        """
        (project / "scripts" / "prd.txt").write_text("Requirements", encoding="utf-8")

        result = parse_prd_direct(
            {"projectRoot": str(project), "input": "scripts/prd.txt", "output": "tasks/tasks.json"},
            context=DIRECT_CONTEXT,
        )

        output_path = Path(result.data["outputPath"])
        assert output_path.is_absolute()
        assert output_path == (project / "tasks" / "tasks.json").resolve()
        assert not output_path.exists()

    @pytest.mark.parametrize("args, code", [
        ({}, "MISSING_PROJECT_ROOT"),
        ({"projectRoot": "/tmp/x"}, "MISSING_INPUT_PATH"),
        ({"projectRoot": "/tmp/x", "input": "a.txt"}, "MISSING_OUTPUT_PATH"),
    ])
    def test_validation_failures_are_envelopes(self, args, code):
        result = parse_prd_direct(args, context=DIRECT_CONTEXT)

        _assert_envelope_shape(result)
        assert result.error.code == code

    def test_no_provider_outside_direct_mode(self, project):
        (project / "scripts" / "prd.txt").write_text("Requirements", encoding="utf-8")

        result = parse_prd_direct(
            {"projectRoot": str(project), "input": "scripts/prd.txt", "output": "tasks/tasks.json"},
            context={"session": None, "ambient": {}},
        )

        _assert_envelope_shape(result)
        assert result.error.code == "AI_CLIENT_ERROR"


class TestInitializeProjectContract:
    """Contract tests for initialize_project."""

    def test_scaffold_then_repeat(self, tmp_path):
        """
        Contract Test: initialization is idempotent.

        Given: an empty project directory
        When: initialize_project is called twice
        Then: the scaffold exists once and the second call changes nothing
        """
        root = tmp_path / "proj"

        first = initialize_project_direct({"projectRoot": str(root)})
        tasks_text = (root / "tasks" / "tasks.json").read_text(encoding="utf-8")
        second = initialize_project_direct({"projectRoot": str(root)})

        for result in (first, second):
            _assert_envelope_shape(result)
            assert result.success is True
            assert result.data["nextStep"]
        assert (root / "scripts" / "example_prd.txt").exists()
        tasks = json.loads(tasks_text)
        assert tasks["tasks"] == []
        assert tasks["metadata"]["totalTasks"] == 0
        assert (root / "tasks" / "tasks.json").read_text(encoding="utf-8") == tasks_text

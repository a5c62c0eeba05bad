"""Project workspace: paths and files under a Task Master project root."""

from __future__ import annotations

import json
import logging
import os
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .models import TaskCollection


logger = logging.getLogger("taskmaster.workspace")


EXAMPLE_PRD = textwrap.dedent(
    """\
    # Example Product Requirements Document

    ## Project Overview
    Describe your project here. What problem does it solve? Who is it for?

    ## Core Features
    - Feature 1: Description of feature 1
    - Feature 2: Description of feature 2
    - Feature 3: Description of feature 3

    ## Technical Requirements
    - Platform/environment
    - Dependencies/libraries
    - Performance requirements
    - Security requirements

    ## User Interface
    - Design guidelines
    - User interaction flows
    - Accessibility requirements

    ## Milestones
    - Alpha release: Key features and target date
    - Beta release: Features and target date
    - v1.0 release: Final feature set and launch date

    ## Constraints
    - Time constraints
    - Budget constraints
    - Technical constraints
    """
)


def _normalize(path: Path) -> Path:
    """Collapse ``.`` and ``..`` segments without touching the file system."""
    return Path(os.path.normpath(path))


@dataclass(slots=True)
class InitializationReport:
    """Paths created or found while scaffolding a project."""

    created: List[Path] = field(default_factory=list)
    existing: List[Path] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "created": [str(path) for path in self.created],
            "existing": [str(path) for path in self.existing],
        }


class ProjectWorkspace:
    """Resolve and manage files beneath a project root.

    Nothing is created on construction; callers decide which directories
    and files come into existence.
    """

    SCRIPTS_DIR = "scripts"
    TASKS_DIR = "tasks"
    EXAMPLE_PRD_NAME = "example_prd.txt"
    TASKS_FILE_NAME = "tasks.json"

    def __init__(self, root: Path | str):
        self.root = _normalize(Path(root).expanduser().absolute())

    @property
    def scripts_dir(self) -> Path:
        return self.root / self.SCRIPTS_DIR

    @property
    def tasks_dir(self) -> Path:
        return self.root / self.TASKS_DIR

    @property
    def example_prd_path(self) -> Path:
        return self.scripts_dir / self.EXAMPLE_PRD_NAME

    @property
    def tasks_path(self) -> Path:
        return self.tasks_dir / self.TASKS_FILE_NAME

    @property
    def project_name(self) -> str:
        return self.root.name

    # ------------------------------------------------------------------
    # Path helpers
    # ------------------------------------------------------------------

    def resolve(self, path: Path | str) -> Path:
        """Absolute paths pass through; relative ones are joined to the root.

        Symlinks are not followed, so a linked project root stays as given.
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return _normalize(candidate)

    def ensure_parent_dir(self, path: Path) -> bool:
        """Create the parent directory of ``path``; True when it had to be created."""
        parent = path.parent
        if parent.exists():
            return False
        logger.info(f"Creating output directory: {parent}")
        parent.mkdir(parents=True, exist_ok=True)
        return True

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def read_document(self, path: Path) -> str:
        content = path.read_text(encoding="utf-8")
        logger.info(f"Read {len(content)} characters from {path}")
        return content

    def write_json(self, path: Path, data: Dict[str, Any]) -> Path:
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        return path

    # ------------------------------------------------------------------
    # Scaffolding
    # ------------------------------------------------------------------

    def initialize(self) -> InitializationReport:
        """Create ``scripts/``, ``tasks/``, the example PRD and an empty task document.

        Existing directories and files are left untouched.
        """
        report = InitializationReport()

        for directory in (self.scripts_dir, self.tasks_dir):
            if directory.exists():
                report.existing.append(directory)
                continue
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {directory}")
            report.created.append(directory)

        if self.example_prd_path.exists():
            report.existing.append(self.example_prd_path)
        else:
            self.example_prd_path.write_text(EXAMPLE_PRD, encoding="utf-8")
            logger.info(f"Created example PRD at {self.example_prd_path}")
            report.created.append(self.example_prd_path)

        if self.tasks_path.exists():
            report.existing.append(self.tasks_path)
        else:
            self.write_json(self.tasks_path, TaskCollection.empty(self.project_name).to_dict())
            logger.info(f"Created empty tasks.json at {self.tasks_path}")
            report.created.append(self.tasks_path)

        return report

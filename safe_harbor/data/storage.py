"""Project save/load using JSON serialization, and plain-text export."""

import json
import logging
import time
from pathlib import Path
from typing import List

from safe_harbor.data.registry import ProjectRegistry
from safe_harbor.data.validators import validate_compliance, validate_project
from safe_harbor.models.project import Project

logger = logging.getLogger(__name__)


def save_projects(projects: List[Project], filepath: str) -> None:
    """Save projects to a JSON file.

    Args:
        projects: Projects to save.
        filepath: Output file path (should end in .json).

    Raises:
        OSError: If file cannot be written.
    """
    data = {"projects": [p.to_dict() for p in projects]}
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    logger.info("Saved %d projects to %s", len(projects), path)


def load_projects(filepath: str) -> List[Project]:
    """Load projects from a JSON file.

    Accepts either {"projects": [...]} or a bare list. Every record is
    validated before it is returned.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If the file shape or any record is malformed.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    records = data.get("projects", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ValueError(f"{filepath}: expected a list of project records, got {type(records).__name__}")
    projects = [_project_from_record(i, record) for i, record in enumerate(records, start=1)]
    logger.info("Loaded %d projects from %s", len(projects), filepath)
    return projects


def _project_from_record(index: int, record) -> Project:
    if not isinstance(record, dict):
        raise ValueError(f"Record {index}: expected an object, got {type(record).__name__}")
    compliance = record.get("itc_compliance")
    if compliance is not None and not isinstance(compliance, dict):
        raise ValueError(f"Record {index}: itc_compliance must be an object")
    try:
        project = Project.from_dict(record)
    except TypeError as e:
        raise ValueError(f"Record {index}: {e}") from e

    valid, messages = validate_project(project)
    compliance_valid, compliance_msg = validate_compliance(project.itc_compliance)
    if not compliance_valid:
        valid = False
        messages.append(compliance_msg)
    if not valid:
        errors = [m for m in messages if not m.startswith("Warning")]
        raise ValueError(f"Record {index}: " + " ".join(errors))
    return project


def load_registry(filepath: str) -> ProjectRegistry:
    """Load a saved portfolio into a registry."""
    return ProjectRegistry(load_projects(filepath))


def export_text(text: str, output_dir: str = ".", prefix: str = "safe-harbor-contract") -> Path:
    """Write a plain-text blob under a generated, timestamped filename.

    Args:
        text: Content to write.
        output_dir: Destination directory (created if missing).
        prefix: Filename prefix.

    Returns:
        Path of the written file, e.g. safe-harbor-contract-1734220800000.txt.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() * 1000)
    path = directory / f"{prefix}-{stamp}.txt"
    while path.exists():
        stamp += 1
        path = directory / f"{prefix}-{stamp}.txt"
    path.write_text(text, encoding="utf-8")
    logger.info("Exported %d characters to %s", len(text), path)
    return path

"""In-memory project collection.

The registry is the only mutable state in the system. It changes only by
appending a new project or by replacing one project's compliance record;
there is no delete operation.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterator, List, Optional

from safe_harbor.data.validators import parse_bool
from safe_harbor.models.calculations import initial_boc_qualified
from safe_harbor.models.groups import classify_group
from safe_harbor.models.project import ITCCompliance, Project

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """Holds projects keyed by a sequential, never-reused id.

    Args:
        projects: Optional existing projects (e.g., loaded from JSON). Their
            ids must be unique; the next id continues after the largest one.
    """

    def __init__(self, projects: Optional[List[Project]] = None):
        self._projects: Dict[int, Project] = {}
        self._next_id = 1
        for project in projects or []:
            if project.project_id in self._projects:
                raise ValueError(f"Duplicate project_id {project.project_id}")
            self._projects[project.project_id] = project
            self._next_id = max(self._next_id, project.project_id + 1)

    def __len__(self) -> int:
        return len(self._projects)

    def __iter__(self) -> Iterator[Project]:
        return iter(self._projects.values())

    def __contains__(self, project_id: int) -> bool:
        return project_id in self._projects

    def list_projects(self) -> List[Project]:
        return list(self._projects.values())

    def get(self, project_id: int) -> Project:
        """Return a project by id.

        Raises:
            KeyError: If no project has this id.
        """
        if project_id not in self._projects:
            raise KeyError(f"Project {project_id} not found")
        return self._projects[project_id]

    def add_project(
        self,
        capacity_mw: float,
        total_cost: float,
        allocated_cost: float,
        payment_date: date,
        physical_work_by_726: bool = False,
        **descriptive,
    ) -> Project:
        """Create a project from calculator input.

        The group and the initial BOC qualification are computed here, once,
        and frozen into the record.

        Args:
            capacity_mw: Capacity in MW AC.
            total_cost: Estimated total project cost ($).
            allocated_cost: Allocated equipment cost ($).
            payment_date: Safe-harbor payment date.
            physical_work_by_726: Physical work feasible by July 4, 2026.
            **descriptive: Carried-through fields (name, location, permits, ...).

        Returns:
            The stored Project.
        """
        group = classify_group(capacity_mw, payment_date, physical_work_by_726).group
        compliance = ITCCompliance(
            boc_qualified=initial_boc_qualified(capacity_mw, allocated_cost, total_cost, payment_date),
        )
        project = Project(
            project_id=self._next_id,
            capacity_mw=capacity_mw,
            total_cost=total_cost,
            allocated_cost=allocated_cost,
            payment_date=payment_date,
            physical_work_by_726=physical_work_by_726,
            group=group,
            itc_compliance=compliance,
            **descriptive,
        )
        self._projects[project.project_id] = project
        self._next_id += 1
        logger.info("Added project %d (%s): group %d, BOC qualified=%s",
                    project.project_id, project.name or "unnamed", int(group),
                    compliance.boc_qualified)
        return project

    def update_compliance(self, project_id: int, field_name: str, value) -> Project:
        """Replace one field of a project's compliance record.

        Raises:
            KeyError: If the project does not exist.
            ValueError: If field_name is not a compliance field, the value
                is out of range, or a flag value is not a recognizable boolean.
        """
        project = self.get(project_id)
        if field_name not in ITCCompliance.field_names():
            raise ValueError(
                f"Unknown compliance field '{field_name}'. Valid: {ITCCompliance.field_names()}"
            )
        if field_name == "domestic_content_percentage":
            value = float(value)
        else:
            value = parse_bool(value)
        project.itc_compliance = replace(project.itc_compliance, **{field_name: value})
        logger.debug("Project %d: %s -> %r", project_id, field_name, value)
        return project


def sample_registry() -> ProjectRegistry:
    """Registry seeded with the Project Sunrise example."""
    registry = ProjectRegistry()
    registry.add_project(
        capacity_mw=5.0,
        total_cost=8_000_000,
        allocated_cost=520_000,
        payment_date=date(2025, 12, 15),
        physical_work_by_726=True,
        name="Project Sunrise",
        location="Texas",
        interconnection_status="Conditional Approval",
        site_control=True,
        permits="Building Permit Submitted",
        estimated_pis=date(2028, 6, 30),
    )
    return registry

# index_mcp/services/project_resolver.py

"""Open-project registry used to bind tool calls to a ProjectContext"""

from typing import Dict, List, Optional
import logging
import threading

from index_mcp.core.exceptions import ProjectResolutionError
from index_mcp.services.project_context import ProjectContext

logger = logging.getLogger(__name__)


class ProjectResolver:
    """Holds open projects keyed by base path"""

    def __init__(self):
        self._projects: Dict[str, ProjectContext] = {}
        self._lock = threading.Lock()

    def add(self, project: ProjectContext) -> None:
        with self._lock:
            self._projects[project.base_path] = project
        logger.info(f"Project opened: {project.name} ({project.base_path})")

    def remove(self, base_path: str) -> None:
        with self._lock:
            removed = self._projects.pop(base_path, None)
        if removed is not None:
            logger.info(f"Project closed: {removed.name}")

    @property
    def projects(self) -> List[ProjectContext]:
        with self._lock:
            return list(self._projects.values())

    def _available(self, projects: List[ProjectContext]) -> List[dict]:
        return [{"name": p.name, "path": p.base_path} for p in projects]

    def resolve(self, project_path: Optional[str] = None) -> ProjectContext:
        """
        Pick the project a call applies to

        Args:
            project_path: Optional base path supplied by the client

        Raises:
            ProjectResolutionError: no project, unknown path, or ambiguous
        """
        projects = self.projects

        if not projects:
            raise ProjectResolutionError(
                ProjectResolutionError.NO_PROJECT_OPEN,
                "No project is currently open."
            )

        if project_path is not None:
            normalized = project_path.rstrip("/") or "/"
            for project in projects:
                if project.base_path.rstrip("/") == normalized:
                    return project
            raise ProjectResolutionError(
                ProjectResolutionError.PROJECT_NOT_FOUND,
                f"No open project matches the specified path: {project_path}",
                available_projects=self._available(projects)
            )

        if len(projects) == 1:
            return projects[0]

        raise ProjectResolutionError(
            ProjectResolutionError.MULTIPLE_PROJECTS,
            "Multiple projects are open. Please specify 'project_path' with one of the available project paths.",
            available_projects=self._available(projects)
        )

    def __len__(self) -> int:
        return len(self._projects)

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Solution host boundary.

The host environment owns the real notion of a solution and of loaded and
unloaded projects. This module describes the slice of it the reloader needs:

- SolutionHost: abstract interface for the external collaborator
- InMemorySolutionHost: reference implementation backed by a dict
- unloaded_project_map: canonical-path index over the unloaded listing

Listings are plain finite lists of (path, handle) pairs. Calling the listing
again yields a fresh snapshot; there is no cursor to reset.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from project_closure.paths import normalize_project_path, path_key

logger = logging.getLogger(__name__)

# Opaque host-specific project handle
ProjectHandle = Any


class SolutionHost(ABC):
    """Abstract interface to the environment that loads projects."""

    @abstractmethod
    def list_unloaded_projects(self) -> List[Tuple[str, ProjectHandle]]:
        """List projects known to the solution but not loaded.

        Returns:
            (project file path, handle) pairs.
        """
        pass

    @abstractmethod
    def list_loaded_projects(self) -> List[Tuple[str, ProjectHandle]]:
        """List projects currently loaded.

        Returns:
            (project file path, handle) pairs.
        """
        pass

    @abstractmethod
    def reload_project(self, handle: ProjectHandle) -> None:
        """Bring an unloaded project to the loaded state."""
        pass

    @abstractmethod
    def unload_project(self, handle: ProjectHandle) -> None:
        """Unload a loaded project."""
        pass


def unloaded_project_map(
    host: SolutionHost, case_insensitive: Optional[bool] = None
) -> Dict[str, ProjectHandle]:
    """Index the host's unloaded projects by canonical path identity.

    Args:
        host: Solution host to query.
        case_insensitive: Identity case folding (None follows the host).

    Returns:
        Mapping of path_key -> handle.
    """
    return {
        path_key(path, case_insensitive): handle
        for path, handle in host.list_unloaded_projects()
    }


@dataclass
class _HostedProject:
    path: str
    handle: ProjectHandle
    loaded: bool


class InMemorySolutionHost(SolutionHost):
    """Solution host that keeps project state in memory.

    Handles default to the normalized project path. Every reload and unload
    request is appended to `requests` as ("reload" | "unload", path), in call
    order.

    Usage:
        host = InMemorySolutionHost()
        host.add_project("/sol/App/App.csproj", loaded=False)
        host.reload_project("/sol/App/App.csproj")
    """

    def __init__(self) -> None:
        """Initialize an empty solution."""
        self._projects: Dict[ProjectHandle, _HostedProject] = {}
        self.requests: List[Tuple[str, str]] = []

    def add_project(
        self, path: str, loaded: bool = True, handle: Optional[ProjectHandle] = None
    ) -> ProjectHandle:
        """Register a project with the solution.

        Args:
            path: Project file path.
            loaded: Initial state.
            handle: Handle to use; defaults to the normalized path.

        Returns:
            The project's handle.
        """
        normalized = normalize_project_path(path)
        project_handle = handle if handle is not None else normalized
        self._projects[project_handle] = _HostedProject(normalized, project_handle, loaded)
        return project_handle

    def _listing(self, loaded: bool) -> List[Tuple[str, ProjectHandle]]:
        return [(p.path, p.handle) for p in self._projects.values() if p.loaded == loaded]

    def list_unloaded_projects(self) -> List[Tuple[str, ProjectHandle]]:
        return self._listing(loaded=False)

    def list_loaded_projects(self) -> List[Tuple[str, ProjectHandle]]:
        return self._listing(loaded=True)

    def _lookup(self, handle: ProjectHandle) -> _HostedProject:
        try:
            return self._projects[handle]
        except KeyError:
            raise KeyError(f"Unknown project handle: {handle!r}") from None

    def reload_project(self, handle: ProjectHandle) -> None:
        project = self._lookup(handle)
        project.loaded = True
        self.requests.append(("reload", project.path))
        logger.debug(f"Reloaded {project.path}")

    def unload_project(self, handle: ProjectHandle) -> None:
        project = self._lookup(handle)
        project.loaded = False
        self.requests.append(("unload", project.path))
        logger.debug(f"Unloaded {project.path}")

    def is_loaded(self, path: str) -> bool:
        """Whether the project at path is loaded."""
        normalized = normalize_project_path(path)
        for project in self._projects.values():
            if project.path == normalized:
                return project.loaded
        raise KeyError(f"Unknown project: {path}")

    @property
    def reloaded_paths(self) -> List[str]:
        """Paths that received a reload request, in order."""
        return [path for action, path in self.requests if action == "reload"]

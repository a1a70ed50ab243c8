# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Per-resolution cache of parsed project content.

A ProjectLoadContext holds the reference values already read from project
files during ONE resolution, so a project reached through several paths of a
diamond is parsed once. It is created by the resolver at the start of a
resolve() call and closed when that call returns or raises.

Lifecycle:
- Never shared between resolutions (no lock, single-threaded use)
- Never persisted
- close() drops every cached entry; a closed context refuses further use
"""

import logging
from typing import Callable, Dict, List

from project_closure.models import LoadContextStatistics, ProjectFile

logger = logging.getLogger(__name__)

# Loader signature: project path -> raw reference values in declaration order
ReferenceLoader = Callable[[str], List[str]]


class ProjectLoadContext:
    """Cache of raw reference values keyed by project identity.

    Usage:
        with ProjectLoadContext() as context:
            refs = context.get_or_load(project, source.read_references)
    """

    def __init__(self) -> None:
        """Initialize an empty, open context."""
        self._entries: Dict[str, List[str]] = {}
        self._stats = LoadContextStatistics()
        self._closed = False

    def get_or_load(self, project: ProjectFile, loader: ReferenceLoader) -> List[str]:
        """Return cached reference values, loading them on first request.

        Args:
            project: Project to look up.
            loader: Called with the project path on a cache miss. Exceptions
                propagate and nothing is cached for that project.

        Returns:
            Copy of the raw reference values in declaration order.

        Raises:
            RuntimeError: If the context has been closed.
        """
        self._ensure_open()

        cached = self._entries.get(project.key)
        if cached is not None:
            self._stats.hits += 1
            return list(cached)

        self._stats.misses += 1
        references = list(loader(project.path))
        self._entries[project.key] = references
        self._stats.projects_loaded += 1
        logger.debug(f"Loaded {project.name}: {len(references)} reference(s)")
        return list(references)

    def __contains__(self, project: object) -> bool:
        return isinstance(project, ProjectFile) and project.key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def get_statistics(self) -> LoadContextStatistics:
        """Return a snapshot of the cache counters."""
        return LoadContextStatistics(
            hits=self._stats.hits,
            misses=self._stats.misses,
            projects_loaded=self._stats.projects_loaded,
        )

    def close(self) -> None:
        """Release all cached content. Safe to call more than once."""
        if self._closed:
            return
        released = len(self._entries)
        self._entries.clear()
        self._closed = True
        logger.debug(f"ProjectLoadContext closed, released {released} project(s)")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("ProjectLoadContext is closed")

    def __enter__(self) -> "ProjectLoadContext":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Closure resolver: every project reachable from a root via references.

The resolver performs a depth-first traversal over the reference relation:
1. A project already in the visited set is not processed again (the sole
   guard against cycles and repeated work on diamonds)
2. Otherwise it is marked visited, then its references are read
3. Each unvisited target is descended into, in declaration order

The traversal keeps an explicit stack of per-project edge iterators instead
of recursing, so long reference chains cannot hit the interpreter recursion
limit; the visiting order is the same pre-order a recursive walk produces.

State:
- Each resolve() call builds its own _TraversalState (visited set, load
  context, reader, limits). Nothing is shared between calls, so one
  resolver instance may serve any number of concurrent resolutions.

Failure semantics:
- ProjectReadError / UnresolvedReferencePath anywhere abort the resolution;
  no partial closure is returned
- Cycles are flattened silently (only counted in DEBUG logs)
- ResolutionTimeout when the visited-count or wall-clock bound is exceeded
- ResolutionCancelled when the caller's cancel event is set; it is checked
  before each project file is read
- The load context is closed on every exit path
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Set, Tuple

from project_closure.cache import ProjectLoadContext
from project_closure.config import Config
from project_closure.models import ClosureSet, ProjectFile, ReferenceEdge
from project_closure.paths import PathLike
from project_closure.project_reader import (
    MSBuildReferenceSource,
    ProjectGraphReader,
    ReferenceSource,
)

logger = logging.getLogger(__name__)


class ResolutionTimeout(Exception):
    """Raised when a resolution exceeds its configured bound.

    Kept distinct from read errors so callers can tell "graph too large"
    apart from "bad project data".

    Attributes:
        root_path: Root project of the aborted resolution.
        limit: Which bound tripped ("max_projects" or "timeout_seconds").
        threshold: Configured value of that bound.
        visited: Projects visited before aborting.
    """

    def __init__(self, root_path: str, limit: str, threshold: float, visited: int) -> None:
        self.root_path = root_path
        self.limit = limit
        self.threshold = threshold
        self.visited = visited
        super().__init__(
            f"Resolution of {root_path} exceeded {limit}={threshold} "
            f"after visiting {visited} project(s)"
        )


class ResolutionCancelled(Exception):
    """Raised when the caller cancels a resolution in progress."""

    def __init__(self, root_path: str, visited: int) -> None:
        self.root_path = root_path
        self.visited = visited
        super().__init__(f"Resolution of {root_path} cancelled after {visited} project(s)")


@dataclass
class _TraversalState:
    """Mutable state owned by exactly one resolve() call."""

    closure: ClosureSet
    context: ProjectLoadContext
    reader: ProjectGraphReader
    cancel_event: Optional[threading.Event]
    deadline: Optional[float]
    on_stack: Set[str] = field(default_factory=set)
    back_edges: int = 0
    revisits: int = 0


class ClosureResolver:
    """Computes the reference closure of a root project.

    The resolver itself holds configuration only. It is reentrant and
    meant to be instantiated wherever it is needed, not shared as a global.

    Usage:
        resolver = ClosureResolver()
        closure = resolver.resolve("/solution/App/App.csproj")
        for project in closure:
            print(project.path)
    """

    def __init__(
        self,
        source: Optional[ReferenceSource] = None,
        config: Optional[Config] = None,
        case_insensitive: Optional[bool] = None,
        max_projects: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the resolver.

        Args:
            source: Reference source. Defaults to MSBuild XML project files
                configured from config.
            config: Configuration; defaults when None.
            case_insensitive: Identity case folding override (None uses the
                config value, which itself defaults to the host filesystem).
            max_projects: Visited-node bound override (0 disables).
            timeout_seconds: Wall-clock bound override (0 disables).
            clock: Monotonic clock, injectable for tests.
        """
        self.config = config if config is not None else Config.from_dict({})
        self.source = source if source is not None else MSBuildReferenceSource(
            item_types=self.config.reference_item_types,
            max_file_kb=self.config.max_project_file_kb,
            expand_environment=self.config.expand_environment,
        )
        self.case_insensitive = (
            case_insensitive if case_insensitive is not None else self.config.case_insensitive_paths
        )
        self.max_projects = max_projects if max_projects is not None else self.config.max_projects
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else self.config.timeout_seconds
        )
        self._clock = clock

    def resolve(
        self, root_path: PathLike, cancel_event: Optional[threading.Event] = None
    ) -> ClosureSet:
        """Resolve the closure of a root project.

        Args:
            root_path: Root project file (absolute, or relative to the CWD).
            cancel_event: Optional event; when set, the resolution stops
                before the next project file is read.

        Returns:
            ClosureSet containing the root and every transitively referenced
            project, each exactly once.

        Raises:
            ProjectReadError: A project in the closure could not be read.
            UnresolvedReferencePath: A reference value could not be resolved.
            ResolutionTimeout: A configured bound was exceeded.
            ResolutionCancelled: cancel_event was set.
        """
        root = ProjectFile.from_path(root_path, self.case_insensitive)
        state = self._new_state(root, cancel_event)
        started = self._clock()

        logger.info(f"Resolving project closure of {root.path}")
        try:
            self._traverse(state)
            stats = state.context.get_statistics()
        finally:
            state.context.close()

        elapsed_ms = (self._clock() - started) * 1000
        logger.info(
            f"Closure of {root.name}: {len(state.closure)} project(s), "
            f"{len(state.closure.edges)} edge(s) in {elapsed_ms:.1f}ms",
            extra={
                "extra_fields": {
                    "root": root.path,
                    "closure_size": len(state.closure),
                    "edge_count": len(state.closure.edges),
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        logger.debug(
            f"Closure of {root.name}: {state.revisits} shared target(s) skipped, "
            f"{state.back_edges} cyclic reference(s) flattened, "
            f"{stats.projects_loaded} project file(s) parsed"
        )
        return state.closure

    def _new_state(
        self, root: ProjectFile, cancel_event: Optional[threading.Event]
    ) -> _TraversalState:
        context = ProjectLoadContext()
        reader = ProjectGraphReader(self.source, context, self.case_insensitive)
        deadline = self._clock() + self.timeout_seconds if self.timeout_seconds else None
        return _TraversalState(
            closure=ClosureSet(root, self.case_insensitive),
            context=context,
            reader=reader,
            cancel_event=cancel_event,
            deadline=deadline,
        )

    def _traverse(self, state: _TraversalState) -> None:
        """Depth-first walk from the closure root."""
        root = state.closure.root
        stack: List[Tuple[ProjectFile, Iterator[ReferenceEdge]]] = [
            (root, iter(self._visit(state, root)))
        ]

        while stack:
            project, pending = stack[-1]
            edge = next(pending, None)
            if edge is None:
                state.on_stack.discard(project.key)
                stack.pop()
                continue

            state.closure.add_edge(edge)
            target = edge.target
            if target in state.closure:
                if target.key in state.on_stack:
                    state.back_edges += 1
                    logger.debug(
                        f"Cyclic reference {project.name} -> {target.name}, not descending"
                    )
                else:
                    state.revisits += 1
                continue

            stack.append((target, iter(self._visit(state, target))))

    def _visit(self, state: _TraversalState, project: ProjectFile) -> List[ReferenceEdge]:
        """Mark a project visited and read its references."""
        self._check_limits(state)

        state.closure.add(project)
        state.on_stack.add(project.key)
        logger.debug(f"Visiting {project.path}")
        return state.reader.read(project)

    def _check_limits(self, state: _TraversalState) -> None:
        root_path = state.closure.root.path
        visited = len(state.closure)

        if state.cancel_event is not None and state.cancel_event.is_set():
            raise ResolutionCancelled(root_path, visited)

        if self.max_projects and visited >= self.max_projects:
            raise ResolutionTimeout(root_path, "max_projects", self.max_projects, visited)

        if state.deadline is not None and self._clock() > state.deadline:
            raise ResolutionTimeout(root_path, "timeout_seconds", self.timeout_seconds, visited)


def resolve_closure(
    root_path: PathLike,
    cancel_event: Optional[threading.Event] = None,
    **resolver_options: object,
) -> ClosureSet:
    """Resolve a closure with a one-off ClosureResolver.

    Args:
        root_path: Root project file.
        cancel_event: Optional cancellation event.
        **resolver_options: Passed to ClosureResolver.

    Returns:
        The resolved ClosureSet.
    """
    resolver = ClosureResolver(**resolver_options)  # type: ignore[arg-type]
    return resolver.resolve(root_path, cancel_event=cancel_event)

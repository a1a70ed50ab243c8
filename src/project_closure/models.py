# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for project reference closures.

This module defines the data structures shared by the reader, resolver and
reloader:
- ProjectFile: A project identified by its normalized absolute path
- ReferenceEdge: A declared reference from one project to another
- ClosureSet: The deduplicated set of projects reachable from a root
- LoadContextStatistics: Counters for a single resolution's parse cache

All models serialize to JSON-compatible primitives via to_dict().
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from project_closure.paths import normalize_project_path, path_key


@dataclass(frozen=True)
class ProjectFile:
    """A project file identified by its canonical path.

    Equality and hashing use only the identity key, so two values built from
    differently spelled paths of the same file compare equal.
    """

    path: str  # Normalized absolute path
    key: str  # Canonical identity (case-folded where the host folds)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectFile):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @classmethod
    def from_path(
        cls, path: Union[str, "os.PathLike[str]"], case_insensitive: Optional[bool] = None
    ) -> "ProjectFile":
        """Build a ProjectFile from any spelling of its path.

        Args:
            path: Absolute or relative path.
            case_insensitive: Identity case folding (None follows the host).

        Returns:
            ProjectFile with normalized path and identity key.
        """
        normalized = normalize_project_path(path)
        return cls(path=normalized, key=path_key(normalized, case_insensitive))

    @property
    def name(self) -> str:
        """File name of the project (e.g. "App.csproj")."""
        return os.path.basename(self.path)

    @property
    def directory(self) -> str:
        """Directory containing the project file."""
        return os.path.dirname(self.path)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {"path": self.path, "key": self.key}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectFile":
        """Deserialize from JSON-compatible dict."""
        return cls(path=data["path"], key=data["key"])

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class ReferenceEdge:
    """A directed reference from a declaring project to a target project.

    The target is already resolved against the source's own location.
    """

    source: ProjectFile
    target: ProjectFile
    raw_reference: str  # Include value as declared in the source project

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "source": self.source.path,
            "target": self.target.path,
            "raw_reference": self.raw_reference,
        }


class ClosureSet:
    """Set of projects reachable from a root via reference edges.

    Iteration yields projects in discovery order so output is deterministic,
    but equality between closures ignores order.

    Invariants:
    - No duplicates, however many paths reach a project
    - The root is a member once resolution has completed
    """

    def __init__(self, root: ProjectFile, case_insensitive: Optional[bool] = None) -> None:
        self.root = root
        self.edges: List[ReferenceEdge] = []
        self._case_insensitive = case_insensitive
        self._members: Dict[str, ProjectFile] = {}

    def add(self, project: ProjectFile) -> bool:
        """Add a project.

        Returns:
            True if the project was not already a member.
        """
        if project.key in self._members:
            return False
        self._members[project.key] = project
        return True

    def add_edge(self, edge: ReferenceEdge) -> None:
        """Record a traversed reference edge."""
        self.edges.append(edge)

    def _key_of(self, item: object) -> Optional[str]:
        if isinstance(item, ProjectFile):
            return item.key
        if isinstance(item, (str, os.PathLike)):
            return path_key(item, self._case_insensitive)
        return None

    def __contains__(self, item: object) -> bool:
        key = self._key_of(item)
        return key is not None and key in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[ProjectFile]:
        return iter(list(self._members.values()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ClosureSet):
            return set(self._members) == set(other._members)
        if isinstance(other, (set, frozenset)):
            return set(self._members.values()) == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ClosureSet(root={self.root.name!r}, size={len(self)})"

    def paths(self) -> List[str]:
        """Member paths in discovery order."""
        return [project.path for project in self._members.values()]

    def get(self, item: Union[str, ProjectFile]) -> Optional[ProjectFile]:
        """Look up the member matching a path or ProjectFile."""
        key = self._key_of(item)
        return self._members.get(key) if key is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "root": self.root.path,
            "projects": self.paths(),
            "edges": [edge.to_dict() for edge in self.edges],
            "project_count": len(self),
            "edge_count": len(self.edges),
        }


@dataclass
class LoadContextStatistics:
    """Counters for one ProjectLoadContext."""

    hits: int = 0
    misses: int = 0
    projects_loaded: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "projects_loaded": self.projects_loaded,
            "hit_rate": self.hit_rate,
        }

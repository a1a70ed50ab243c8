# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project graph reader: declared project-to-project references.

This module implements the read side of closure resolution:
- ReferenceSource: abstract "read the raw reference values of one project"
- MSBuildReferenceSource: XML project files with ProjectReference items
- ProjectGraphReader: resolves raw values against the declaring project and
  caches parsed content in the resolution's ProjectLoadContext

Flow: project path -> ReferenceSource -> raw values -> resolve_reference ->
ReferenceEdge list

Error Handling:
- Unreadable or malformed project files raise ProjectReadError (the I/O or
  parse error is chained as __cause__)
- Reference values that cannot become absolute paths raise
  UnresolvedReferencePath
Both name the offending project file. The reader never swallows either; the
resolver treats them as fatal for the whole resolution.
"""

import glob
import logging
import os
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Iterator, List, Optional
from urllib.parse import unquote

from project_closure.cache import ProjectLoadContext
from project_closure.models import ProjectFile, ReferenceEdge
from project_closure.paths import UnresolvedReferencePath, resolve_reference

logger = logging.getLogger(__name__)

__all__ = [
    "MSBuildReferenceSource",
    "ProjectGraphReader",
    "ProjectReadError",
    "ReferenceSource",
    "UnresolvedReferencePath",
]

DEFAULT_REFERENCE_ITEM_TYPES = ("ProjectReference",)

# $(Name) property references; property functions ($([...])) are left as-is
_PROPERTY_PATTERN = re.compile(r"\$\(\s*([A-Za-z_][A-Za-z0-9_.\-]*)\s*\)")


class ProjectReadError(Exception):
    """Raised when a project file cannot be opened or parsed.

    Attributes:
        project_path: Path of the project file that failed.
        reason: Human-readable failure description.
    """

    def __init__(self, project_path: str, reason: str) -> None:
        self.project_path = project_path
        self.reason = reason
        super().__init__(f"Cannot read project {project_path}: {reason}")


class ReferenceSource(ABC):
    """Abstract capability: raw reference values declared by a project.

    Implementations parse whatever descriptor format the ecosystem uses.
    Values are returned unresolved, in declaration order.
    """

    @abstractmethod
    def read_references(self, path: str) -> List[str]:
        """Read the raw reference values declared in a project file.

        Args:
            path: Absolute path of the project file.

        Returns:
            Raw reference values in the order they appear.

        Raises:
            ProjectReadError: If the file cannot be read or parsed.
        """
        pass


def _local_name(tag: object) -> str:
    """Strip an XML namespace ("{ns}Name" -> "Name")."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


# Containers whose ItemGroup/PropertyGroup children are part of evaluation;
# groups inside Target run at build time and never reach the item list
_EVALUATED_CONTAINERS = frozenset({"Project", "Choose", "When", "Otherwise"})


def _evaluated_groups(root: ET.Element, group_name: str) -> Iterator[ET.Element]:
    """Yield evaluation-time groups named group_name, in document order.

    Walks the Project element and Choose/When/Otherwise branches only.
    """
    for child in root:
        name = _local_name(child.tag)
        if name == group_name:
            yield child
        elif name in _EVALUATED_CONTAINERS:
            yield from _evaluated_groups(child, group_name)


class MSBuildReferenceSource(ReferenceSource):
    """Reads project references from MSBuild XML project files.

    Handles both SDK-style projects and legacy projects that declare the
    MSBuild 2003 XML namespace. Items of the configured types are collected
    from evaluation-time ItemGroups (directly under Project or inside
    Choose/When/Otherwise; Target bodies are skipped). Include values are
    split on ";", $(Property) references are expanded, %XX escapes are
    decoded and wildcard includes are matched against the file system.
    Item references such as @(Name) are not paths and are skipped.
    Conditions are not evaluated.
    """

    MAX_PROJECT_FILE_KB = 10 * 1024  # 10MB: project files are small; refuse anything huge

    def __init__(
        self,
        item_types: Iterable[str] = DEFAULT_REFERENCE_ITEM_TYPES,
        max_file_kb: int = MAX_PROJECT_FILE_KB,
        expand_environment: bool = True,
    ) -> None:
        """Initialize the source.

        Args:
            item_types: Item element names treated as project references.
            max_file_kb: Refuse project files larger than this.
            expand_environment: Whether environment variables are visible as
                properties (MSBuild behavior).
        """
        self.item_types = tuple(item_types)
        self.max_file_kb = max_file_kb
        self.expand_environment = expand_environment

    def read_references(self, path: str) -> List[str]:
        root = self._parse(path)
        properties = self._collect_properties(path, root)
        directory = os.path.dirname(path)

        references: List[str] = []
        for item_group in _evaluated_groups(root, "ItemGroup"):
            for item in item_group:
                if _local_name(item.tag) not in self.item_types:
                    continue
                include = item.get("Include")
                if include is None:
                    logger.debug(f"{_local_name(item.tag)} without Include in {path}, ignoring")
                    continue
                expanded = self._expand(include, properties)
                for part in expanded.split(";"):
                    part = part.strip()
                    if not part:
                        continue
                    if "@(" in part or "%(" in part:
                        logger.debug(f"Item reference {part!r} in {path} is not a path, ignoring")
                        continue
                    references.extend(self._expand_wildcards(directory, unquote(part)))

        return references

    @staticmethod
    def _expand_wildcards(directory: str, include: str) -> List[str]:
        """Expand * / ** / ? includes against the declaring project directory.

        Includes without wildcards are returned unchanged. A wildcard that
        matches nothing contributes no items.
        """
        if "*" not in include and "?" not in include:
            return [include]

        pattern = include.replace("\\", "/") if os.sep == "/" else include
        if not os.path.isabs(pattern):
            pattern = os.path.join(glob.escape(directory), pattern)
        matches = sorted(m for m in glob.glob(pattern, recursive=True) if os.path.isfile(m))
        if not matches:
            logger.debug(f"Wildcard include {include!r} in {directory} matched no files")
        return matches

    def _parse(self, path: str) -> ET.Element:
        """Read and parse a project file.

        Raises:
            ProjectReadError: On missing/oversized/unreadable/malformed files.
        """
        try:
            size = os.stat(path).st_size
            if size > self.max_file_kb * 1024:
                raise ProjectReadError(
                    path, f"{size} bytes exceeds limit ({self.max_file_kb * 1024})"
                )
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ProjectReadError(path, e.strerror or str(e)) from e

        try:
            # Bytes input lets the parser honor BOMs and declared encodings
            return ET.fromstring(data)
        except ET.ParseError as e:
            raise ProjectReadError(path, f"malformed XML: {e}") from e

    def _collect_properties(self, path: str, root: ET.Element) -> Dict[str, str]:
        """Build the case-insensitive property table used for expansion."""
        properties: Dict[str, str] = {}

        if self.expand_environment:
            for name, value in os.environ.items():
                properties[name.casefold()] = value

        directory = os.path.dirname(path)
        file_name = os.path.basename(path)
        reserved = {
            "MSBuildProjectDirectory": directory,
            "MSBuildThisFileDirectory": directory + os.sep,
            "MSBuildProjectFile": file_name,
            "MSBuildThisFile": file_name,
            "MSBuildProjectName": os.path.splitext(file_name)[0],
            "MSBuildProjectFullPath": path,
        }
        reserved_names = {name.casefold() for name in reserved}
        for name, value in reserved.items():
            properties[name.casefold()] = value

        # Later declarations win; values may reference earlier properties
        for group in _evaluated_groups(root, "PropertyGroup"):
            for prop in group:
                name = _local_name(prop.tag)
                if not name or name.casefold() in reserved_names:
                    continue
                properties[name.casefold()] = self._expand(prop.text or "", properties).strip()

        return properties

    @staticmethod
    def _expand(value: str, properties: Dict[str, str]) -> str:
        """Expand $(Name) references; unknown properties become empty."""
        return _PROPERTY_PATTERN.sub(lambda m: properties.get(m.group(1).casefold(), ""), value)


class ProjectGraphReader:
    """Resolves the declared references of a project into ReferenceEdges.

    One reader is bound to one resolution: it shares that resolution's
    ProjectLoadContext, so each project file is parsed at most once.

    Usage:
        with ProjectLoadContext() as context:
            reader = ProjectGraphReader(MSBuildReferenceSource(), context)
            for edge in reader.read(ProjectFile.from_path("App/App.csproj")):
                print(edge.target.path)
    """

    def __init__(
        self,
        source: ReferenceSource,
        load_context: ProjectLoadContext,
        case_insensitive: Optional[bool] = None,
    ) -> None:
        """Initialize the reader.

        Args:
            source: Where raw reference values come from.
            load_context: Per-resolution parse cache.
            case_insensitive: Identity case folding for resolved targets.
        """
        self.source = source
        self.load_context = load_context
        self.case_insensitive = case_insensitive

    def read(self, project: ProjectFile) -> List[ReferenceEdge]:
        """Return the resolved reference edges declared by a project.

        Args:
            project: Declaring project.

        Returns:
            Edges in declaration order. Duplicate declarations of the same
            target are kept; the resolver's visited set absorbs them.

        Raises:
            ProjectReadError: If the project cannot be read or parsed.
            UnresolvedReferencePath: If a declared value cannot be resolved.
        """
        raw_references = self.load_context.get_or_load(project, self.source.read_references)

        edges: List[ReferenceEdge] = []
        for raw in raw_references:
            target_path = resolve_reference(project.path, raw)
            target = ProjectFile.from_path(target_path, self.case_insensitive)
            if target == project:
                logger.warning(f"{project.name} references itself ({raw!r}), ignoring")
                continue
            edges.append(ReferenceEdge(source=project, target=target, raw_reference=raw))
        return edges

    def references(self, project: ProjectFile) -> List[ProjectFile]:
        """Return only the resolved target projects, in declaration order."""
        return [edge.target for edge in self.read(project)]

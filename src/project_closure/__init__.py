# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Transitive project-reference closure resolution."""

from .cache import ProjectLoadContext
from .config import Config, ConfigurationError
from .host import InMemorySolutionHost, SolutionHost, unloaded_project_map
from .models import ClosureSet, LoadContextStatistics, ProjectFile, ReferenceEdge
from .paths import UnresolvedReferencePath, normalize_project_path, path_key, resolve_reference
from .project_reader import (
    MSBuildReferenceSource,
    ProjectGraphReader,
    ProjectReadError,
    ReferenceSource,
)
from .reloader import ProjectReloader, ReloadReport
from .resolver import ClosureResolver, ResolutionCancelled, ResolutionTimeout, resolve_closure

__version__ = "0.1.0"

__all__ = [
    "ClosureResolver",
    "ClosureSet",
    "Config",
    "ConfigurationError",
    "InMemorySolutionHost",
    "LoadContextStatistics",
    "MSBuildReferenceSource",
    "ProjectFile",
    "ProjectGraphReader",
    "ProjectLoadContext",
    "ProjectReadError",
    "ProjectReloader",
    "ReferenceEdge",
    "ReferenceSource",
    "ReloadReport",
    "ResolutionCancelled",
    "ResolutionTimeout",
    "SolutionHost",
    "UnresolvedReferencePath",
    "normalize_project_path",
    "path_key",
    "resolve_closure",
    "resolve_reference",
    "unloaded_project_map",
]

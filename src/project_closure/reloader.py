# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Reload orchestration on top of the closure resolver.

ProjectReloader connects a ClosureResolver to a SolutionHost:
- reload_with_references: reload exactly the unloaded members of a closure
- plan_reload: the same computation without touching the host
- reload_all / unload_all: whole-solution state changes

The closure is always resolved completely before the first reload request.
If resolution fails for any reason nothing is reloaded; reloading an
incomplete dependency set would leave the project with broken references.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from project_closure.host import SolutionHost, unloaded_project_map
from project_closure.models import ClosureSet
from project_closure.paths import PathLike
from project_closure.resolver import ClosureResolver

logger = logging.getLogger(__name__)


@dataclass
class ReloadReport:
    """Outcome of a closure reload (or of a dry-run plan)."""

    closure: ClosureSet
    reloaded: List[str] = field(default_factory=list)  # Paths reloaded (or to reload)
    skipped: List[str] = field(default_factory=list)  # Closure paths not currently unloaded
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "root": self.closure.root.path,
            "closure": self.closure.paths(),
            "reloaded": list(self.reloaded),
            "skipped": list(self.skipped),
            "dry_run": self.dry_run,
        }


class ProjectReloader:
    """Reloads a project together with its transitive project references.

    Usage:
        reloader = ProjectReloader(host)
        report = reloader.reload_with_references("/sol/App/App.csproj")
        print(f"Reloaded {len(report.reloaded)} project(s)")
    """

    def __init__(self, host: SolutionHost, resolver: Optional[ClosureResolver] = None) -> None:
        """Initialize the reloader.

        Args:
            host: Solution host that owns project load state.
            resolver: Closure resolver; a default one when None.
        """
        self.host = host
        self.resolver = resolver if resolver is not None else ClosureResolver()

    def plan_reload(
        self, root_path: PathLike, cancel_event: Optional[threading.Event] = None
    ) -> ReloadReport:
        """Compute which closure members would be reloaded, without reloading.

        Raises:
            Any error from ClosureResolver.resolve.
        """
        return self._run(root_path, cancel_event, dry_run=True)

    def reload_with_references(
        self, root_path: PathLike, cancel_event: Optional[threading.Event] = None
    ) -> ReloadReport:
        """Reload the root project and every unloaded project it depends on.

        Closure members that are already loaded, or unknown to the host, are
        skipped silently.

        Args:
            root_path: Project to bring into the loaded state.
            cancel_event: Optional cancellation event for the resolution.

        Returns:
            ReloadReport listing reloaded and skipped paths.

        Raises:
            Any error from ClosureResolver.resolve; no reload is requested
            in that case.
        """
        return self._run(root_path, cancel_event, dry_run=False)

    def _run(
        self, root_path: PathLike, cancel_event: Optional[threading.Event], dry_run: bool
    ) -> ReloadReport:
        closure = self.resolver.resolve(root_path, cancel_event=cancel_event)

        unloaded = unloaded_project_map(self.host, self.resolver.case_insensitive)
        report = ReloadReport(closure=closure, dry_run=dry_run)

        for project in closure:
            handle = unloaded.get(project.key)
            if handle is None:
                report.skipped.append(project.path)
                continue
            if not dry_run:
                self.host.reload_project(handle)
            report.reloaded.append(project.path)

        verb = "Would reload" if dry_run else "Reloaded"
        logger.info(
            f"{verb} {len(report.reloaded)} of {len(closure)} project(s) "
            f"in closure of {closure.root.name}"
        )
        return report

    def reload_all(self) -> int:
        """Reload every unloaded project in the solution.

        Returns:
            Number of reload requests issued.
        """
        count = 0
        for _path, handle in self.host.list_unloaded_projects():
            self.host.reload_project(handle)
            count += 1
        logger.info(f"Reloaded all {count} unloaded project(s)")
        return count

    def unload_all(self) -> int:
        """Unload every loaded project in the solution.

        Returns:
            Number of unload requests issued.
        """
        count = 0
        for _path, handle in self.host.list_loaded_projects():
            self.host.unload_project(handle)
            count += 1
        logger.info(f"Unloaded all {count} loaded project(s)")
        return count

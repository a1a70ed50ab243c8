# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Unit tests for core data models."""

from pathlib import Path

from project_closure.models import (
    ClosureSet,
    LoadContextStatistics,
    ProjectFile,
    ReferenceEdge,
)


class TestProjectFile:
    """Tests for ProjectFile identity."""

    def test_equal_for_different_spellings(self, tmp_path: Path):
        a = ProjectFile.from_path(tmp_path / "App" / "App.csproj")
        b = ProjectFile.from_path(tmp_path / "App" / "x" / ".." / "App.csproj")
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_case_insensitive_identity(self, tmp_path: Path):
        a = ProjectFile.from_path(tmp_path / "App" / "App.csproj", case_insensitive=True)
        b = ProjectFile.from_path(tmp_path / "app" / "APP.csproj", case_insensitive=True)
        assert a == b
        # The spelling of the first value is kept as its path
        assert a.path.endswith("App.csproj")

    def test_name_and_directory(self, tmp_path: Path):
        project = ProjectFile.from_path(tmp_path / "Lib" / "Lib.csproj")
        assert project.name == "Lib.csproj"
        assert project.directory == str(tmp_path / "Lib")

    def test_dict_round_trip(self, tmp_path: Path):
        project = ProjectFile.from_path(tmp_path / "Lib" / "Lib.csproj")
        assert ProjectFile.from_dict(project.to_dict()) == project

    def test_not_equal_to_string(self, tmp_path: Path):
        project = ProjectFile.from_path(tmp_path / "Lib.csproj")
        assert project != str(tmp_path / "Lib.csproj")


class TestClosureSet:
    """Tests for ClosureSet membership and ordering."""

    def _projects(self, root: Path, *names: str):
        return [ProjectFile.from_path(root / name / f"{name}.csproj") for name in names]

    def test_add_deduplicates(self, tmp_path: Path):
        app, lib = self._projects(tmp_path, "App", "Lib")
        closure = ClosureSet(app)
        assert closure.add(app) is True
        assert closure.add(lib) is True
        assert closure.add(ProjectFile.from_path(lib.path)) is False
        assert len(closure) == 2

    def test_iteration_in_discovery_order(self, tmp_path: Path):
        app, lib, shared = self._projects(tmp_path, "App", "Lib", "Shared")
        closure = ClosureSet(app)
        for project in (app, shared, lib):
            closure.add(project)
        assert list(closure) == [app, shared, lib]
        assert closure.paths() == [app.path, shared.path, lib.path]

    def test_contains_accepts_paths(self, tmp_path: Path):
        app, lib = self._projects(tmp_path, "App", "Lib")
        closure = ClosureSet(app)
        closure.add(app)
        assert app in closure
        assert app.path in closure
        assert tmp_path / "App" / "App.csproj" in closure
        assert lib not in closure
        assert 42 not in closure

    def test_equality_ignores_order(self, tmp_path: Path):
        app, lib, shared = self._projects(tmp_path, "App", "Lib", "Shared")
        first = ClosureSet(app)
        second = ClosureSet(app)
        for project in (app, lib, shared):
            first.add(project)
        for project in (shared, app, lib):
            second.add(project)
        assert first == second
        assert first == {app, lib, shared}

    def test_get_returns_member(self, tmp_path: Path):
        app, lib = self._projects(tmp_path, "App", "Lib")
        closure = ClosureSet(app)
        closure.add(lib)
        assert closure.get(lib.path) is lib
        assert closure.get(app) is None

    def test_to_dict(self, tmp_path: Path):
        app, lib = self._projects(tmp_path, "App", "Lib")
        closure = ClosureSet(app)
        closure.add(app)
        closure.add(lib)
        closure.add_edge(ReferenceEdge(source=app, target=lib, raw_reference="../Lib/Lib.csproj"))

        data = closure.to_dict()
        assert data["root"] == app.path
        assert data["projects"] == [app.path, lib.path]
        assert data["project_count"] == 2
        assert data["edge_count"] == 1
        assert data["edges"][0] == {
            "source": app.path,
            "target": lib.path,
            "raw_reference": "../Lib/Lib.csproj",
        }


class TestLoadContextStatistics:
    """Tests for LoadContextStatistics."""

    def test_hit_rate(self):
        stats = LoadContextStatistics(hits=3, misses=1, projects_loaded=1)
        assert stats.hit_rate == 0.75
        assert stats.to_dict()["hit_rate"] == 0.75

    def test_hit_rate_empty(self):
        assert LoadContextStatistics().hit_rate == 0.0

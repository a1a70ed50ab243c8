# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for project path normalization and reference resolution."""

import os
from pathlib import Path

import pytest

from project_closure.paths import (
    UnresolvedReferencePath,
    normalize_project_path,
    path_key,
    resolve_reference,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX path layout")


class TestNormalizeProjectPath:
    """Tests for normalize_project_path."""

    @posix_only
    def test_collapses_parent_segments(self):
        assert normalize_project_path("/sol/App/../Lib/./Lib.csproj") == "/sol/Lib/Lib.csproj"

    def test_relative_path_uses_working_directory(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        expected = os.path.normpath(os.path.join(os.getcwd(), "App", "App.csproj"))
        assert normalize_project_path(os.path.join("App", "App.csproj")) == expected

    def test_accepts_pathlike(self, tmp_path: Path):
        project = tmp_path / "App" / "App.csproj"
        assert normalize_project_path(project) == str(project)

    @posix_only
    def test_backslashes_become_separators(self):
        assert normalize_project_path("/sol\\Lib\\Lib.csproj") == "/sol/Lib/Lib.csproj"


class TestPathKey:
    """Tests for canonical identity keys."""

    def test_same_file_different_spelling(self, tmp_path: Path):
        a = tmp_path / "App" / "App.csproj"
        b = tmp_path / "App" / "sub" / ".." / "App.csproj"
        assert path_key(a) == path_key(b)

    def test_forced_case_insensitive(self):
        assert path_key("/sol/App/App.csproj", True) == path_key("/SOL/app/APP.CSPROJ", True)

    @posix_only
    def test_forced_case_sensitive(self):
        assert path_key("/sol/App/App.csproj", False) != path_key("/sol/app/app.csproj", False)

    @posix_only
    def test_default_follows_host(self):
        # POSIX filesystems are case-sensitive
        assert path_key("/sol/App.csproj") != path_key("/sol/app.csproj")


class TestResolveReference:
    """Tests for resolving declared references against the declaring project."""

    @posix_only
    def test_relative_reference(self):
        resolved = resolve_reference("/sol/App/App.csproj", "../Lib/Lib.csproj")
        assert resolved == "/sol/Lib/Lib.csproj"

    @posix_only
    def test_independent_of_working_directory(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        resolved = resolve_reference("/sol/App/App.csproj", "../Lib/Lib.csproj")
        assert resolved == "/sol/Lib/Lib.csproj"

    @posix_only
    def test_windows_separators(self):
        resolved = resolve_reference("/sol/App/App.csproj", "..\\Lib\\Lib.csproj")
        assert resolved == "/sol/Lib/Lib.csproj"

    @posix_only
    def test_sibling_in_same_directory(self):
        resolved = resolve_reference("/sol/App/App.csproj", "Tools.csproj")
        assert resolved == "/sol/App/Tools.csproj"

    @posix_only
    def test_absolute_reference(self):
        resolved = resolve_reference("/sol/App/App.csproj", "/other/Lib/Lib.csproj")
        assert resolved == "/other/Lib/Lib.csproj"

    @posix_only
    def test_file_uri(self):
        resolved = resolve_reference("/sol/App/App.csproj", "file:///other/My%20Lib/Lib.csproj")
        assert resolved == "/other/My Lib/Lib.csproj"

    @posix_only
    def test_surrounding_whitespace_ignored(self):
        resolved = resolve_reference("/sol/App/App.csproj", "  ../Lib/Lib.csproj \n")
        assert resolved == "/sol/Lib/Lib.csproj"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_reference_rejected(self, value: str):
        with pytest.raises(UnresolvedReferencePath) as exc_info:
            resolve_reference("/sol/App/App.csproj", value)
        assert "App.csproj" in exc_info.value.project_path

    def test_null_byte_rejected(self):
        with pytest.raises(UnresolvedReferencePath):
            resolve_reference("/sol/App/App.csproj", "../Lib\0/Lib.csproj")

    def test_non_file_scheme_rejected(self):
        with pytest.raises(UnresolvedReferencePath) as exc_info:
            resolve_reference("/sol/App/App.csproj", "https://example.com/Lib.csproj")
        assert exc_info.value.reference == "https://example.com/Lib.csproj"
        assert "https" in str(exc_info.value)

    def test_remote_file_uri_rejected(self):
        with pytest.raises(UnresolvedReferencePath):
            resolve_reference("/sol/App/App.csproj", "file://server/share/Lib.csproj")

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for project closure tests."""

from pathlib import Path
from typing import Callable, Iterable

import pytest

SDK_PROJECT_TEMPLATE = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>
{item_group}</Project>
"""

ProjectFactory = Callable[..., Path]


def render_project(references: Iterable[str] = ()) -> str:
    """Render an SDK-style project declaring the given ProjectReferences."""
    refs = list(references)
    item_group = ""
    if refs:
        lines = "".join(f'    <ProjectReference Include="{ref}" />\n' for ref in refs)
        item_group = f"  <ItemGroup>\n{lines}  </ItemGroup>\n"
    return SDK_PROJECT_TEMPLATE.format(item_group=item_group)


@pytest.fixture
def make_project(tmp_path: Path) -> ProjectFactory:
    """Factory writing project files under tmp_path.

    Usage:
        app = make_project("App/App.csproj", ["../Lib/Lib.csproj"])
    """

    def _make(relative_path: str, references: Iterable[str] = (), content: str = "") -> Path:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content or render_project(references), encoding="utf-8")
        return path

    return _make

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Path normalization for project file identity.

Every project file is identified by its normalized absolute path. This module
owns the three operations the rest of the package relies on:

- normalize_project_path: absolute, collapsed, OS-native path
- path_key: canonical identity used for dedup and set membership
- resolve_reference: combine a declared reference with the declaring
  project's location (never the process working directory)

Reference values come from project files that are frequently authored on
Windows, so backslash separators and file:// URIs are accepted everywhere.
"""

import os
from typing import Optional, Union
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

PathLike = Union[str, "os.PathLike[str]"]

# Windows drive letters parse as one-character URI schemes ("C:\\...")
_MIN_SCHEME_LENGTH = 2


class UnresolvedReferencePath(ValueError):
    """Raised when a reference value cannot be turned into an absolute path.

    Attributes:
        project_path: Project file that declared the reference.
        reference: The raw reference value as declared.
    """

    def __init__(self, project_path: str, reference: str, reason: str) -> None:
        self.project_path = project_path
        self.reference = reference
        self.reason = reason
        super().__init__(
            f"Cannot resolve reference {reference!r} declared in {project_path}: {reason}"
        )


def normalize_project_path(path: PathLike) -> str:
    """Return the normalized absolute form of a project path.

    Args:
        path: Absolute or relative path. Relative paths are made absolute
            against the current working directory.

    Returns:
        Absolute path with "." and ".." segments collapsed.
    """
    text = os.fspath(path)
    if os.sep == "/":
        text = text.replace("\\", "/")
    return os.path.normpath(os.path.abspath(text))


def path_key(path: PathLike, case_insensitive: Optional[bool] = None) -> str:
    """Return the canonical identity key for a project path.

    Two paths name the same project iff their keys are equal.

    Args:
        path: Project path (normalized or not).
        case_insensitive: Force case folding on or off. None follows the host
            filesystem (os.path.normcase).

    Returns:
        Identity key string.
    """
    normalized = normalize_project_path(path)
    if case_insensitive is None:
        return os.path.normcase(normalized)
    if case_insensitive:
        return os.path.normcase(normalized).casefold()
    return normalized


def resolve_reference(base_project: str, reference: str) -> str:
    """Resolve a declared reference against the declaring project's location.

    Follows relative-reference resolution: the base is the declaring project
    file itself, so relative values are taken from its directory.

    Args:
        base_project: Absolute path of the project that declares the reference.
        reference: Raw reference value (relative path, absolute path or
            file:// URI).

    Returns:
        Normalized absolute path of the referenced project.

    Raises:
        UnresolvedReferencePath: If the value is empty, contains NUL bytes or
            uses a URI scheme other than file.
    """
    value = reference.strip() if reference is not None else ""
    if not value:
        raise UnresolvedReferencePath(base_project, reference, "empty reference")
    if "\0" in value:
        raise UnresolvedReferencePath(base_project, reference, "contains null bytes")

    parsed = urlparse(value)
    if len(parsed.scheme) >= _MIN_SCHEME_LENGTH:
        if parsed.scheme.lower() != "file":
            raise UnresolvedReferencePath(
                base_project, reference, f"unsupported URI scheme '{parsed.scheme}'"
            )
        if parsed.netloc and parsed.netloc.lower() != "localhost":
            raise UnresolvedReferencePath(
                base_project, reference, f"remote file URI host '{parsed.netloc}'"
            )
        local = url2pathname(parsed.path) if os.name == "nt" else unquote(parsed.path)
        if not local:
            raise UnresolvedReferencePath(base_project, reference, "file URI without a path")
        return normalize_project_path(local)

    if os.sep == "/":
        value = value.replace("\\", "/")

    if os.path.isabs(value):
        return normalize_project_path(value)

    base_dir = os.path.dirname(normalize_project_path(base_project))
    return normalize_project_path(os.path.join(base_dir, value))

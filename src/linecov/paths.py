"""Map source paths to report artifact paths."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import quote

ARTIFACT_SUFFIX = ".html"
INDEX_NAME = "index.html"

_LEADING_TRAVERSAL = re.compile(r"^[./\\]+")


def sanitize_name(source_path: str) -> str:
    """Strip leading ``.``, ``/`` and ``\\`` characters from a source path.

    ``"../../etc/evil"`` becomes ``"etc/evil"`` and ``"/abs/file.py"``
    becomes ``"abs/file.py"``.  Applying it twice gives the same result.
    Note that ``"./a"`` and ``"a"`` map to the same name.
    """
    return _LEADING_TRAVERSAL.sub("", source_path)


def artifact_path(source_path: str) -> str:
    """Return the artifact path for a source file, relative to the index page."""
    return sanitize_name(source_path) + ARTIFACT_SUFFIX


def index_href(source_path: str) -> str:
    """Return the URL-quoted link used on the index page for a source file.

    Backslashes stay part of the file name and are quoted as ``%5C``.
    """
    return quote(artifact_path(source_path), safe="/")


def resolve_artifact(output_dir: str | Path, source_path: str) -> Path:
    """Return the absolute artifact location for ``source_path`` under ``output_dir``.

    Raises ValueError when the artifact would land outside ``output_dir``
    or on top of the index page.
    """
    root = Path(output_dir).resolve()
    target = (root / artifact_path(source_path)).resolve()
    if root not in target.parents:
        raise ValueError(f"artifact for {source_path!r} escapes output directory {str(root)!r}")
    if target == root / INDEX_NAME:
        raise ValueError(f"artifact for {source_path!r} collides with {INDEX_NAME}")
    return target

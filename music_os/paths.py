"""Library path helpers for Music OS.

The library root is the directory holding the category folders that
downloads land in, plus the ``tags.json`` tag store.  Unless a path is
given explicitly the root defaults to ``~/Music``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Union

from .exceptions import LibraryEnvironmentError

TAG_STORE_FILENAME = "tags.json"
DEFAULT_LIBRARY_DIRNAME = "Music"

_WHITESPACE_RE = re.compile(r"\s+")


def resolve_library_root(explicit_path: Optional[Union[str, Path]] = None) -> Path:
    """Return the library root to operate on.

    A non‑empty ``explicit_path`` is returned as is; it is not checked for
    existence.  Otherwise ``<home>/Music`` is used.
    """
    if explicit_path:
        return Path(explicit_path)
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as exc:
        raise LibraryEnvironmentError(f"Cannot determine home directory: {exc}") from exc
    return home / DEFAULT_LIBRARY_DIRNAME


def tag_store_path(library_root: Union[str, Path]) -> Path:
    return Path(library_root) / TAG_STORE_FILENAME


def format_folder_name(name: str) -> str:
    """Normalise a folder name for loose matching.

    ``"Lo Fi  Beats"`` and ``"lo-fi-beats"`` both become ``"lo-fi-beats"``.
    """
    return _WHITESPACE_RE.sub("-", name.lower())


def bare_song_name(song: str, library_root: Union[str, Path]) -> str:
    """Strip the library root prefix from ``song`` (first occurrence only)."""
    prefix = str(library_root)
    if not prefix.endswith("/"):
        prefix += "/"
    return song.replace(prefix, "", 1)

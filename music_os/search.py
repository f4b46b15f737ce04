"""Find songs in the library by search terms.

A search term is matched against the lowercased song path relative to
the library root:

* ``rock`` – the path contains ``rock``.
* ``rock, metal`` – the path contains ``rock`` or ``metal``.
* ``rock # live`` – the path contains ``rock`` and ``live``.
* ``!live`` – any song whose path contains ``live`` is rejected,
  whatever the other terms say.

A song is selected when at least one non‑exclusion term matches and no
exclusion term does.  With no terms every song is selected.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .paths import TAG_STORE_FILENAME

_SECTION_RE = re.compile(r"\s*#\s*")
_ALTERNATIVE_RE = re.compile(r"\s*,\s*")


def _term_matches(term: str, song_path: str) -> bool:
    sections = _SECTION_RE.split(term)
    return all(
        any(word in song_path for word in _ALTERNATIVE_RE.split(section))
        for section in sections
    )


def song_matches_terms(terms: Sequence[str], song_path: str) -> bool:
    if not terms:
        return True
    song_path = song_path.lower()
    passed = False
    for term in terms:
        term = term.lower()
        exclusion = term.startswith("!")
        if exclusion:
            term = term[1:]
        if _term_matches(term, song_path):
            if exclusion:
                return False
            passed = True
    return passed


def iter_songs(library_root: Union[str, Path]) -> Iterable[str]:
    """Yield every song path under ``library_root``, relative to it.

    Hidden files and directories and the tag store are skipped.
    """
    root = Path(library_root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for filename in sorted(filenames):
            if filename.startswith(".") or (filename == TAG_STORE_FILENAME and Path(dirpath) == root):
                continue
            yield (Path(dirpath) / filename).relative_to(root).as_posix()


def find_songs(library_root: Union[str, Path], terms: Sequence[str] = ()) -> List[str]:
    return sorted(song for song in iter_songs(library_root) if song_matches_terms(terms, song))


def sort_by_newest(library_root: Union[str, Path], songs: Iterable[str]) -> List[str]:
    """Return ``songs`` ordered by modification time, newest first."""
    root = Path(library_root)
    return sorted(songs, key=lambda song: (root / song).stat().st_mtime, reverse=True)

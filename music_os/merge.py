"""Song list merging for tags.

:func:`merge_songs` computes the record a tag should hold after a
mutation.  There are two modes:

* ``REPLACE`` – the incoming list becomes the tag's songs.
* ``APPEND`` – incoming songs not already in the tag are added after the
  existing ones.

In both modes blank entries are dropped and the result never holds the
same song twice.  The creation time of an existing tag is kept and the
modification time is always set to ``now``, even when an append adds
nothing.  A tag with zero songs is a valid result.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Iterable, List, Optional

from .models import TagRecord


class MergeMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


def filter_blank(songs: Iterable[str]) -> List[str]:
    """Return ``songs`` without empty or whitespace‑only entries."""
    return [song for song in songs if song and song.strip()]


def _append_unique(target: List[str], songs: Iterable[str]) -> List[str]:
    seen = set(target)
    for song in songs:
        if song not in seen:
            target.append(song)
            seen.add(song)
    return target


def merge_songs(
    existing: Optional[TagRecord],
    incoming: Iterable[str],
    mode: MergeMode,
    now: Optional[int] = None,
) -> TagRecord:
    """Return the new record for a tag.

    ``existing`` is ``None`` when the tag does not exist yet; it is never
    modified.  ``now`` defaults to the current Unix time.
    """
    if now is None:
        now = int(time.time())
    songs = filter_blank(incoming)

    if existing is None:
        return TagRecord(songs=_append_unique([], songs), creation_time=now, modified_time=now)

    if MergeMode(mode) is MergeMode.REPLACE:
        merged = _append_unique([], songs)
    else:
        merged = _append_unique(list(existing.songs), songs)
    return TagRecord(songs=merged, creation_time=existing.creation_time, modified_time=now)

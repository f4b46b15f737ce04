"""Data model for tags.

A tag is a named, ordered list of song references, much like a playlist.
Each :class:`TagRecord` carries the songs plus creation and modification
timestamps in whole Unix seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class TagRecord:
    """The songs stored under one tag name."""

    songs: List[str] = field(default_factory=list)
    creation_time: int = 0
    modified_time: int = 0

    def copy(self) -> "TagRecord":
        return TagRecord(list(self.songs), self.creation_time, self.modified_time)

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON shape written to ``tags.json``."""
        return {
            "songs": list(self.songs),
            "creation_time": self.creation_time,
            "modified_time": self.modified_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TagRecord":
        """Build a record from an already validated ``tags.json`` entry."""
        return cls(
            songs=list(data["songs"]),
            creation_time=int(data["creation_time"]),
            modified_time=int(data["modified_time"]),
        )

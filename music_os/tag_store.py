"""Tag storage for Music OS.

Tags live in a single JSON document, ``tags.json``, at the root of the
music library::

    {
      "drive": {
        "songs": ["Rock/song one.m4a", "Pop/song two.m4a"],
        "creation_time": 1700000000,
        "modified_time": 1700000500
      }
    }

:class:`TagStore` is the only code that reads or writes this file.  Each
command loads the store, applies at most one mutation and writes the
whole mapping back.  Loading is strict: a file that is not JSON or does
not match ``schemas/tags.schema.json`` raises
:class:`~music_os.exceptions.CorruptStoreError` and is never repaired
automatically.  A missing file is simply an empty store.

Writes go to a temporary file in the same directory which is then
renamed over ``tags.json``, so a failed write leaves the previous
content in place.  There is no locking between processes; when two
invocations write at the same time the last one wins.

Example usage::

    from music_os.tag_store import TagStore

    store = TagStore.load(library_root)
    store.change_songs("drive", ["Rock/a.m4a"], append=True)
    store.persist()
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import jsonschema
from loguru import logger

from .exceptions import CorruptStoreError, InvalidArgumentError, StoreIOError, TagNotFoundError
from .merge import MergeMode, merge_songs
from .models import TagRecord
from .paths import tag_store_path

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "tags.schema.json"
FILE_MODE = 0o644

_schema_cache: Optional[Dict[str, Any]] = None


def _tags_schema() -> Dict[str, Any]:
    global _schema_cache
    if _schema_cache is None:
        _schema_cache = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    return _schema_cache


def validate_document(data: Any, path: Union[str, Path]) -> None:
    """Raise :class:`CorruptStoreError` unless ``data`` is a valid tag mapping."""
    try:
        jsonschema.validate(instance=data, schema=_tags_schema())
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path)
        detail = f"{location}: {exc.message}" if location else exc.message
        raise CorruptStoreError(path, detail) from exc


@dataclass
class TagStore:
    """In‑memory view of ``tags.json`` for one command invocation."""

    tags: Dict[str, TagRecord] = field(default_factory=dict)
    library_root: Optional[Path] = None

    @classmethod
    def load(cls, library_root: Union[str, Path]) -> "TagStore":
        """Read the store under ``library_root``; a missing file yields an empty store."""
        root = Path(library_root)
        path = tag_store_path(root)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No tag store at {path}, starting empty")
            return cls(library_root=root)
        except UnicodeDecodeError as exc:
            raise CorruptStoreError(path, f"not UTF-8 text ({exc.reason})") from exc
        except OSError as exc:
            raise StoreIOError(path, exc.strerror or exc) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(path, str(exc)) from exc
        validate_document(data, path)

        tags = {name: TagRecord.from_dict(entry) for name, entry in data.items()}
        logger.debug(f"Loaded {len(tags)} tag(s) from {path}")
        return cls(tags=tags, library_root=root)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], library_root: Optional[Union[str, Path]] = None) -> "TagStore":
        root = Path(library_root) if library_root is not None else None
        validate_document(data, tag_store_path(root) if root else "<memory>")
        return cls(tags={name: TagRecord.from_dict(entry) for name, entry in data.items()}, library_root=root)

    def to_dict(self) -> Dict[str, Any]:
        return {name: record.to_dict() for name, record in self.tags.items()}

    def names(self) -> List[str]:
        """Return all tag names, sorted."""
        return sorted(self.tags)

    def __contains__(self, name: object) -> bool:
        return name in self.tags

    def __len__(self) -> int:
        return len(self.tags)

    def get(self, name: str) -> TagRecord:
        """Return a copy of the record for ``name``.

        Raises :class:`TagNotFoundError` if the tag does not exist.  Looking
        a tag up never creates it.
        """
        try:
            return self.tags[name].copy()
        except KeyError:
            raise TagNotFoundError(name) from None

    def delete(self, name: str) -> None:
        """Remove ``name`` from the store.  The caller must :meth:`persist`."""
        if name not in self.tags:
            raise TagNotFoundError(name)
        del self.tags[name]
        logger.info(f"Deleted tag {name!r}")

    def change_songs(
        self,
        name: str,
        songs: Iterable[str],
        append: bool,
        now: Optional[int] = None,
    ) -> TagRecord:
        """Replace or extend the songs of ``name``, creating the tag if needed.

        Returns a copy of the stored record.  The caller must :meth:`persist`.
        Raises :class:`InvalidArgumentError` for an empty tag name.
        """
        if not name:
            raise InvalidArgumentError("tag name must not be empty")
        mode = MergeMode.APPEND if append else MergeMode.REPLACE
        existing = self.tags.get(name)
        record = merge_songs(existing, songs, mode, now=now)
        self.tags[name] = record
        action = "Created" if existing is None else "Updated"
        logger.info(f"{action} tag {name!r} ({mode.value}): {len(record.songs)} song(s)")
        return record.copy()

    def persist(self, library_root: Optional[Union[str, Path]] = None) -> Path:
        """Replace ``tags.json`` with the full in‑memory mapping.

        The data is written to a temporary file next to ``tags.json`` and
        renamed into place.  On failure :class:`StoreIOError` is raised and
        the previous file is left untouched.
        """
        root = Path(library_root) if library_root is not None else self.library_root
        if root is None:
            raise ValueError("persist() needs a library root")
        path = tag_store_path(root)
        payload = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

        tmp_name: Optional[str] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".tags-", suffix=".json.tmp", dir=str(path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise StoreIOError(path, exc.strerror or exc) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Could not remove temporary file {tmp_name}")
        logger.debug(f"Wrote {len(self.tags)} tag(s) to {path}")
        return path


def change_songs_in_tag(
    library_root: Union[str, Path],
    name: str,
    songs: Iterable[str],
    append: bool,
) -> TagRecord:
    """Load the store, change one tag and write it back."""
    store = TagStore.load(library_root)
    record = store.change_songs(name, songs, append=append, now=int(time.time()))
    store.persist()
    return record


def delete_tag(library_root: Union[str, Path], name: str) -> None:
    """Delete one tag and write the store back.

    Nothing is written when the tag does not exist.
    """
    store = TagStore.load(library_root)
    store.delete(name)
    store.persist()

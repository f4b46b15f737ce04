"""Exception types for Music OS.

Every error raised by the library derives from :class:`MusicOSError` so
the command‑line interface can report it once and exit non‑zero.  Some
classes also derive from the closest built‑in exception (``OSError``,
``KeyError``, ``ValueError``) so callers that already handle those keep
working.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class MusicOSError(Exception):
    """Base class for all Music OS errors."""


class LibraryEnvironmentError(MusicOSError, OSError):
    """The home directory (and so the default library root) is unavailable."""


class StoreIOError(MusicOSError, OSError):
    """Reading or writing the tag store file failed."""

    def __init__(self, path: Union[str, Path], reason: Union[str, BaseException]) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class CorruptStoreError(MusicOSError):
    """The tag store exists but is not valid JSON or has the wrong shape.

    Attributes:
        path: location of the offending ``tags.json``
        detail: parser or schema message describing the problem
    """

    def __init__(self, path: Union[str, Path], detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Corrupt tag store {self.path}: {detail}")


class TagNotFoundError(MusicOSError, KeyError):
    """The requested tag does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the argument
        return f'Tag "{self.name}" does not exist'


class InvalidArgumentError(MusicOSError, ValueError):
    """Arguments conflict or are missing; raised before any I/O."""


class ExternalCommandError(MusicOSError):
    """An external program exited unsuccessfully or could not be started."""

    def __init__(self, command: str, returncode: Optional[int] = None, reason: str = "") -> None:
        self.command = command
        self.returncode = returncode
        if returncode is not None:
            message = f"{command} exited with status {returncode}"
        else:
            message = f"could not run {command}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EditorError(ExternalCommandError):
    """The text editor failed."""


class DownloadError(ExternalCommandError):
    """The downloader failed."""


class PlayerError(ExternalCommandError):
    """The media player could not be launched."""

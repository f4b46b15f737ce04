"""Download songs into a library category folder.

The actual download is delegated to an external downloader
(``youtube-dl`` by default, or any compatible fork such as ``yt-dlp``).
This module resolves the destination folder and builds the command line.

Folder names are matched loosely: ``"lo fi"`` selects an existing
``Lo Fi`` directory.  The folder must already exist and the match must
be unique.
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .exceptions import DownloadError, InvalidArgumentError, StoreIOError
from .paths import format_folder_name

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="
DEFAULT_OUTPUT_TEMPLATE = "%(title)s.%(ext)s"
SUPPORTED_FORMATS = ["3gp", "aac", "flv", "m4a", "mp3", "mp4", "ogg", "wav", "webm"]


def list_category_folders(library_root: Union[str, Path]) -> List[str]:
    root = Path(library_root)
    try:
        return sorted(entry.name for entry in root.iterdir() if entry.is_dir())
    except OSError as exc:
        raise StoreIOError(root, exc.strerror or exc) from exc


def resolve_folder(library_root: Union[str, Path], folder: str) -> str:
    """Return the name of the one library folder matching ``folder``."""
    wanted = format_folder_name(folder)
    matches = [name for name in list_category_folders(library_root) if format_folder_name(name) == wanted]
    if not matches:
        raise InvalidArgumentError(f"invalid folder: {folder}")
    if len(matches) > 1:
        raise InvalidArgumentError("folder matches more than one folder")
    return matches[0]


def youtube_url(id_or_url: str) -> str:
    if id_or_url.startswith("https://"):
        return id_or_url
    return YOUTUBE_WATCH_URL + id_or_url


def build_download_command(
    library_root: Union[str, Path],
    folder: str,
    id_or_url: str,
    fmt: str = "m4a",
    name: Optional[str] = None,
    extra_args: str = "",
    downloader: str = "youtube-dl",
) -> List[str]:
    """Return the downloader argv for one download.

    ``folder`` must already be resolved (see :func:`resolve_folder`).
    ``extra_args`` is a shell‑style string passed through to the
    downloader before the URL.
    """
    template = f"{name}.%(ext)s" if name else DEFAULT_OUTPUT_TEMPLATE
    output = Path(library_root) / folder / template
    argv = [downloader, "-f", fmt, "-o", str(output)]
    if extra_args:
        try:
            argv.extend(shlex.split(extra_args))
        except ValueError as exc:
            raise InvalidArgumentError(f"invalid downloader arguments: {exc}") from exc
    argv.extend(["--", youtube_url(id_or_url)])
    return argv


def install(
    library_root: Union[str, Path],
    id_or_url: str,
    folder: str,
    fmt: str = "m4a",
    name: Optional[str] = None,
    extra_args: str = "",
    downloader: str = "youtube-dl",
) -> List[str]:
    """Download ``id_or_url`` into the matching folder and return the argv used."""
    selected = resolve_folder(library_root, folder)
    argv = build_download_command(library_root, selected, id_or_url, fmt, name, extra_args, downloader)
    logger.info(f"Downloading into {selected}: {argv}")
    try:
        result = subprocess.run(argv)
    except OSError as exc:
        raise DownloadError(downloader, reason=str(exc)) from exc
    if result.returncode != 0:
        raise DownloadError(downloader, returncode=result.returncode)
    return argv

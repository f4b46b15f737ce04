"""Launch the media player on a list of songs."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import List, Sequence, Union

from loguru import logger

from .exceptions import PlayerError


def build_play_command(
    library_root: Union[str, Path],
    songs: Sequence[str],
    player: str = "vlc",
    keep_order: bool = False,
) -> List[str]:
    """Return the player argv.

    With no songs the whole library is played recursively.  ``keep_order``
    disables shuffling so songs play in the given order.
    """
    argv = shlex.split(player)
    root = Path(library_root)
    if not songs:
        return argv + ["--recursive=expand", str(root)]
    if keep_order:
        argv.append("--no-random")
    argv.extend(str(root / song) for song in songs)
    return argv


def play(argv: List[str]) -> "subprocess.Popen[bytes]":
    """Start the player detached from the terminal and return the process."""
    logger.debug(f"Launching player: {argv}")
    try:
        return subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise PlayerError(argv[0], reason=str(exc)) from exc

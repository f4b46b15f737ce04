"""Run the user's text editor on a file.

The editor command is taken from, in order: the ``editor`` argument, the
``editor`` key of the configuration, ``$VISUAL``, ``$EDITOR`` and
finally ``vi``.  It may contain arguments (``"code --wait"``) and is
split with :mod:`shlex`.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .exceptions import EditorError

FALLBACK_EDITOR = "vi"


def editor_command(editor: Optional[str] = None) -> List[str]:
    command = editor or os.environ.get("VISUAL") or os.environ.get("EDITOR") or FALLBACK_EDITOR
    return shlex.split(command)


def _run_editor(path: Path, editor: Optional[str]) -> None:
    argv = editor_command(editor) + [str(path)]
    logger.debug(f"Launching editor: {argv}")
    try:
        result = subprocess.run(argv)
    except OSError as exc:
        raise EditorError(argv[0], reason=str(exc)) from exc
    if result.returncode != 0:
        raise EditorError(argv[0], returncode=result.returncode)


def edit_file(path: Union[str, Path], editor: Optional[str] = None) -> str:
    """Open ``path`` in the editor and return its content afterwards.

    The file does not need to exist beforehand.
    """
    path = Path(path)
    _run_editor(path, editor)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def create_and_edit_temp(
    prefix: str = "",
    suffix: str = ".txt",
    initial_content: str = "",
    editor: Optional[str] = None,
) -> str:
    """Edit ``initial_content`` in a temporary file and return the saved text.

    The temporary file is removed once the editor exits.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    tmp_path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(initial_content)
        return edit_file(tmp_path, editor)
    finally:
        tmp_path.unlink(missing_ok=True)

"""Edit text in the user's external editor."""

import logging
import os
import shlex
import subprocess
import sys
import tempfile
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def default_editor() -> str:
    return os.environ.get("VISUAL") or os.environ.get("EDITOR") or (
        "notepad" if sys.platform == "win32" else "vi")


def edit_text(text: str, editor: Optional[str] = None, runner: Runner = subprocess.run) -> Optional[str]:
    """Open ``text`` in an editor and return the saved result.

    Args:
        text: Initial contents
        editor: Editor command line (defaults to $VISUAL, then $EDITOR)
        runner: Process runner, ``subprocess.run`` unless replaced

    Returns:
        The edited text, or None if the editor failed to run
    """
    command: List[str] = shlex.split(editor or default_editor())
    fd, path = tempfile.mkstemp(prefix="livescribe-", suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)

        try:
            runner(command + [path], check=True)
        except (subprocess.CalledProcessError, OSError) as e:
            logger.error(f"Editor {command[0]!r} failed: {e}")
            return None

        with open(path, "r", encoding="utf-8") as f:
            edited = f.read()
        # Editors usually append a newline on save
        return edited[:-1] if edited.endswith("\n") and not text.endswith("\n") else edited
    finally:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove editor file {path}: {e}")

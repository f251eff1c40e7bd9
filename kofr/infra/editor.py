"""Round-trip a JSON document through the user's text editor."""
from __future__ import annotations

import contextlib
import logging
import os
import shlex
import subprocess
import tempfile

from kofr.core.exceptions import EditorError

logger = logging.getLogger(__name__)


def edit_text(initial: str, editor: str, prefix: str = "kofr-edit-") -> str:
    """Write ``initial`` to a temp ``.json`` file, open ``editor`` on it and
    block until it exits. Returns the file contents afterwards.

    Raises
    ------
    EditorError
        If the editor cannot be started or exits non-zero.
    """
    fd, path = tempfile.mkstemp(prefix=prefix, suffix=".json", text=True)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(initial)

        command = [*shlex.split(editor), path]
        logger.debug("launching editor: %s", command)
        try:
            result = subprocess.run(command, check=False)
        except OSError as exc:
            raise EditorError(f"unable to launch the editor: {editor}") from exc
        if result.returncode != 0:
            raise EditorError(
                f"editor {editor} exited with status {result.returncode}"
            )

        with open(path, encoding="utf-8") as f:
            return f.read()
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)

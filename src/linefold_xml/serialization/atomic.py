"""Crash-safe file replacement.

Text is written to a temporary file next to the destination, flushed to
disk, and moved over the destination in one ``os.replace`` call. A failure
at any point leaves the destination as it was.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

NEW_FILE_MODE = 0o644


def write_text_atomic(path: Union[str, Path], text: str, encoding: str) -> None:
    """Replace ``path`` with ``text`` encoded as ``encoding``."""
    destination = Path(path)
    directory = destination.parent

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())

        if destination.exists():
            shutil.copymode(destination, temp_name)
        else:
            os.chmod(temp_name, NEW_FILE_MODE)
        os.replace(temp_name, destination)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise


def write_text_in_place(path: Union[str, Path], text: str, encoding: str) -> None:
    """Overwrite ``path`` directly (not crash-safe)."""
    with open(path, "w", encoding=encoding, newline="") as handle:
        handle.write(text)

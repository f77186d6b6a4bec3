"""
services/storage_service.py – Install the downloaded catalog into place.

Responsibilities
----------------
1. Move the freshly extracted wiitdb.xml from the temp working directory into
   the catalog directory, replacing any previous copy.
2. Clean up the temporary working directory on success (it is left on failure
   so the archive can be inspected).
"""

import logging
import shutil
from pathlib import Path

from services.exceptions import StorageError

logger = logging.getLogger(__name__)


def install_file(source: Path, dest_dir: Path) -> Path:
    """
    Move *source* into *dest_dir*, overwriting a file of the same name.

    Returns
    -------
    Path to the installed file.

    Raises
    ------
    StorageError on any filesystem error.
    """
    if not source.is_file():
        raise StorageError(f"Nothing to install: '{source}' does not exist.")

    target = dest_dir / source.name
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        if target.exists():
            target.unlink()
        shutil.move(str(source), str(target))
    except OSError as exc:
        raise StorageError(f"Failed to install '{source.name}' to '{dest_dir}': {exc}") from exc
    return target


def cleanup_temp(temp_dir: Path) -> None:
    """
    Remove the temporary working directory and all its contents.

    Logs (but does not raise) if removal fails, since cleanup failure should
    not mask a successful install.
    """
    try:
        if temp_dir.exists():
            shutil.rmtree(temp_dir)
    except OSError as exc:
        logger.warning("Could not remove temp directory '%s': %s", temp_dir, exc)

"""
services/extraction_service.py – Pull wiitdb.xml out of the GameTDB archive.

Security
--------
The member path is validated against the destination directory before it is
written, preventing path-traversal entries embedded in a tampered archive
(ZIP slip).
"""

import os
import zipfile
from pathlib import Path
from typing import Optional

from services.exceptions import ExtractionError


def extract_member(archive_path: Path, member_name: str, dest_dir: Path) -> Path:
    """
    Extract the single member *member_name* of the ZIP at *archive_path*.

    Returns
    -------
    Path of the extracted file inside *dest_dir*.

    Raises
    ------
    ExtractionError
        When the archive is missing or corrupt, lacks the member, or the
        member path escapes *dest_dir*.
    """
    if not archive_path.exists():
        raise ExtractionError(f"Archive not found: {archive_path}")

    dest_dir.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            try:
                member = zf.getinfo(member_name)
            except KeyError:
                raise ExtractionError(
                    f"'{member_name}' not found in archive '{archive_path.name}'."
                ) from None
            target = _safe_member_path(dest_dir, member.filename)
            if target is None:
                raise ExtractionError(
                    f"Path traversal detected in ZIP member: {member.filename}"
                )
            zf.extract(member, dest_dir)
    except zipfile.BadZipFile as exc:
        raise ExtractionError(f"Corrupt or invalid ZIP archive: {exc}") from exc
    except OSError as exc:
        raise ExtractionError(
            f"Unexpected error extracting '{archive_path.name}': {exc}"
        ) from exc

    return target


# ── Security helper ───────────────────────────────────────────────────────────


def _safe_member_path(dest: Path, member_name: str) -> Optional[Path]:
    """
    Resolve *member_name* relative to *dest* and confirm it stays inside.

    Returns the resolved path on success, None on path-traversal attempt.
    """
    clean = os.path.normpath(member_name.replace("\\", "/"))
    if os.path.isabs(clean) or clean.startswith(".."):
        return None
    resolved = (dest / clean).resolve()
    try:
        resolved.relative_to(dest.resolve())
    except ValueError:
        return None
    return resolved

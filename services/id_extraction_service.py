"""
services/id_extraction_service.py – Read the ID6 game code from fixed offsets.

Each container kind maps to a list of byte windows (offset, length, role).
The windows are read in order from the start of the file and concatenated to
form the candidate ID6, which must then pass validate_id6().

Layouts
-------
  disc  (.iso .gcm)  – ID6 is the first 6 bytes of the disc header.
  wbfs  (.wbfs)      – WBFS stores a copy of the disc header at 0x200.
  wad   (.wad)       – The TMD starts at 0xD00 for a standard WAD (0x20 header,
                       0xA00 certificate chain, 0x2A4 ticket, 0x40 alignment).
                       Game code = low word of the TMD title id (0xE90),
                       maker code = TMD group id (0xE98).

These offsets are empirical; adding a format means adding a table entry.
"""

import logging
from pathlib import Path
from typing import Dict, Literal, NamedTuple, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# ── Types ────────────────────────────────────────────────────────────────────

ContainerKind = Literal["disc", "wbfs", "wad"]

ID6_LENGTH: int = 6


class Window(NamedTuple):
    offset: int
    length: int
    role: str


# ── Layout table ─────────────────────────────────────────────────────────────

LAYOUTS: Dict[ContainerKind, Tuple[Window, ...]] = {
    "disc": (Window(0x000, 6, "id6"),),
    "wbfs": (Window(0x200, 6, "id6"),),
    "wad": (
        Window(0xE90, 4, "game code"),
        Window(0xE98, 2, "maker code"),
    ),
}

EXTENSION_KINDS: Dict[str, ContainerKind] = {
    ".iso": "disc",
    ".gcm": "disc",
    ".wbfs": "wbfs",
    ".wad": "wad",
}


# ── Public API ───────────────────────────────────────────────────────────────


def validate_id6(candidate: Union[bytes, str, None]) -> Optional[str]:
    """
    Return *candidate* as a str when it is exactly 6 bytes of [A-Z0-9].

    Anything else (wrong length, lowercase, punctuation, non-ASCII) returns
    None. This is the single gate every ID6 source passes through.
    """
    if candidate is None:
        return None
    if isinstance(candidate, str):
        try:
            candidate = candidate.encode("ascii")
        except UnicodeEncodeError:
            return None
    if len(candidate) != ID6_LENGTH:
        return None
    for b in candidate:
        if not (0x41 <= b <= 0x5A or 0x30 <= b <= 0x39):
            return None
    return candidate.decode("ascii")


def kind_for_path(path: Path) -> Optional[ContainerKind]:
    """Container kind with a fixed-offset layout for *path*, else None."""
    return EXTENSION_KINDS.get(path.suffix.lower())


def read_windows(path: Path, windows: Tuple[Window, ...]) -> bytes:
    """
    Read and concatenate *windows* from *path*.

    A window that runs past end-of-file contributes the bytes that exist,
    which makes the result too short to validate.
    """
    parts = []
    with open(path, "rb") as fh:
        for window in windows:
            fh.seek(window.offset)
            parts.append(fh.read(window.length))
    return b"".join(parts)


def extract(path: Path, kind: ContainerKind) -> Optional[str]:
    """
    Extract the ID6 of *path* using the layout registered for *kind*.

    Returns
    -------
    The validated ID6, or None when the bytes at the layout's offsets are not
    a valid code (common for non-game files with a matching extension).

    Raises
    ------
    ValueError for an unknown kind; OSError when the file cannot be read.
    """
    try:
        windows = LAYOUTS[kind]
    except KeyError:
        raise ValueError(f"No fixed-offset layout for container kind {kind!r}") from None

    raw = read_windows(path, windows)
    id6 = validate_id6(raw)
    if id6 is None:
        logger.debug("No valid ID6 in %s (%s layout): %r", path.name, kind, raw)
    else:
        logger.debug("Read ID6 %s from %s (%s layout)", id6, path.name, kind)
    return id6

"""
services/gamelist_cache_service.py – ID6 lookup in Dolphin's gamelist.cache.

RVZ images are compressed, so their header cannot be read at a fixed offset.
Dolphin already knows their ID6 and keeps it in <user>/Cache/gamelist.cache.
Each cached entry starts with length-prefixed strings and fixed-size fields:

    i32 len, path bytes      m_file_path
    i32 len, name bytes      m_file_name
    i64                      m_file_size
    i64                      m_volume_size
    i32                      m_volume_size_is_accurate
    i32                      m_is_datel_disc
    i32                      m_is_nkit

followed by dictionaries this reader does not parse. The ID6 is the first
length-prefixed string of length 6 after those fields that validates.
"""

import logging
import os
import struct
from pathlib import Path
from typing import Optional

from services.id_extraction_service import ID6_LENGTH, validate_id6

logger = logging.getLogger(__name__)

_I32 = struct.Struct("<i")
_ID6_PREFIX = _I32.pack(ID6_LENGTH)

# m_file_size, m_volume_size, then three i32 flags.
_FIXED_FIELDS_SIZE = 8 + 8 + 4 + 4 + 4


def load_gamelist(cache_path: Optional[Path]) -> Optional[bytes]:
    """Read gamelist.cache into memory, or None when it does not exist."""
    if cache_path is None or not cache_path.is_file():
        return None
    logger.debug("Loading %s into memory", cache_path)
    return cache_path.read_bytes()


def dolphin_path_bytes(path: Path) -> bytes:
    """Encode *path* the way Dolphin stores it: absolute, '/' separators, UTF-8."""
    return os.path.abspath(path).replace("\\", "/").encode("utf-8")


def find_id6_in_gamelist(gamelist: bytes, path: Path) -> Optional[str]:
    """
    Return the ID6 Dolphin cached for *path*, or None.

    Parameters
    ----------
    gamelist : Raw contents of gamelist.cache.
    path     : Image path as Dolphin knows it.
    """
    wanted = dolphin_path_bytes(path)
    location = gamelist.find(wanted)
    if location < _I32.size:
        logger.warning("gamelist.cache: path not found: %s", wanted.decode("utf-8", "replace"))
        return None

    start = location - _I32.size
    try:
        (path_length,) = _I32.unpack_from(gamelist, start)
        pos = location
        stored = gamelist[pos:pos + path_length]
        if stored != wanted:
            logger.warning(
                "gamelist.cache: found path but it is not an exact match: %s vs %s",
                wanted.decode("utf-8", "replace"),
                stored.decode("utf-8", "replace"),
            )
            return None
        pos += path_length

        (name_length,) = _I32.unpack_from(gamelist, pos)
        if name_length < 0:
            raise struct.error("negative file name length")
        pos += _I32.size + name_length + _FIXED_FIELDS_SIZE
    except struct.error:
        logger.warning("gamelist.cache: entry for %s is truncated or corrupt", path)
        return None

    end = len(gamelist) - (_I32.size + ID6_LENGTH)
    while pos <= end:
        pos = gamelist.find(_ID6_PREFIX, pos, end + _I32.size)
        if pos == -1:
            break
        id_start = pos + _I32.size
        id6 = validate_id6(gamelist[id_start:id_start + ID6_LENGTH])
        if id6 is not None:
            logger.debug("gamelist.cache: found ID6 %s for %s", id6, path.name)
            return id6
        pos += 1

    logger.warning("gamelist.cache: no valid ID6 cached for %s", path)
    return None

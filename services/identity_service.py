"""
services/identity_service.py – Pick an ID6 strategy from the image extension.

  .iso .gcm .wbfs            – fixed-offset header read
  .wad                       – fixed-offset TMD read, then Dolphin's cache
  .rvz                       – Dolphin's gamelist.cache
  .ciso .wbi .wdf .wia .gcz .fst – external wit helper
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from services import gamelist_cache_service, id_extraction_service
from services.exceptions import HelperNotFoundError

logger = logging.getLogger(__name__)

# ── Types ────────────────────────────────────────────────────────────────────

# Any callable mapping an image path to a validated ID6 (WitResolver or a fake).
CodeResolver = Callable[[Path], Optional[str]]

# ── Configuration ────────────────────────────────────────────────────────────

GAMELIST_EXTENSIONS = {".rvz", ".wad"}
RESOLVER_EXTENSIONS = {".ciso", ".wbi", ".wdf", ".wia", ".gcz", ".fst"}

SUPPORTED_EXTENSIONS = (
    set(id_extraction_service.EXTENSION_KINDS) | GAMELIST_EXTENSIONS | RESOLVER_EXTENSIONS
)


def is_supported(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def identify(
    path: Path,
    *,
    gamelist: Optional[bytes] = None,
    resolver: Optional[CodeResolver] = None,
) -> Optional[str]:
    """
    Determine the ID6 of the image at *path*.

    Parameters
    ----------
    path     : Game image.
    gamelist : Contents of Dolphin's gamelist.cache, if available.
    resolver : External helper for formats without a fixed layout.

    Returns
    -------
    The validated ID6, or None when no strategy produced one.

    Raises
    ------
    HelperNotFoundError when *path* needs the external helper and none is
    configured (or the configured one is missing).
    OSError when a fixed-offset read fails.
    """
    ext = path.suffix.lower()

    kind = id_extraction_service.kind_for_path(path)
    if kind is not None:
        id6 = id_extraction_service.extract(path, kind)
        if id6 is not None or ext not in GAMELIST_EXTENSIONS:
            return id6

    if ext in GAMELIST_EXTENSIONS:
        if gamelist is None:
            logger.warning(
                "No Dolphin gamelist.cache loaded; cannot identify %s", path.name
            )
            return None
        return gamelist_cache_service.find_id6_in_gamelist(gamelist, path)

    if ext in RESOLVER_EXTENSIONS:
        if resolver is None:
            raise HelperNotFoundError(
                message=f"No ID6 helper configured for {ext} images."
            )
        return resolver(path)

    logger.warning("Unsupported image extension %s: %s", ext or "(none)", path.name)
    return None

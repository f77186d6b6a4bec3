"""
services/cover_service.py – Cover art retrieval with locale / kind fallback.

Candidate order for a preferred (locale, kind):

  1. (locale, kind)
  2. ("EN", kind)      unless locale is EN
  3. ("AU", kind)      unless locale is AU
  4. (locale, "cover") unless kind is already "cover"
  5. (lang, kind)      for every language the record lists

A fetch returning None (HTTP 404) moves on to the next candidate. Any
exception raised by the fetch aborts the sequence and reaches the caller.
"""

import dataclasses
import logging
from typing import Callable, Iterator, NamedTuple, Optional

import httpx

from models.game_record import GameRecord
from models.metadata import CoverImage
from models.settings import split_cover_preference
from services import projection_service
from services.exceptions import DownloadError, ImageProcessingError

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

HTTP_TIMEOUT: float = 30.0

PLAIN_COVER: str = "cover"

# For a 1024-wide full boxart scan, about the 483 rightmost pixels are the
# front cover.
FRONT_COVER_RATIO: float = 483.0 / 1024.0

# ── Types ────────────────────────────────────────────────────────────────────

# url → image bytes, or None when the server has no such asset.
CoverFetcher = Callable[[str], Optional[bytes]]


class CoverCandidate(NamedTuple):
    language: str
    kind: str
    in_requested_format: bool


# ── Public API ───────────────────────────────────────────────────────────────


def cover_candidates(record: GameRecord, locale: str, kind: str) -> Iterator[CoverCandidate]:
    """Yield the (language, kind) attempts in fallback order."""
    yield CoverCandidate(locale, kind, True)
    if locale != "EN":
        yield CoverCandidate("EN", kind, True)
    if locale != "AU":
        yield CoverCandidate("AU", kind, True)
    if kind != PLAIN_COVER:
        yield CoverCandidate(locale, PLAIN_COVER, False)
    for language in record.languages:
        yield CoverCandidate(language, kind, True)


def find_cover(
    record: GameRecord,
    locale: str,
    kind: str,
    fetch: CoverFetcher,
) -> Optional[CoverImage]:
    """
    Walk cover_candidates() until *fetch* returns data.

    Returns
    -------
    The first cover found, or None when every candidate was missing.
    """
    for candidate in cover_candidates(record, locale, kind):
        url = projection_service.cover_url(record, candidate.language, candidate.kind)
        data = fetch(url)
        if data is None:
            logger.debug("No cover at %s", url)
            continue
        return CoverImage(
            data=data,
            language=candidate.language,
            kind=candidate.kind,
            in_requested_format=candidate.in_requested_format,
        )
    logger.debug("No cover found for %s in any language", record.id)
    return None


def get_cover(
    record: GameRecord,
    locale: str,
    preference: str,
    fetch: CoverFetcher,
) -> Optional[CoverImage]:
    """
    find_cover() for a settings-level *preference*.

    "cropped_<kind>" fetches <kind> and crops it to the front cover, but only
    when the image found is actually of <kind>. An image that cannot be
    cropped is logged and dropped, so the lookup still completes without a
    cover.
    """
    kind, crop = split_cover_preference(preference)

    cover = find_cover(record, locale, kind, fetch)
    if cover is None or not crop or not cover.in_requested_format:
        return cover
    try:
        data = crop_boxart(cover.data)
    except ImageProcessingError as exc:
        logger.error("Could not crop %s cover for %s: %s", cover.kind, record.id, exc)
        return None
    return dataclasses.replace(cover, data=data)


def fetch_cover(url: str, client: Optional[httpx.Client] = None) -> Optional[bytes]:
    """
    Download a cover image.

    Returns
    -------
    Image bytes, or None on HTTP 404.

    Raises
    ------
    DownloadError on any other HTTP status or network failure.
    """
    try:
        if client is not None:
            response = client.get(url)
        else:
            response = httpx.get(url, timeout=HTTP_TIMEOUT, follow_redirects=True)
    except httpx.RequestError as exc:
        raise DownloadError(f"Network error fetching cover {url}: {exc}") from exc

    if response.status_code == 404:
        return None
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DownloadError(
            f"Cover server returned HTTP {exc.response.status_code} for URL: {url}"
        ) from exc
    return response.content


def crop_boxart(data: bytes) -> bytes:
    """
    Keep only the front cover of a full boxart scan, as PNG.

    Raises
    ------
    ImageProcessingError when *data* is not a decodable image.
    """
    from PySide6.QtCore import QBuffer, QByteArray, QIODevice
    from PySide6.QtGui import QImage

    image = QImage.fromData(data)
    if image.isNull():
        raise ImageProcessingError("Cover data is not a readable image.")

    width = round(image.width() * FRONT_COVER_RATIO)
    front = image.copy(image.width() - width, 0, width, image.height())

    out = QByteArray()
    buffer = QBuffer(out)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    if not front.save(buffer, "PNG"):
        raise ImageProcessingError("Could not encode cropped cover as PNG.")
    buffer.close()
    return bytes(out.data())

"""
services/projection_service.py – Locale-aware views of a GameRecord.

All functions are pure: no I/O, no caching between calls.
"""

import logging
from typing import Dict, Optional

from models.game_record import GameRecord

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

FALLBACK_LANGUAGE: str = "EN"

COVER_URL_TEMPLATE: str = "https://art.gametdb.com/wii/{kind}/{region}/{id}.png"

# Regions with a fixed art segment; PAL depends on the record's languages.
REGION_CODES: Dict[str, str] = {
    "NTSC-J": "JA",
    "NTSC-U": "US",
    "NTSC-K": "KO",
}


def _localized(texts: Dict[str, str], locale: str) -> Optional[str]:
    if locale in texts:
        return texts[locale]
    if FALLBACK_LANGUAGE in texts:
        return texts[FALLBACK_LANGUAGE]
    return next(iter(texts.values()), None)


def title(record: GameRecord, locale: str) -> Optional[str]:
    """Title in *locale*, else English, else the first one listed, else None."""
    return _localized(record.titles, locale)


def synopsis(record: GameRecord, locale: str) -> Optional[str]:
    """Synopsis in *locale*, else English, else the first one listed, else None."""
    return _localized(record.synopses, locale)


def region_code(record: GameRecord, locale: str) -> str:
    """
    Art-server region segment for *record*.

    PAL titles pick the first of (locale, EN, first listed language) that the
    record actually lists, else EN; unknown regions use EN.
    """
    if record.region in REGION_CODES:
        return REGION_CODES[record.region]
    if record.region == "PAL":
        languages = record.languages
        if locale in languages:
            return locale
        if FALLBACK_LANGUAGE in languages:
            return FALLBACK_LANGUAGE
        if languages:
            return languages[0]
    return FALLBACK_LANGUAGE


def cover_url(record: GameRecord, locale: str, kind: str = "cover") -> str:
    """URL of the *kind* cover for *record*; never fetched here."""
    url = COVER_URL_TEMPLATE.format(kind=kind, region=region_code(record, locale), id=record.id)
    logger.debug("GameTDB cover image: %s", url)
    return url

"""
models/settings.py – User preferences for a metadata lookup.

Language and cover preferences are stored as GameTDB codes ("EN",
"cropped_coverfullHQ", …); the LANGUAGES / COVERS tables translate those to
and from the human-readable labels shown to users.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from models.bimap import BiMap

# Preferences prefixed with this are fetched as the bare kind, then cropped.
CROPPED_PREFIX: str = "cropped_"


def split_cover_preference(preference: str) -> Tuple[str, bool]:
    """"cropped_coverfullHQ" -> ("coverfullHQ", True); "disc" -> ("disc", False)."""
    if preference.startswith(CROPPED_PREFIX):
        return preference[len(CROPPED_PREFIX):], True
    return preference, False


# ── Label tables ─────────────────────────────────────────────────────────────

COVERS: BiMap[str, str] = BiMap(
    [
        ("Regular Cover (Small)", "cover"),
        ("3D Cover (Small)", "cover3D"),
        ("Disc Label", "disc"),
        ("HQ Boxart", "coverfullHQ"),
        ("HQ Boxart, cropped to cover only", "cropped_coverfullHQ"),
        ("Full Boxart", "coverfull"),
    ]
)

LANGUAGES: BiMap[str, str] = BiMap(
    [
        ("English", "EN"),
        ("German", "DE"),
        ("French", "FR"),
        ("Spanish", "ES"),
        ("Italian", "IT"),
        ("Dutch", "NL"),
    ]
)

DEFAULT_CATALOG_DIR = Path.home() / ".tdbmeta"


@dataclass
class LookupSettings:
    """
    Preferences shared by every lookup in a session.

    Attributes
    ----------
    language             : GameTDB locale code used for titles, synopses, covers.
    cover_preference     : Cover kind code, optionally prefixed with "cropped_".
    dolphin_user_folder  : Dolphin user directory (holds Cache/gamelist.cache).
    catalog_dir          : Directory where wiitdb.xml is kept.
    wit_path             : Explicit path to the wit executable (optional).
    catalog_max_age_days : wiitdb.xml older than this is downloaded again.
    """

    language: str = "EN"
    cover_preference: str = "cropped_coverfullHQ"
    dolphin_user_folder: str = ""
    catalog_dir: Path = field(default_factory=lambda: DEFAULT_CATALOG_DIR)
    wit_path: Optional[Path] = None
    catalog_max_age_days: int = 7

    def __post_init__(self) -> None:
        if self.language not in LANGUAGES.values():
            raise ValueError(f"Unknown language code: {self.language!r}")
        if self.cover_preference not in COVERS.values():
            raise ValueError(f"Unknown cover preference: {self.cover_preference!r}")

    @classmethod
    def from_env(cls) -> "LookupSettings":
        """Build settings from TDBMETA_* environment variables."""
        wit = os.environ.get("TDBMETA_WIT")
        return cls(
            language=os.environ.get("TDBMETA_LANGUAGE", "EN"),
            cover_preference=os.environ.get("TDBMETA_COVER", "cropped_coverfullHQ"),
            dolphin_user_folder=os.environ.get("TDBMETA_DOLPHIN_USER", ""),
            catalog_dir=Path(os.environ.get("TDBMETA_CATALOG_DIR", str(DEFAULT_CATALOG_DIR))),
            wit_path=Path(wit) if wit else None,
        )

    # ── Label views ──────────────────────────────────────────────────────────

    @property
    def language_name(self) -> str:
        return LANGUAGES.key_of(self.language)

    @language_name.setter
    def language_name(self, name: str) -> None:
        self.language = LANGUAGES.value_of(name)

    @property
    def cover_preference_name(self) -> str:
        return COVERS.key_of(self.cover_preference)

    @cover_preference_name.setter
    def cover_preference_name(self, name: str) -> None:
        self.cover_preference = COVERS.value_of(name)

    # ── Derived values ───────────────────────────────────────────────────────

    @property
    def crop_cover(self) -> bool:
        return split_cover_preference(self.cover_preference)[1]

    @property
    def cover_kind(self) -> str:
        """The kind actually requested from the art server."""
        return split_cover_preference(self.cover_preference)[0]

    @property
    def gamelist_cache_path(self) -> Optional[Path]:
        if not self.dolphin_user_folder.strip():
            return None
        return Path(self.dolphin_user_folder) / "Cache" / "gamelist.cache"

    def path_status(self) -> str:
        """Short human-readable check of dolphin_user_folder."""
        cache = self.gamelist_cache_path
        if cache is None:
            return "Path is empty"
        if cache.is_file():
            return "Path is valid"
        return "Path does not point to Dolphin user folder, or it doesn't have a cache"

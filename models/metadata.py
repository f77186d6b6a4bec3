"""
models/metadata.py – Results produced by a completed lookup.
"""

from dataclasses import dataclass
from typing import Optional

from models.game_record import GameRecord


@dataclass(frozen=True)
class CoverImage:
    """
    Cover art returned by the cover fallback sequence.

    Attributes
    ----------
    data                : PNG bytes (cropped when a cropped preference applied).
    language            : Locale segment the successful request used.
    kind                : Cover kind the successful request used.
    in_requested_format : False when only the plain "cover" fallback was found.
    """

    data: bytes
    language: str
    kind: str
    in_requested_format: bool = True


@dataclass(frozen=True)
class GameMetadata:
    """Everything a lookup resolved for one image."""

    id6: str
    record: GameRecord
    name: Optional[str] = None
    description: Optional[str] = None
    cover: Optional[CoverImage] = None

    @property
    def cover_file_name(self) -> str:
        return f"{self.record.id}.png"

    def __str__(self) -> str:
        return f"{self.id6}  {self.name or '(untitled)'}"

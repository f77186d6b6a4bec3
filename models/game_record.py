"""
models/game_record.py – Immutable data model for a single GameTDB catalog entry.

Every optional field is None when the source attribute or child element is
missing or could not be parsed; None never means "parsed as zero/empty".
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ReleaseDate:
    """<date year="" month="" day=""> – each part independently optional."""

    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None


@dataclass(frozen=True)
class Rating:
    """<rating type="" value=""><descriptor/></rating>"""

    type: Optional[str] = None
    value: Optional[str] = None
    descriptor: Optional[str] = None


@dataclass(frozen=True)
class GameRecord:
    """
    One <game> element of wiitdb.xml.

    Attributes
    ----------
    id        : Primary code (ID6, or ID4 for some channels / WiiWare titles).
    platform  : <type> – e.g. "Wii", "GameCube", "WiiWare".
    region    : <region> – e.g. "NTSC-U", "PAL".
    languages : <languages>, split on commas, in document order.
    titles    : locale code → <locale><title>, document order.
    synopses  : locale code → <locale><synopsis>, document order.
    """

    id: Optional[str] = None
    platform: Optional[str] = None
    region: Optional[str] = None
    languages: Tuple[str, ...] = ()
    titles: Dict[str, str] = field(default_factory=dict)
    synopses: Dict[str, str] = field(default_factory=dict)
    developer: Optional[str] = None
    publisher: Optional[str] = None
    release_date: Optional[ReleaseDate] = None
    genres: Tuple[str, ...] = ()
    rating: Optional[Rating] = None

    # <input players=""><control type="" required=""/></input>
    players: Optional[int] = None
    required_accessories: Tuple[str, ...] = ()
    accessories: Tuple[str, ...] = ()

    # <wi-fi players=""><feature/></wi-fi>
    online_players: Optional[int] = None
    online_features: Tuple[str, ...] = ()

    # <save blocks=""/>
    save_blocks: Optional[int] = None

    # <rom version="" size="" name="" crc="" md5="" sha1=""/>
    rom_version: Optional[str] = None
    rom_size: Optional[int] = None
    rom_name: Optional[str] = None
    crc: Optional[str] = None
    md5: Optional[str] = None
    sha1: Optional[str] = None

    def __str__(self) -> str:
        name = self.titles.get("EN") or next(iter(self.titles.values()), None)
        parts = [self.id or "?", name or self.rom_name or ""]
        if self.region:
            parts.append(f"[{self.region}]")
        return "  ".join(p for p in parts if p)

import struct
from pathlib import Path

import pytest

from services.catalog_service import parse_catalog

SAMPLE_CATALOG = b"""<?xml version="1.0" encoding="UTF-8"?>
<datafile>
  <WiiTDB version="20240101" games="6"/>
  <game name="Super Smash Bros. Brawl (USA)">
    <id>RSBE01</id>
    <type>Wii</type>
    <region>NTSC-U</region>
    <languages>EN,FR,ES</languages>
    <locale lang="EN">
      <title>Super Smash Bros. Brawl</title>
      <synopsis>Nintendo's all-stars fight it out.</synopsis>
    </locale>
    <locale lang="FR">
      <title>Super Smash Bros. Brawl (FR)</title>
    </locale>
    <developer>Sora Ltd.</developer>
    <publisher>Nintendo</publisher>
    <date year="2008" month="3" day="9"/>
    <genre>fighting,action</genre>
    <rating type="ESRB" value="T"><descriptor>cartoon violence</descriptor></rating>
    <wi-fi players="4"><feature>online</feature><feature>score</feature></wi-fi>
    <input players="4">
      <control type="wiimote" required="true"/>
      <control type="gamecube" required="false"/>
      <control type="classiccontroller" required="false"/>
    </input>
    <save blocks="3"/>
    <rom version="1.01" name="Super Smash Bros. Brawl (USA).iso" size="7827914752" crc="a1b2c3d4" md5="0123" sha1="4567"/>
  </game>
  <game name="Photo Channel">
    <id>HAAA</id>
    <type>Channel</type>
    <region>PAL</region>
    <languages>DE,EN</languages>
    <locale lang="DE"><title>Foto-Kanal</title></locale>
    <locale lang="EN"><title>Photo Channel</title></locale>
  </game>
  <game name="Mario Kart Wii (first)">
    <id>RMCP01</id>
    <region>PAL</region>
    <languages>DE,EN,FR</languages>
    <locale lang="EN"><title>Mario Kart Wii</title></locale>
  </game>
  <game name="Mario Kart Wii (duplicate)">
    <id>RMCP01</id>
    <locale lang="EN"><title>Mario Kart Wii (duplicate)</title></locale>
  </game>
  <game name="Broken">
    <id>RBRK01</id>
    <date year="soon"/>
    <save blocks="many"/>
    <rom size="-5" name="broken.iso"/>
    <input/>
  </game>
  <game name="Japanese only">
    <id>RJPJ01</id>
    <region>NTSC-J</region>
    <languages>JA</languages>
    <locale lang="JA"><title>Z</title></locale>
  </game>
</datafile>
"""


@pytest.fixture
def catalog():
    return parse_catalog(SAMPLE_CATALOG)


@pytest.fixture
def write_image(tmp_path):
    """Write *size* zero bytes with *patches* {offset: bytes} applied."""

    def _write(name: str, patches: dict, size: int = 0x1000) -> Path:
        data = bytearray(size)
        for offset, chunk in patches.items():
            data[offset:offset + len(chunk)] = chunk
        path = tmp_path / name
        path.write_bytes(bytes(data))
        return path

    return _write


def gamelist_entry(path_bytes: bytes, tail: bytes, name: bytes = b"game.rvz") -> bytes:
    """One gamelist.cache entry as Dolphin serialises its leading fields."""
    return (
        struct.pack("<i", len(path_bytes))
        + path_bytes
        + struct.pack("<i", len(name))
        + name
        + struct.pack("<q", 123456)
        + struct.pack("<q", 654321)
        + struct.pack("<iii", 1, 0, 0)
        + tail
    )


@pytest.fixture(scope="session")
def qapp():
    QtCore = pytest.importorskip("PySide6.QtCore")
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])

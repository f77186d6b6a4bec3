from pathlib import Path

import pytest

from models.bimap import BiMap
from models.settings import COVERS, LANGUAGES, LookupSettings, split_cover_preference


def test_bimap_lookups_both_ways():
    m = BiMap([("English", "EN"), ("German", "DE")])
    assert m.value_of("German") == "DE"
    assert m.key_of("EN") == "English"
    assert m.keys() == ["English", "German"]
    assert m.values() == ["EN", "DE"]
    assert "English" in m
    assert len(m) == 2
    assert m.get_value("Klingon") is None
    assert m.get_key("TLH", "?") == "?"


@pytest.mark.parametrize("key, value", [("English", "XX"), ("Other", "EN")])
def test_bimap_rejects_duplicates(key, value):
    m = BiMap([("English", "EN")])
    with pytest.raises(ValueError):
        m.add(key, value)
    assert len(m) == 1


def test_tables_are_consistent():
    assert LANGUAGES.value_of("Dutch") == "NL"
    assert COVERS.key_of("cropped_coverfullHQ") == "HQ Boxart, cropped to cover only"


def test_defaults():
    settings = LookupSettings()
    assert settings.language == "EN"
    assert settings.cover_preference == "cropped_coverfullHQ"
    assert settings.crop_cover
    assert settings.cover_kind == "coverfullHQ"
    assert settings.gamelist_cache_path is None
    assert settings.path_status() == "Path is empty"


def test_label_setters():
    settings = LookupSettings()
    settings.language_name = "French"
    settings.cover_preference_name = "Disc Label"
    assert settings.language == "FR"
    assert settings.cover_preference == "disc"
    assert not settings.crop_cover
    assert settings.cover_kind == "disc"
    assert settings.language_name == "French"


def test_unknown_codes_rejected():
    with pytest.raises(ValueError):
        LookupSettings(language="XX")
    with pytest.raises(ValueError):
        LookupSettings(cover_preference="poster")


def test_path_status(tmp_path):
    settings = LookupSettings(dolphin_user_folder=str(tmp_path))
    assert settings.gamelist_cache_path == tmp_path / "Cache" / "gamelist.cache"
    assert settings.path_status().startswith("Path does not point")
    (tmp_path / "Cache").mkdir()
    (tmp_path / "Cache" / "gamelist.cache").write_bytes(b"")
    assert settings.path_status() == "Path is valid"


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TDBMETA_LANGUAGE", "DE")
    monkeypatch.setenv("TDBMETA_COVER", "cover3D")
    monkeypatch.setenv("TDBMETA_CATALOG_DIR", str(tmp_path))
    monkeypatch.setenv("TDBMETA_WIT", "/opt/wit/bin/wit")
    monkeypatch.delenv("TDBMETA_DOLPHIN_USER", raising=False)
    settings = LookupSettings.from_env()
    assert settings.language == "DE"
    assert settings.cover_preference == "cover3D"
    assert settings.catalog_dir == tmp_path
    assert settings.wit_path == Path("/opt/wit/bin/wit")
    assert settings.dolphin_user_folder == ""


@pytest.mark.parametrize(
    "preference, expected",
    [
        ("cropped_coverfullHQ", ("coverfullHQ", True)),
        ("coverfullHQ", ("coverfullHQ", False)),
        ("disc", ("disc", False)),
    ],
)
def test_split_cover_preference(preference, expected):
    assert split_cover_preference(preference) == expected

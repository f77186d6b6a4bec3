"""
services/catalog_service.py – GameTDB catalog (wiitdb.xml): refresh, parse, look up.

The catalog is parsed once into immutable GameRecord objects. Lookups try the
exact ID6 first, then the record whose id equals the first four characters
(some WiiWare / channel titles are cataloged without the maker code). In both
tiers the first record in document order wins; duplicates are kept, not merged.

SharedCatalog owns the loaded catalog for a session: concurrent first
acquires block until one load finishes, and the last release drops it.
"""

import datetime
import io
import logging
import tempfile
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

from lxml import etree

from models.game_record import GameRecord, Rating, ReleaseDate
from models.settings import LookupSettings
from services import download_service, extraction_service, gamelist_cache_service, storage_service
from services.exceptions import CatalogError

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

CATALOG_URL: str = "https://www.gametdb.com/wiitdb.zip"
CATALOG_FILE_NAME: str = "wiitdb.xml"

# Length of the shortened id some titles are cataloged under.
ID4_LENGTH: int = 4

T = TypeVar("T")

# ── Catalog ──────────────────────────────────────────────────────────────────


class Catalog:
    """Read-only sequence of GameRecords with an id index built at load."""

    def __init__(self, records: Iterable[GameRecord]) -> None:
        self._records: Tuple[GameRecord, ...] = tuple(records)
        by_id: Dict[str, GameRecord] = {}
        for record in self._records:
            if record.id is not None:
                by_id.setdefault(record.id, record)
        self._by_id = by_id

    @property
    def records(self) -> Tuple[GameRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def lookup(self, code: str) -> Optional[GameRecord]:
        """
        Resolve *code* to a record: exact id, else id == code[:4].

        Returns None (and logs the code) when neither tier matches.
        """
        record = self._by_id.get(code)
        if record is None:
            record = self._by_id.get(code[:ID4_LENGTH])
        if record is None:
            logger.debug("Did not find ID6 game match in catalog: %s", code)
            return None
        logger.debug("Found catalog match for %s: %s", code, record)
        return record


# ── Parsing ──────────────────────────────────────────────────────────────────


def parse_catalog(xml: bytes) -> Catalog:
    """
    Parse wiitdb.xml content into a Catalog.

    Raises
    ------
    CatalogError if the document is not XML or has no <game> elements.
    """
    return _build_catalog(io.BytesIO(xml), "<bytes>")


def load_catalog(path: Path) -> Catalog:
    """Stream-parse the catalog file at *path*."""
    try:
        with open(path, "rb") as fh:
            return _build_catalog(fh, str(path))
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog '{path}': {exc}") from exc


def _build_catalog(source: BinaryIO, label: str) -> Catalog:
    try:
        catalog = Catalog(_iter_games(source))
    except etree.XMLSyntaxError as exc:
        raise CatalogError(f"Catalog {label} is not valid XML: {exc}") from exc
    if not len(catalog):
        raise CatalogError("Catalog document contains no <game> entries.")
    logger.debug("Parsed %d catalog records", len(catalog))
    return catalog


def _iter_games(source: BinaryIO) -> Iterator[GameRecord]:
    # Each <game> is mapped as soon as it closes, then freed with the
    # siblings before it, so memory stays flat for the full catalog.
    for _, game in etree.iterparse(source, events=("end",), tag="game"):
        yield parse_game(game)
        game.clear()
        while game.getprevious() is not None:
            del game.getparent()[0]


def parse_game(game: etree._Element) -> GameRecord:
    """Map one <game> element to a GameRecord; malformed parts become None."""
    locales = game.findall("locale")
    input_el = game.find("input")
    controls = input_el.findall("control") if input_el is not None else []
    wifi = game.find("wi-fi")
    features = wifi.findall("feature") if wifi is not None else []
    save = game.find("save")
    rom = game.find("rom")

    return GameRecord(
        id=_text(game, "id"),
        platform=_text(game, "type"),
        region=_text(game, "region"),
        languages=_split(_text(game, "languages")),
        titles=_localized(locales, "title"),
        synopses=_localized(locales, "synopsis"),
        developer=_text(game, "developer"),
        publisher=_text(game, "publisher"),
        release_date=_release_date(game.find("date")),
        genres=_split(_text(game, "genre")),
        rating=_rating(game.find("rating")),
        players=_int(_attr(input_el, "players")),
        required_accessories=tuple(
            c.get("type", "") for c in controls if c.get("required") == "true"
        ),
        accessories=tuple(
            c.get("type", "") for c in controls if c.get("required") != "true"
        ),
        online_players=_int(_attr(wifi, "players")),
        online_features=tuple(f.text or "" for f in features),
        save_blocks=_int(_attr(save, "blocks")),
        rom_version=_attr(rom, "version"),
        rom_size=_int(_attr(rom, "size"), minimum=0),
        rom_name=_attr(rom, "name"),
        crc=_attr(rom, "crc"),
        md5=_attr(rom, "md5"),
        sha1=_attr(rom, "sha1"),
    )


def _text(el: etree._Element, name: str) -> Optional[str]:
    child = el.find(name)
    return (child.text or "") if child is not None else None


def _attr(el: Optional[etree._Element], name: str) -> Optional[str]:
    return el.get(name) if el is not None else None


def _int(value: Optional[str], minimum: Optional[int] = None) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError:
        return None
    if minimum is not None and number < minimum:
        return None
    return number


def _split(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _localized(locales: list, child: str) -> Dict[str, str]:
    texts: Dict[str, str] = {}
    for locale in locales:
        lang = locale.get("lang")
        text = _text(locale, child)
        if lang is None or text is None:
            continue
        texts.setdefault(lang, text)
    return texts


def _release_date(el: Optional[etree._Element]) -> Optional[ReleaseDate]:
    if el is None:
        return None
    return ReleaseDate(
        year=_int(el.get("year")),
        month=_int(el.get("month")),
        day=_int(el.get("day")),
    )


def _rating(el: Optional[etree._Element]) -> Optional[Rating]:
    if el is None:
        return None
    return Rating(type=el.get("type"), value=el.get("value"), descriptor=_text(el, "descriptor"))


# ── Refresh ──────────────────────────────────────────────────────────────────


def is_stale(path: Path, max_age_days: int, *, now: Optional[datetime.datetime] = None) -> bool:
    """True when *path* is missing or more than *max_age_days* whole days old."""
    if not path.exists():
        return True
    now = now or datetime.datetime.now()
    modified = datetime.datetime.fromtimestamp(path.stat().st_mtime)
    return (now - modified).days > max_age_days


def ensure_catalog_file(
    catalog_dir: Path,
    *,
    force: bool = False,
    max_age_days: int = 7,
    download: Callable[..., Path] = download_service.download_file,
) -> Path:
    """
    Return the path of wiitdb.xml, downloading a fresh copy when needed.

    The archive is fetched into a private temp directory, the XML extracted
    and moved over the previous file, then the temp directory removed.

    Raises
    ------
    DownloadError, ExtractionError, StorageError on the respective failures.
    """
    target = catalog_dir / CATALOG_FILE_NAME
    if not force and not is_stale(target, max_age_days):
        return target

    temp_dir = Path(tempfile.gettempdir()) / f"tdbmeta_{uuid.uuid4().hex}"
    temp_dir.mkdir(parents=True, exist_ok=True)
    started = datetime.datetime.now()

    logger.debug("Downloading new %s from GameTDB", CATALOG_URL)
    archive = download(CATALOG_URL, temp_dir)

    logger.debug("Unzipping %s to %s", archive.name, target)
    extracted = extraction_service.extract_member(archive, CATALOG_FILE_NAME, temp_dir / "extracted")
    installed = storage_service.install_file(extracted, catalog_dir)

    storage_service.cleanup_temp(temp_dir)
    logger.debug("Finished catalog download in %s", datetime.datetime.now() - started)
    return installed


# ── Shared lifetime ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LoadedCatalog:
    """What one session load produces: the catalog plus Dolphin's cache."""

    catalog: Catalog
    gamelist: Optional[bytes] = None


def session_loader(
    settings: LookupSettings, *, force_refresh: bool = False
) -> Callable[[], LoadedCatalog]:
    """
    Loader for SharedCatalog: refresh if stale, parse, read gamelist.cache.

    Local I/O failures while preparing either file surface as CatalogError.
    """

    def load() -> LoadedCatalog:
        try:
            path = ensure_catalog_file(
                settings.catalog_dir,
                force=force_refresh,
                max_age_days=settings.catalog_max_age_days,
            )
        except OSError as exc:
            raise CatalogError(f"Cannot prepare catalog in '{settings.catalog_dir}': {exc}") from exc
        catalog = load_catalog(path)

        cache_path = settings.gamelist_cache_path
        try:
            gamelist = gamelist_cache_service.load_gamelist(cache_path)
        except OSError as exc:
            raise CatalogError(f"Cannot read Dolphin cache '{cache_path}': {exc}") from exc
        return LoadedCatalog(catalog=catalog, gamelist=gamelist)

    return load


class SharedCatalog(Generic[T]):
    """
    Load-once, reference-counted holder.

    Invariants
    ----------
    * At most one load runs at a time; callers arriving during a load wait
      on the lock and receive the same object.
    * The loaded value is dropped when the reference count returns to zero.
      A caller that acquires after that point triggers a fresh load, so a
      session may see a reloaded (possibly newer) catalog but never a
      partially built one.
    """

    def __init__(self, loader: Callable[[], T]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._refs = 0

    @property
    def references(self) -> int:
        return self._refs

    @property
    def is_loaded(self) -> bool:
        return self._value is not None

    def acquire(self) -> T:
        with self._lock:
            if self._value is None:
                self._value = self._loader()
            self._refs += 1
            return self._value

    def release(self) -> None:
        with self._lock:
            self._refs -= 1
            if self._refs <= 0:
                self._refs = 0
                self._value = None

    @contextmanager
    def borrow(self) -> Iterator[T]:
        value = self.acquire()
        try:
            yield value
        finally:
            self.release()

"""
workers/lookup_worker.py – Background QThread worker that orchestrates the
full identify → match → project → cover pipeline for one game image.

Signal contract
---------------
  status(str)        : Human-readable status message for the log area
  finished(object)   : GameMetadata on success
  not_found(str)     : No ID6 or no catalog match (an expected outcome)
  error(str)         : User-friendly error message on a hard failure

The catalog is acquired from the SharedCatalog at the start of run() and
always released at the end, whatever the outcome.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QThread, Signal

from models.metadata import GameMetadata
from models.settings import LookupSettings
from services import cover_service, identity_service, projection_service
from services.catalog_service import LoadedCatalog, SharedCatalog
from services.cover_service import CoverFetcher
from services.exceptions import (
    CatalogError,
    DownloadError,
    ExtractionError,
    HelperNotFoundError,
    StorageError,
    TDBMetaError,
)
from services.identity_service import CodeResolver


class LookupWorker(QThread):
    """
    Runs the metadata lookup for *image_path* on a background thread.

    Instantiate, connect signals, then call start().
    """

    # ── Signals ───────────────────────────────────────────────────────────────
    status    = Signal(str)
    finished  = Signal(object)
    not_found = Signal(str)
    error     = Signal(str)

    def __init__(
        self,
        image_path: Path,
        shared: SharedCatalog[LoadedCatalog],
        settings: LookupSettings,
        *,
        resolver: Optional[CodeResolver] = None,
        fetch_cover: CoverFetcher = cover_service.fetch_cover,
        want_cover: bool = True,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._image_path = image_path
        self._shared     = shared
        self._settings   = settings
        self._resolver   = resolver
        self._fetch      = fetch_cover
        self._want_cover = want_cover

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self) -> None:
        """Main pipeline executed on the worker thread."""
        try:
            self._run_pipeline()
        except HelperNotFoundError as exc:
            self.error.emit(f"ID6 helper missing:\n{exc}")
        except CatalogError as exc:
            self.error.emit(f"Catalog unavailable:\n{exc}")
        except (DownloadError, ExtractionError, StorageError) as exc:
            self.error.emit(f"Download failed:\n{exc}")
        except TDBMetaError as exc:
            self.error.emit(f"Error:\n{exc}")
        except OSError as exc:
            self.error.emit(f"Cannot read image:\n{exc}")
        except Exception as exc:  # noqa: BLE001
            # Catch-all so the worker thread never silently dies.
            self.error.emit(f"Unexpected error:\n{type(exc).__name__}: {exc}")

    # ── Pipeline steps ────────────────────────────────────────────────────────

    def _run_pipeline(self) -> None:
        self.status.emit("Loading catalog…")
        with self._shared.borrow() as loaded:
            self._lookup(loaded)

    def _lookup(self, loaded: LoadedCatalog) -> None:
        # ── 1. Identify ───────────────────────────────────────────────────
        self.status.emit(f"Getting metadata for {self._image_path}")
        id6 = identity_service.identify(
            self._image_path,
            gamelist=loaded.gamelist,
            resolver=self._resolver,
        )
        if id6 is None:
            self.not_found.emit(f"No game ID found in {self._image_path.name}")
            return
        self.status.emit(f"ID6: {id6}")

        # ── 2. Match ──────────────────────────────────────────────────────
        record = loaded.catalog.lookup(id6)
        if record is None:
            self.not_found.emit(f"No catalog entry for {id6}")
            return

        # ── 3. Project ────────────────────────────────────────────────────
        language = self._settings.language
        name = projection_service.title(record, language)
        description = projection_service.synopsis(record, language)
        self.status.emit(f"Matched: {name or record.rom_name or record.id}")

        # ── 4. Cover ──────────────────────────────────────────────────────
        cover = None
        if self._want_cover:
            self.status.emit("Downloading cover…")
            cover = cover_service.get_cover(
                record, language, self._settings.cover_preference, self._fetch
            )
            if cover is None:
                self.status.emit("No cover available.")

        self.finished.emit(
            GameMetadata(
                id6=id6,
                record=record,
                name=name,
                description=description,
                cover=cover,
            )
        )

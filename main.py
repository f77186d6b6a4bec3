"""
main.py – TDBMeta command-line entry point.

Looks up GameTDB metadata for one or more Wii / GameCube images. Every image
gets its own LookupWorker; all workers share one SharedCatalog so wiitdb.xml
is parsed once. Cover art is only downloaded when --covers-out is given.
"""

import argparse
import logging
import os
import sys
import threading
from pathlib import Path

# ── PyInstaller binary path resolution ──────────────────────────────────────
if hasattr(sys, "_MEIPASS"):
    BASE_PATH = sys._MEIPASS
else:
    BASE_PATH = os.path.abspath(".")

# Expose globally so services can locate bundled helpers
os.environ.setdefault("TDBMETA_BASE", BASE_PATH)

from PySide6.QtCore import QCoreApplication, QTimer

from models.metadata import GameMetadata
from models.settings import COVERS, LANGUAGES, LookupSettings
from services.catalog_service import SharedCatalog, session_loader
from services.exceptions import TDBMetaError
from services.wit_service import WitResolver
from workers.lookup_worker import LookupWorker


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tdbmeta",
        description="Identify Wii / GameCube images and look them up on GameTDB.",
    )
    parser.add_argument("images", nargs="+", type=Path, help="Game image files")
    parser.add_argument("--language", choices=LANGUAGES.values(), help="Preferred language code")
    parser.add_argument("--cover", choices=COVERS.values(), help="Preferred cover kind")
    parser.add_argument("--dolphin-user", help="Dolphin user folder (for .rvz / .wad)")
    parser.add_argument("--catalog-dir", type=Path, help="Where wiitdb.xml is kept")
    parser.add_argument("--wit", type=Path, help="Path to the wit executable")
    parser.add_argument("--covers-out", type=Path, help="Write covers into this directory")
    parser.add_argument("--refresh", action="store_true", help="Download wiitdb.xml now")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> LookupSettings:
    settings = LookupSettings.from_env()
    if args.language:
        settings.language = args.language
    if args.cover:
        settings.cover_preference = args.cover
    if args.dolphin_user:
        settings.dolphin_user_folder = args.dolphin_user
    if args.catalog_dir:
        settings.catalog_dir = args.catalog_dir
    if args.wit:
        settings.wit_path = args.wit
    return settings


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2
    shared = SharedCatalog(session_loader(settings, force_refresh=args.refresh))
    resolver = WitResolver(settings.wit_path)

    # Hold one reference for the whole run so workers never trigger a reload.
    try:
        shared.acquire()
    except TDBMetaError as exc:
        print(f"Catalog unavailable: {exc}", file=sys.stderr)
        return 2

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("TDBMeta")

    failures = []
    workers = []
    remaining = [len(args.images)]
    lock = threading.Lock()

    # Each worker emits exactly one of finished / not_found / error.
    def on_done() -> None:
        with lock:
            remaining[0] -= 1
            last = remaining[0] == 0
        if last:
            app.quit()

    def on_finished(path: Path, meta: GameMetadata) -> None:
        print(f"{path.name}: {meta}")
        if meta.description:
            print(f"    {meta.description}")
        if meta.cover is not None and args.covers_out:
            args.covers_out.mkdir(parents=True, exist_ok=True)
            (args.covers_out / meta.cover_file_name).write_bytes(meta.cover.data)
        on_done()

    def on_not_found(path: Path, reason: str) -> None:
        print(f"{path.name}: {reason}")
        on_done()

    def on_error(path: Path, message: str) -> None:
        failures.append((path, message))
        on_done()

    log = logging.getLogger("tdbmeta")
    for path in args.images:
        worker = LookupWorker(
            path, shared, settings, resolver=resolver, want_cover=args.covers_out is not None
        )
        worker.status.connect(log.info)
        worker.finished.connect(lambda meta, p=path: on_finished(p, meta))
        worker.not_found.connect(lambda reason, p=path: on_not_found(p, reason))
        worker.error.connect(lambda message, p=path: on_error(p, message))
        workers.append(worker)

    def start_all() -> None:
        for worker in workers:
            worker.start()

    # Start once the event loop runs so an early quit() is not lost.
    QTimer.singleShot(0, start_all)
    app.exec()

    for worker in workers:
        worker.wait()
    shared.release()

    for path, message in failures:
        print(f"{path.name}: {message}", file=sys.stderr)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

"""
services/download_service.py – Streaming file download with progress callbacks.

Uses httpx in streaming mode so the catalog archive is never loaded fully into
memory. A progress callback (bytes_downloaded, total_bytes_or_-1) is called
after every chunk.

A download is attempted once; retrying is left to the caller.
"""

from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

import httpx

from services.exceptions import DownloadError

# ── Configuration ────────────────────────────────────────────────────────────
CHUNK_SIZE: int = 1024 * 1024  # 1 MiB
CONNECT_TIMEOUT: float = 30.0

# ── Types ────────────────────────────────────────────────────────────────────
ProgressCallback = Callable[[int, int], None]


def _filename_from_url(url: str) -> str:
    """Derive a filename from the last path segment of the URL."""
    name = unquote(urlparse(url).path.split("/")[-1])
    return name if name else "download.bin"


def _cleanup_partial(path: Path) -> None:
    try:
        if path.exists():
            path.unlink()
    except OSError:
        pass


# ── Public API ───────────────────────────────────────────────────────────────


def download_file(
    url: str,
    dest_dir: Path,
    *,
    progress_callback: Optional[ProgressCallback] = None,
    client: Optional[httpx.Client] = None,
) -> Path:
    """
    Stream-download *url* into *dest_dir*.

    Parameters
    ----------
    url               : Direct download URL.
    dest_dir          : Directory where the file will be written.
    progress_callback : Optional callable receiving (downloaded, total).
    client            : Optional httpx.Client (tests inject a MockTransport).

    Returns
    -------
    Path to the downloaded file.

    Raises
    ------
    DownloadError on any network or I/O failure; the partial file is removed.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest_path = dest_dir / Path(_filename_from_url(url)).name

    timeout = httpx.Timeout(connect=CONNECT_TIMEOUT, read=None, write=None, pool=None)
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    try:
        with client.stream("GET", url) as resp:
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise DownloadError(
                    f"Server returned HTTP {exc.response.status_code} for URL: {url}"
                ) from exc

            total_bytes = int(resp.headers.get("content-length", -1))
            downloaded = 0

            with open(dest_path, "wb") as fh:
                for chunk in resp.iter_bytes(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    fh.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(downloaded, total_bytes)

    except httpx.RequestError as exc:
        _cleanup_partial(dest_path)
        raise DownloadError(f"Network error during download: {exc}") from exc
    except OSError as exc:
        _cleanup_partial(dest_path)
        raise DownloadError(f"I/O error writing download to disk: {exc}") from exc
    except DownloadError:
        _cleanup_partial(dest_path)
        raise
    finally:
        if owns_client:
            client.close()

    return dest_path

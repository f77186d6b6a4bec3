import zipfile

import httpx
import pytest

from services.download_service import download_file
from services.exceptions import DownloadError, ExtractionError, StorageError
from services.extraction_service import extract_member
from services.storage_service import cleanup_temp, install_file


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_download_writes_file_and_reports_progress(tmp_path):
    body = b"x" * 3000
    progress = []
    client = _client(lambda request: httpx.Response(200, content=body))
    path = download_file(
        "https://www.gametdb.com/wiitdb.zip",
        tmp_path,
        progress_callback=lambda done, total: progress.append((done, total)),
        client=client,
    )
    assert path == tmp_path / "wiitdb.zip"
    assert path.read_bytes() == body
    assert progress[-1][0] == len(body)


def test_download_http_error_leaves_no_file(tmp_path):
    client = _client(lambda request: httpx.Response(500))
    with pytest.raises(DownloadError):
        download_file("https://www.gametdb.com/wiitdb.zip", tmp_path, client=client)
    assert not (tmp_path / "wiitdb.zip").exists()


def test_download_network_error(tmp_path):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(DownloadError):
        download_file("https://www.gametdb.com/wiitdb.zip", tmp_path, client=_client(handler))


def _zip(path, members):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def test_extract_member(tmp_path):
    archive = _zip(tmp_path / "wiitdb.zip", {"wiitdb.xml": "<datafile/>", "readme.txt": "hi"})
    out = extract_member(archive, "wiitdb.xml", tmp_path / "out")
    assert out == (tmp_path / "out" / "wiitdb.xml").resolve()
    assert out.read_text() == "<datafile/>"
    assert not (tmp_path / "out" / "readme.txt").exists()


def test_extract_missing_member(tmp_path):
    archive = _zip(tmp_path / "wiitdb.zip", {"other.xml": "x"})
    with pytest.raises(ExtractionError):
        extract_member(archive, "wiitdb.xml", tmp_path / "out")


def test_extract_rejects_traversal(tmp_path):
    archive = _zip(tmp_path / "evil.zip", {"../wiitdb.xml": "x"})
    with pytest.raises(ExtractionError):
        extract_member(archive, "../wiitdb.xml", tmp_path / "out")


def test_extract_corrupt_archive(tmp_path):
    archive = tmp_path / "wiitdb.zip"
    archive.write_bytes(b"not a zip")
    with pytest.raises(ExtractionError):
        extract_member(archive, "wiitdb.xml", tmp_path / "out")


def test_install_replaces_existing(tmp_path):
    dest = tmp_path / "data"
    dest.mkdir()
    (dest / "wiitdb.xml").write_text("old")
    source = tmp_path / "tmp" / "wiitdb.xml"
    source.parent.mkdir()
    source.write_text("new")

    installed = install_file(source, dest)
    assert installed.read_text() == "new"
    assert not source.exists()


def test_install_missing_source(tmp_path):
    with pytest.raises(StorageError):
        install_file(tmp_path / "nothing.xml", tmp_path / "data")


def test_cleanup_temp(tmp_path):
    temp = tmp_path / "tdbmeta_x"
    (temp / "extracted").mkdir(parents=True)
    cleanup_temp(temp)
    assert not temp.exists()
    cleanup_temp(temp)

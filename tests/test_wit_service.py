import logging
import subprocess

import pytest

from services.exceptions import HelperNotFoundError
from services.wit_service import WitResolver, default_wit_path


class FakeRunner:
    def __init__(self, stdout="", stderr="", returncode=0, raises=None):
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        self.raises = raises
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.raises is not None:
            raise self.raises
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def wit(tmp_path):
    path = tmp_path / "wit"
    path.write_text("#!/bin/sh\n")
    return path


def test_invocation_and_trimmed_output(wit, tmp_path):
    runner = FakeRunner(stdout="  RSBE01\r\n")
    image = tmp_path / "Brawl [RSBE01].wbi"
    assert WitResolver(wit, runner=runner).resolve(image) == "RSBE01"

    cmd, kwargs = runner.calls[0]
    assert cmd == [str(wit), "id6", str(image)]
    assert kwargs["shell"] is False
    assert kwargs["capture_output"] is True


def test_stderr_is_logged_not_fatal(wit, tmp_path, caplog):
    runner = FakeRunner(stdout="RMCP01\n", stderr="!! wit: something odd\n\n")
    with caplog.at_level(logging.WARNING, logger="services.wit_service"):
        assert WitResolver(wit, runner=runner).resolve(tmp_path / "x.wdf") == "RMCP01"
    assert "something odd" in caplog.text


def test_non_zero_exit_still_validates_output(wit, tmp_path):
    runner = FakeRunner(stdout="GALE01", returncode=1)
    assert WitResolver(wit, runner=runner).resolve(tmp_path / "x.ciso") == "GALE01"


@pytest.mark.parametrize("stdout", ["", "not an id", "rsbe01", "RSBE0"])
def test_invalid_output_means_no_identity(wit, tmp_path, stdout):
    runner = FakeRunner(stdout=stdout)
    assert WitResolver(wit, runner=runner).resolve(tmp_path / "x.wia") is None


def test_missing_binary_is_a_configuration_error(tmp_path):
    runner = FakeRunner(stdout="RSBE01")
    resolver = WitResolver(tmp_path / "nope" / "wit", runner=runner)
    with pytest.raises(HelperNotFoundError) as info:
        resolver.resolve(tmp_path / "x.wbi")
    assert info.value.helper_path == tmp_path / "nope" / "wit"
    assert runner.calls == []


def test_launch_failure_is_a_configuration_error(wit, tmp_path):
    runner = FakeRunner(raises=FileNotFoundError("gone"))
    with pytest.raises(HelperNotFoundError):
        WitResolver(wit, runner=runner).resolve(tmp_path / "x.wbi")


def test_resolver_is_callable(wit, tmp_path):
    resolver = WitResolver(wit, runner=FakeRunner(stdout="RSBE01"))
    assert resolver(tmp_path / "x.gcz") == "RSBE01"


def test_default_path_uses_base_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TDBMETA_BASE", str(tmp_path))
    path = default_wit_path()
    assert path.parent == tmp_path / "bin" / "wit" / "bin"
    assert path.name in ("wit", "wit.exe")

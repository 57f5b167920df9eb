"""Unit tests for the command line entry point."""

import json
import logging
import os

import pytest
from unittest.mock import patch

from mediacrypt.frontend.cli import app


@pytest.fixture(autouse=True)
def no_logging_setup():
    # basicConfig would attach handlers to the root logger of the test run
    with patch("mediacrypt.frontend.cli.app.configure_logging") as mock:
        yield mock


def test_encrypt_then_decrypt(tmp_path):
    src = tmp_path / "photo.jpg"
    src.write_bytes(b"\xff\xd8 not really a jpeg")
    enc = tmp_path / "photo.jpg.enc"
    out = tmp_path / "photo.out.jpg"

    assert app.main(["encrypt", str(src), str(enc)]) == 0

    info_path = tmp_path / "photo.jpg.enc.json"
    assert info_path.exists()
    record = json.loads(info_path.read_text())
    assert record["v"] == "v2"
    assert "sha256" in record["hashes"]

    assert app.main(["decrypt", str(enc), str(out), "--info", str(info_path)]) == 0
    assert out.read_bytes() == src.read_bytes()


def test_explicit_info_path(tmp_path):
    src = tmp_path / "a.txt"
    src.write_text("hi")
    info_path = tmp_path / "keys" / "a.json"
    info_path.parent.mkdir()

    assert app.main(["encrypt", str(src), str(tmp_path / "a.enc"), "--info", str(info_path)]) == 0
    assert info_path.exists()
    assert (info_path.stat().st_mode & 0o777) == 0o600


def test_decrypt_tampered_returns_error(tmp_path, caplog):
    src = tmp_path / "a.txt"
    src.write_text("hello there")
    enc = tmp_path / "a.enc"
    assert app.main(["encrypt", str(src), str(enc)]) == 0

    tampered = bytearray(enc.read_bytes())
    tampered[0] ^= 0x01
    enc.write_bytes(bytes(tampered))

    with caplog.at_level(logging.ERROR):
        code = app.main(["decrypt", str(enc), str(tmp_path / "a.out"), "--info", str(tmp_path / "a.enc.json")])
    assert code == 1
    assert "decrypt failed" in caplog.text
    assert not (tmp_path / "a.out").exists()


def test_decrypt_bad_info_file_returns_error(tmp_path):
    enc = tmp_path / "a.enc"
    enc.write_bytes(b"data")
    info_path = tmp_path / "info.json"
    info_path.write_text("{}")

    assert app.main(["decrypt", str(enc), str(tmp_path / "out"), "--info", str(info_path)]) == 1


def test_missing_input_returns_error(tmp_path):
    assert app.main(["encrypt", str(tmp_path / "missing"), str(tmp_path / "out")]) == 1


def test_decrypt_requires_info(tmp_path):
    with pytest.raises(SystemExit):
        app.main(["decrypt", "a", "b"])


def test_invalid_chunk_size_returns_usage_error(tmp_path):
    assert app.main(["--chunk-size", "0", "encrypt", "a", "b"]) == 2


def test_log_level_passed_to_logging(tmp_path, no_logging_setup):
    src = tmp_path / "a.txt"
    src.write_text("hi")
    assert app.main(["--log-level", "debug", "encrypt", str(src), str(tmp_path / "a.enc")]) == 0
    no_logging_setup.assert_called_once_with(logging.DEBUG)


@pytest.fixture
def open_modes():
    """Record the mode of every file handed to os.fdopen, at open time."""
    modes = []
    real_fdopen = os.fdopen

    def spy(fd, *args, **kwargs):
        modes.append(os.fstat(fd).st_mode & 0o777)
        return real_fdopen(fd, *args, **kwargs)

    old_umask = os.umask(0)
    with patch("mediacrypt.frontend.cli.app.os.fdopen", side_effect=spy):
        yield modes
    os.umask(old_umask)


def test_info_file_private_from_creation(tmp_path, open_modes):
    src = tmp_path / "a.txt"
    src.write_text("hi")

    assert app.main(["encrypt", str(src), str(tmp_path / "a.enc")]) == 0
    assert open_modes == [0o600]
    assert json.loads((tmp_path / "a.enc.json").read_text())["v"] == "v2"


def test_existing_info_file_is_tightened_before_writing(tmp_path, open_modes):
    src = tmp_path / "a.txt"
    src.write_text("hi")
    info_path = tmp_path / "a.json"
    info_path.write_text("old")
    info_path.chmod(0o644)

    assert app.main(["encrypt", str(src), str(tmp_path / "a.enc"), "--info", str(info_path)]) == 0
    assert open_modes == [0o600]
    assert (info_path.stat().st_mode & 0o777) == 0o600

"""Unit tests for command line settings resolution."""

import logging
from pathlib import Path

import pytest

from mediacrypt.frontend.cli.context import build_settings


def test_defaults_for_encrypt():
    s = build_settings("encrypt", "in.bin", "out/file.enc", environ={})
    assert s.in_path == Path("in.bin")
    assert s.info_path == Path("out/file.enc.json")
    assert s.chunk_size == 64 * 1024
    assert s.log_level == logging.INFO


def test_decrypt_requires_info_path():
    with pytest.raises(ValueError, match="--info"):
        build_settings("decrypt", "in.enc", "out.bin", environ={})


def test_environment_fallbacks():
    env = {"MEDIACRYPT_CHUNK_SIZE": "4096", "MEDIACRYPT_LOG_LEVEL": "warning"}
    s = build_settings("encrypt", "a", "b", environ=env)
    assert s.chunk_size == 4096
    assert s.log_level == logging.WARNING


def test_arguments_override_environment():
    env = {"MEDIACRYPT_CHUNK_SIZE": "4096", "MEDIACRYPT_LOG_LEVEL": "warning"}
    s = build_settings("decrypt", "a", "b", info_path="i.json", chunk_size=10, log_level="DEBUG", environ=env)
    assert s.chunk_size == 10
    assert s.log_level == logging.DEBUG
    assert s.info_path == Path("i.json")


@pytest.mark.parametrize("env", [
    {"MEDIACRYPT_CHUNK_SIZE": "-1"},
    {"MEDIACRYPT_CHUNK_SIZE": "lots"},
    {"MEDIACRYPT_LOG_LEVEL": "chatty"},
])
def test_invalid_environment_values(env):
    with pytest.raises(ValueError):
        build_settings("encrypt", "a", "b", environ=env)

"""Small helper to build the runtime settings for the command line."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import os

from mediacrypt.security.files import CHUNK_SIZE


ENV_LOG_LEVEL = "MEDIACRYPT_LOG_LEVEL"
ENV_CHUNK_SIZE = "MEDIACRYPT_CHUNK_SIZE"


@dataclass
class CliSettings:
    """Container for the values a command needs."""

    command: str
    in_path: Path
    out_path: Path
    info_path: Path
    chunk_size: int = CHUNK_SIZE
    log_level: int = logging.INFO


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {value!r}")
    return level


def build_settings(
    command: str,
    in_path: str | Path,
    out_path: str | Path,
    info_path: Optional[str | Path] = None,
    chunk_size: Optional[int] = None,
    log_level: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CliSettings:
    """
    Resolve settings from explicit arguments, falling back to the environment.

    - ``info_path`` defaults to ``<out_path>.json`` when encrypting; decrypting
      requires it.
    - ``chunk_size`` falls back to ``MEDIACRYPT_CHUNK_SIZE`` then 64 KiB.
    - ``log_level`` falls back to ``MEDIACRYPT_LOG_LEVEL`` then INFO.
    """
    env = os.environ if environ is None else environ
    in_path = Path(in_path).expanduser()
    out_path = Path(out_path).expanduser()

    if info_path is None:
        if command != "encrypt":
            raise ValueError("--info is required to decrypt")
        info_path = out_path.with_name(out_path.name + ".json")

    if chunk_size is None:
        chunk_size = int(env.get(ENV_CHUNK_SIZE, CHUNK_SIZE))
    if chunk_size <= 0:
        raise ValueError("chunk size must be positive")

    level = _parse_level(log_level or env.get(ENV_LOG_LEVEL, "INFO"))

    return CliSettings(
        command=command,
        in_path=in_path,
        out_path=out_path,
        info_path=Path(info_path).expanduser(),
        chunk_size=chunk_size,
        log_level=level,
    )

"""Command line entry point: encrypt or decrypt an attachment file.

    mediacrypt encrypt photo.jpg photo.jpg.enc [--info photo.json]
    mediacrypt decrypt photo.jpg.enc photo.jpg --info photo.json
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from mediacrypt.core.exceptions import MediaCryptError
from mediacrypt.security.files import decrypt_file_stream, encrypt_file_stream
from mediacrypt.security.info import MediaEncryptionInfo

from .context import CliSettings, build_settings
from .logging_config import configure_logging


logger = logging.getLogger(__name__)


def write_private_file(path: Path, text: str) -> None:
    """Write ``text`` to ``path``, readable by the owner only from creation on."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    # O_CREAT keeps the mode of an existing file
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mediacrypt", description="Encrypted attachment tool")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--chunk-size", type=int, default=None)

    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encrypt", help="encrypt a file and write its encryption info")
    enc.add_argument("in_path")
    enc.add_argument("out_path")
    enc.add_argument("--info", dest="info_path", default=None)

    dec = sub.add_parser("decrypt", help="decrypt a file using its encryption info")
    dec.add_argument("in_path")
    dec.add_argument("out_path")
    dec.add_argument("--info", dest="info_path", required=True)

    return parser


def run(settings: CliSettings) -> None:
    if settings.command == "encrypt":
        info = encrypt_file_stream(settings.in_path, settings.out_path, settings.chunk_size)
        # the info holds the key, keep it out of the logs
        write_private_file(settings.info_path, info.to_json())
        logger.info("wrote encryption info to %s", settings.info_path)
    else:
        info = MediaEncryptionInfo.from_json(settings.info_path.read_text(encoding="utf-8"))
        decrypt_file_stream(settings.in_path, settings.out_path, info, settings.chunk_size)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = build_settings(
            command=args.command,
            in_path=args.in_path,
            out_path=args.out_path,
            info_path=args.info_path,
            chunk_size=args.chunk_size,
            log_level=args.log_level,
        )
    except ValueError as e:
        configure_logging()
        logger.error("%s", e)
        return 2

    configure_logging(settings.log_level)
    try:
        run(settings)
    except (MediaCryptError, OSError) as e:
        logger.error("%s failed: %s", settings.command, e)
        return 1
    return 0

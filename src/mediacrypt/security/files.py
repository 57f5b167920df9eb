"""File-level helpers on top of the attachment streams.

Decryption writes to a temporary file next to the destination and only moves
it into place once the hash has been verified, so a tampered attachment never
leaves plaintext behind at ``out_path``.
"""
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from mediacrypt.core.hashing import calculate_sha256
from .attachments import AttachmentDecryptor, AttachmentEncryptor
from .info import MediaEncryptionInfo


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

PathLike = Union[str, Path]


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def encrypt_file_stream(in_path: PathLike, out_path: PathLike, chunk_size: int = CHUNK_SIZE) -> MediaEncryptionInfo:
    """Encrypt ``in_path`` into ``out_path`` and return the info needed to decrypt it."""
    with open(in_path, "rb") as inf, open(out_path, "wb") as outf:
        encryptor = AttachmentEncryptor(inf)
        shutil.copyfileobj(encryptor, outf, chunk_size)
        info = encryptor.finish()

    logger.info("encrypted %s -> %s (sha256 %s)", in_path, out_path, calculate_sha256(Path(out_path)))
    return info


def decrypt_file_stream(
    in_path: PathLike,
    out_path: PathLike,
    info: MediaEncryptionInfo,
    chunk_size: int = CHUNK_SIZE,
) -> None:
    """Decrypt ``in_path`` into ``out_path``, verifying the ciphertext hash.

    Raises :class:`DecryptorError` for an unusable ``info`` and
    :class:`IntegrityCheckFailedError` if the ciphertext was modified. In
    both cases ``out_path`` is left untouched.
    """
    out_path = Path(out_path)

    with tempfile.NamedTemporaryFile(dir=out_path.parent, prefix=".mediacrypt-", delete=False) as tmpf:
        tmp_path = Path(tmpf.name)

    try:
        with open(in_path, "rb") as inf:
            decryptor = AttachmentDecryptor(inf, info)
            with decryptor, open(tmp_path, "wb") as outf:
                shutil.copyfileobj(decryptor, outf, chunk_size)
        # mkstemp creates 0600, give the plaintext the usual umask mode
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, out_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("decrypted %s -> %s", in_path, out_path)

"""Streaming AES-256-CTR encryption of attachments with a SHA-256 over the ciphertext.

Both wrappers are ordinary read-only raw streams: they take any binary source
offering ``readinto`` (or just ``read``) and hand out transformed bytes through
the same interface, so they can be stacked under ``io.BufferedReader``, fed to
``shutil.copyfileobj`` or drained with ``read()``.

The ciphertext is what gets hashed, on both sides:

- the encryptor encrypts a chunk and then hashes it
- the decryptor hashes a chunk and then decrypts it

Swapping either order produces records other clients can't verify.

The integrity check only happens once the wrapped source is exhausted.
Plaintext handed out before that point must not be trusted until the final
read returns without raising :class:`IntegrityCheckFailedError`.
"""
from __future__ import annotations

import hmac
import io
import logging
from typing import Any, BinaryIO, Mapping, Optional, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from mediacrypt.core.exceptions import (
    IntegrityCheckFailedError,
    KeyNonceLengthError,
    MissingHashError,
    UnknownVersionError,
)
from mediacrypt.core.hashing import RunningDigest
from .info import SHA256, VERSION, JsonWebKey, MediaEncryptionInfo
from .keys import IV_SIZE, KEY_SIZE, generate_key_material


logger = logging.getLogger(__name__)


def _aes_ctr(key: bytes, iv: bytes):
    # encryptor() and decryptor() are the same keystream XOR in CTR mode
    return Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()


class _WrappedReader(io.RawIOBase):
    """Shared plumbing for reading from the wrapped source."""

    def __init__(self, inner: BinaryIO):
        super().__init__()
        self._inner = inner

    def readable(self) -> bool:
        return True

    def _read_inner(self, view: memoryview) -> Optional[int]:
        readinto = getattr(self._inner, "readinto", None)
        if readinto is not None:
            return readinto(view)
        data = self._inner.read(len(view))
        if data is None:
            return None
        view[: len(data)] = data
        return len(data)

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream.")

    def close(self) -> None:
        # the wrapped source is borrowed, it stays open
        self._aes = None
        super().close()


class AttachmentEncryptor(_WrappedReader):
    """
    Wrap a plaintext source, encrypting everything read through it.

    A fresh key and IV are generated per instance. Once all data has been
    read, call :meth:`finish` to obtain the :class:`MediaEncryptionInfo`
    needed to decrypt it again.

    Example::

        encryptor = AttachmentEncryptor(io.BytesIO(b"Hello world"))
        ciphertext = encryptor.read()
        info = encryptor.finish()

    Raises :class:`RandomnessUnavailableError` if no key can be generated.
    """

    def __init__(self, inner: BinaryIO):
        super().__init__(inner)
        with generate_key_material() as material:
            self._aes = _aes_ctr(bytes(material.key), bytes(material.iv))
            self._web_key = JsonWebKey(k=bytes(material.key))
            self._iv = bytes(material.iv)
        self._sha = RunningDigest()
        self._hashes = {}
        self._finished = False
        self._consumed = False

    @property
    def finished(self) -> bool:
        """True once the wrapped source reported end of stream."""
        return self._finished

    def readinto(self, b) -> Optional[int]:
        self._check_open()
        view = memoryview(b).cast("B")
        if self._finished or len(view) == 0:
            return 0

        read_bytes = self._read_inner(view)
        if read_bytes is None:
            return None
        if read_bytes == 0:
            self._finalize_hash()
            return 0

        chunk = view[:read_bytes]
        chunk[:] = self._aes.update(bytes(chunk))
        self._sha.update(chunk)
        return read_bytes

    def _finalize_hash(self) -> None:
        self._hashes.setdefault(SHA256, self._sha.finalize())
        self._finished = True

    def finish(self) -> MediaEncryptionInfo:
        """Consume the encryptor and return the info needed for decryption.

        If the source wasn't read to the end, the hash covers only the
        ciphertext produced so far.
        """
        if self._consumed:
            raise ValueError("encryptor already finished")
        if not self._finished:
            logger.debug("finishing encryptor before end of stream")
        self._finalize_hash()
        self._consumed = True
        self.close()

        return MediaEncryptionInfo(
            version=VERSION,
            web_key=self._web_key,
            iv=self._iv,
            hashes=self._hashes,
        )

    def __repr__(self) -> str:
        return f"<AttachmentEncryptor inner={self._inner!r} finished={self._finished}>"


class AttachmentDecryptor(_WrappedReader):
    """
    Wrap a ciphertext source, decrypting everything read through it.

    The info is validated up front; an invalid record raises a
    :class:`DecryptorError` subclass and no stream is created:

    - :class:`UnknownVersionError` for anything but ``"v2"``
    - :class:`MissingHashError` without a ``sha256`` hash
    - :class:`KeyNonceLengthError` unless the key is 32 and the IV 16 bytes

    The read that hits the end of the source checks the hash and raises
    :class:`IntegrityCheckFailedError` on mismatch. After a failure every
    further read raises again; after success reads keep returning nothing.
    """

    def __init__(
        self,
        inner: BinaryIO,
        info: Union[MediaEncryptionInfo, Mapping[str, Any]],
    ):
        if not isinstance(info, MediaEncryptionInfo):
            # refuse unknown versions before parsing a layout we may not know
            if isinstance(info, Mapping) and info.get("v") != VERSION:
                raise UnknownVersionError("Unknown version for the encrypted attachment.")
            info = MediaEncryptionInfo.from_dict(info)

        if info.version != VERSION:
            raise UnknownVersionError("Unknown version for the encrypted attachment.")

        expected_hash = info.hashes.get(SHA256)
        if expected_hash is None:
            raise MissingHashError("The encryption info is missing a hash")

        if len(info.web_key.k) != KEY_SIZE or len(info.iv) != IV_SIZE:
            raise KeyNonceLengthError("The supplied key or IV has an invalid length.")

        super().__init__(inner)
        self._expected_hash = bytes(expected_hash)
        self._aes = _aes_ctr(info.web_key.k, info.iv)
        self._sha = RunningDigest()
        self._verified = False
        self._failed = False

    @property
    def verified(self) -> bool:
        """True once the whole stream was read and its hash matched."""
        return self._verified

    def readinto(self, b) -> Optional[int]:
        self._check_open()
        if self._failed:
            raise IntegrityCheckFailedError("Hash mismatch while decrypting")
        view = memoryview(b).cast("B")
        if self._verified or len(view) == 0:
            return 0

        read_bytes = self._read_inner(view)
        if read_bytes is None:
            return None
        if read_bytes == 0:
            self._verify()
            return 0

        chunk = view[:read_bytes]
        self._sha.update(chunk)
        chunk[:] = self._aes.update(bytes(chunk))
        return read_bytes

    def _verify(self) -> None:
        if hmac.compare_digest(self._sha.finalize(), self._expected_hash):
            self._verified = True
            return
        self._failed = True
        logger.warning("hash mismatch while decrypting attachment")
        raise IntegrityCheckFailedError("Hash mismatch while decrypting")

    def __repr__(self) -> str:
        return (
            f"<AttachmentDecryptor inner={self._inner!r} "
            f"expected_hash={self._expected_hash.hex()} verified={self._verified}>"
        )

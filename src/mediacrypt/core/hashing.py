""" Utility for hashing operations. """

import hashlib
from pathlib import Path
from typing import Optional


CHUNK_SIZE = 65536  # 64KB


class RunningDigest:
    """SHA-256 state that can be finalized exactly once.

    ``hashlib`` objects keep accepting data after ``digest()`` is called, so
    the finished state is tracked here instead of being inferred from the
    hash object.
    """

    def __init__(self):
        self._sha = hashlib.sha256()
        self._value: Optional[bytes] = None

    @property
    def finished(self) -> bool:
        return self._value is not None

    def update(self, data) -> None:
        if self._value is not None:
            raise RuntimeError("digest already finalized")
        self._sha.update(data)

    def finalize(self) -> bytes:
        """Return the digest, computing it on the first call only."""
        if self._value is None:
            self._value = self._sha.digest()
            self._sha = None
        return self._value


def calculate_sha256(file_path: Path) -> str:

    # Calculates the SHA-256 hash of a file.

    sha256 = hashlib.sha256()
    with open(file_path, 'rb') as f:
        while True:
            data = f.read(CHUNK_SIZE)
            if not data:
                break
            sha256.update(data)
    return sha256.hexdigest()

"""Unpadded base64 helpers for the attachment encryption info.

Matrix clients emit unpadded base64 everywhere, using the URL-safe alphabet
for the JSON Web Key ``k`` field and the standard alphabet for the IV and the
hashes. Decoding is lenient about both so that records from any client can be
read back.
"""
import base64
import binascii

from mediacrypt.core.exceptions import DecodeError


_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def encode_b64(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii").rstrip("=")


def encode_b64_urlsafe(data: bytes) -> str:
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")


def decode_b64(text: str) -> bytes:
    """Decode standard or URL-safe base64, with or without padding."""
    if not isinstance(text, str):
        raise DecodeError(f"expected a base64 string, got {type(text).__name__}")

    normalized = text.strip().rstrip("=").translate(_URLSAFE_TO_STANDARD)
    if len(normalized) % 4 == 1:
        raise DecodeError("invalid base64 length")
    normalized += "=" * (-len(normalized) % 4)

    try:
        return base64.b64decode(normalized.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise DecodeError(f"invalid base64: {e}") from e

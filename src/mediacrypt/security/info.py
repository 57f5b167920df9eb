"""Encryption info that travels alongside an encrypted attachment.

Wire shape (JSON), compatible with the Matrix ``EncryptedFile`` object::

    {
        "v": "v2",
        "key": {
            "kty": "oct",
            "key_ops": ["encrypt", "decrypt"],
            "alg": "A256CTR",
            "k": "<url-safe unpadded base64 of the 32 byte key>",
            "ext": true
        },
        "iv": "<unpadded base64 of the 16 byte IV>",
        "hashes": {"sha256": "<unpadded base64 of the ciphertext digest>"}
    }

Only the structure is checked here. Whether a record is actually usable
(known version, sha256 present, key/IV lengths) is decided by
:class:`mediacrypt.security.attachments.AttachmentDecryptor`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from mediacrypt.core.exceptions import DecodeError
from .encoding import decode_b64, encode_b64, encode_b64_urlsafe


VERSION = "v2"
SHA256 = "sha256"


def _require(obj: Mapping[str, Any], name: str, kind: type, where: str) -> Any:
    if not isinstance(obj, Mapping):
        raise DecodeError(f"{where} must be an object")
    if name not in obj:
        raise DecodeError(f"{where} is missing the '{name}' field")
    value = obj[name]
    if not isinstance(value, kind):
        raise DecodeError(f"{where}.{name} has the wrong type ({type(value).__name__})")
    return value


@dataclass(frozen=True)
class JsonWebKey:
    """Symmetric key in JSON Web Key form.

    Only ``k`` matters for decryption; the other fields are passed through
    untouched for interchange with other clients.
    """

    k: bytes = field(repr=False)
    kty: str = "oct"
    key_ops: Tuple[str, ...] = ("encrypt", "decrypt")
    alg: str = "A256CTR"
    ext: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kty": self.kty,
            "key_ops": list(self.key_ops),
            "alg": self.alg,
            "k": encode_b64_urlsafe(self.k),
            "ext": self.ext,
        }

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "JsonWebKey":
        key_ops = _require(obj, "key_ops", list, "key")
        if not all(isinstance(op, str) for op in key_ops):
            raise DecodeError("key.key_ops must be a list of strings")
        return cls(
            k=decode_b64(_require(obj, "k", str, "key")),
            kty=_require(obj, "kty", str, "key"),
            key_ops=tuple(key_ops),
            alg=_require(obj, "alg", str, "key"),
            ext=_require(obj, "ext", bool, "key"),
        )


@dataclass(frozen=True)
class MediaEncryptionInfo:
    """Everything needed to decrypt an encrypted attachment.

    Treat instances as secret: they carry the raw key.
    """

    version: str
    web_key: JsonWebKey
    iv: bytes = field(repr=False)
    hashes: Mapping[str, bytes] = field(default_factory=dict, repr=False)

    # the hash map is a mappingproxy, which has no hash
    __hash__ = None

    def __post_init__(self):
        # freeze the hash map as well, the record is handed over by value
        object.__setattr__(self, "hashes", MappingProxyType(dict(self.hashes)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "v": self.version,
            "key": self.web_key.to_dict(),
            "iv": encode_b64(self.iv),
            "hashes": {name: encode_b64(value) for name, value in sorted(self.hashes.items())},
        }

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "MediaEncryptionInfo":
        if not isinstance(obj, Mapping):
            raise DecodeError("encryption info must be an object")
        key_field = "web_key" if "key" not in obj and "web_key" in obj else "key"
        hashes = _require(obj, "hashes", dict, "info")
        decoded = {}
        for name, value in hashes.items():
            if not isinstance(value, str):
                raise DecodeError(f"info.hashes.{name} must be a string")
            decoded[name] = decode_b64(value)
        return cls(
            version=_require(obj, "v", str, "info"),
            web_key=JsonWebKey.from_dict(_require(obj, key_field, dict, "info")),
            iv=decode_b64(_require(obj, "iv", str, "info")),
            hashes=decoded,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str | bytes) -> "MediaEncryptionInfo":
        try:
            obj = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"invalid JSON: {e}") from e
        return cls.from_dict(obj)

    def __repr__(self) -> str:
        return f"MediaEncryptionInfo(version={self.version!r}, hashes={sorted(self.hashes)})"


@dataclass(frozen=True)
class EncryptedFile:
    """An encrypted attachment as referenced from a message: content URL plus info."""

    url: str
    info: MediaEncryptionInfo

    def to_dict(self) -> Dict[str, Any]:
        out = {"url": self.url}
        out.update(self.info.to_dict())
        return out

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "EncryptedFile":
        return cls(
            url=_require(obj, "url", str, "file"),
            info=MediaEncryptionInfo.from_dict(obj),
        )

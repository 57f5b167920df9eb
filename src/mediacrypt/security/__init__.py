"""Security helpers: streaming attachment encryption for mediacrypt.

This package provides:
- fresh AES-256 key and CTR IV generation
- streaming AES-256-CTR encryption/decryption with a SHA-256 over the ciphertext
- the JSON encryption info exchanged alongside the encrypted bytes
- small file helpers built on the streams
"""

from .keys import KeyMaterial, generate_key_material
from .info import VERSION, EncryptedFile, JsonWebKey, MediaEncryptionInfo
from .attachments import AttachmentDecryptor, AttachmentEncryptor
from .files import decrypt_file_stream, encrypt_file_stream

__all__ = [
    "KeyMaterial",
    "generate_key_material",
    "VERSION",
    "EncryptedFile",
    "JsonWebKey",
    "MediaEncryptionInfo",
    "AttachmentDecryptor",
    "AttachmentEncryptor",
    "decrypt_file_stream",
    "encrypt_file_stream",
]

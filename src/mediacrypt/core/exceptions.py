"""
Exceptions for mediacrypt
This is placed such that there is a general error catcher
"""


class MediaCryptError(Exception):
    # general container for errors
    pass


class InitializationError(MediaCryptError):
    # raised when initialization fails (anywhere)
    pass


class RandomnessUnavailableError(InitializationError):
    # raised when the OS random source can't produce a fresh key; fatal
    pass


class DecryptorError(MediaCryptError):
    # raised when an attachment decryptor can't be built from the given info
    pass


class DecodeError(DecryptorError):
    # raised when a base64 field of the encryption info can't be decoded
    pass


class MissingHashError(DecryptorError):
    # raised when the encryption info is missing the sha256 hash
    pass


class KeyNonceLengthError(DecryptorError):
    # raised when the key or IV has an invalid length
    pass


class UnknownVersionError(DecryptorError):
    # raised for an unknown version of the attachment encryption scheme
    pass


class IntegrityCheckFailedError(MediaCryptError, OSError):
    # raised on a hash mismatch at the end of the encrypted stream
    pass

"""
Exception hierarchy for clpd.

Every error raised on purpose by the package derives from ClpdError so the
command line can report it without a traceback.
"""


class ClpdError(Exception):
    """Base class for all clpd errors."""


class CryptoError(ClpdError):
    pass


class KeyDerivationError(CryptoError):
    """Password or salt could not be turned into a master key."""


class KeyMaterialError(CryptoError):
    """A master key was used after it had been wiped."""


class DecryptionError(CryptoError):
    """
    Authentication failed while decrypting a blob.

    Raised for a wrong key and for corrupted or tampered ciphertext alike and the
    two cases cannot be told apart.
    """


class AuthenticationError(ClpdError):
    """The supplied master password did not unlock the store."""


class StoreError(ClpdError):
    """I/O or serialization failure against the backing database."""


class NotInitializedError(StoreError):
    pass


class NotFoundError(ClpdError):
    pass


class TransportError(ClpdError):
    """A remote peer could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

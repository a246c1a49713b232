class StoreError(Exception):
    """Base class for every error raised by the chirp store."""


class ConfigurationError(StoreError):
    """The store path cannot be used (e.g. it is a directory)."""


class NotFoundError(StoreError):
    """Requested chirp does not exist."""


class InvalidUserIDError(StoreError):
    """Requested user does not exist."""


class EmailTakenError(StoreError):
    """Another user already registered this email."""


class UnregisteredEmailError(StoreError):
    """No user is registered with this email."""


class WrongPasswordError(StoreError):
    """Email is registered but the password does not match."""


class TokenRevokedError(StoreError):
    """Token is present in the revoked set."""


class InternalStoreError(StoreError):
    """Underlying I/O, serialization or hashing failure."""

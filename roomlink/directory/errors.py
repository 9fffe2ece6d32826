"""
Error taxonomy for the room directory and join handoff.

Whole-operation failures are raised to the caller unchanged. A malformed room
record is signalled with SkippedRoom, which never leaves the normalizer.
"""


class DirectoryError(Exception):
    """Base class for room directory errors."""


class ConfigurationError(DirectoryError):
    """Static configuration is unusable (empty catalog, duplicate server ids)."""


class CryptoUnavailableError(DirectoryError):
    """The host cryptography backend cannot provide AES-CBC."""


class FeatureDisabledError(DirectoryError):
    """A feature switched off in the settings was requested."""

    def __init__(self, feature: str):
        super().__init__(f"Feature '{feature}' is disabled.")
        self.feature = feature


class RoomsApiError(DirectoryError):
    """
    The rooms API could not be reached or answered with a non-2xx status.

    str(error) is "<message> (<status>)" when a status is known.
    """

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(f"{message} ({status})" if status is not None else message)


class JoinTransportError(DirectoryError):
    """The localhost join endpoint could not be called."""

    UNREACHABLE = "JOIN_LOCALHOST_UNREACHABLE"
    ERROR = "JOIN_LOCALHOST_ERROR"

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class SkippedRoom(Exception):
    """A raw room record lacks a usable IP, port or game id."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

"""
Exception hierarchy for consistent error responses.

Every CassetteError carries the HTTP status it maps to. The handler
registered in cassette.api.app (and the middleware, for errors raised
before routing) renders them as:
    {"error": "<message>"}
"""

from fastapi import status


class ConfigError(Exception):
    """Unrecoverable startup configuration problem."""


class CassetteError(Exception):
    """Base application error with a default status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(CassetteError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Authentication with Spotify failed"


class StateMismatchError(AuthError):
    """Callback 'state' does not match the nonce stored in the session."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "OAuth state mismatch. Please log in again."


class DirectCallbackAccessError(AuthError):
    """Callback hit without a preceding authorization redirect."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The OAuth callback must not be accessed directly."


class AccessDeniedError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Spotify denied access"


class CSRFError(CassetteError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Failed verifying CSRF token"


class ProviderError(CassetteError):
    """A call to Spotify failed or returned something unusable."""

    default_message = "Spotify request failed"


class NoPlaybackStateError(ProviderError):
    default_message = "Could not read the current player state. Is something playing?"


class NoArtworkError(ProviderError):
    default_message = "The currently playing item has no artwork"


class NoDeviceError(ProviderError):
    default_message = "No (active) device available for playback"


class PlaybackCommandFailedError(ProviderError):
    default_message = "Spotify did not accept the playback command"


class SlotError(CassetteError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid slot"


class SlotOutOfRangeError(SlotError):
    default_message = "'slot' is not in the range of existing slots"


class InvalidSlotError(SlotError):
    default_message = "'slot' has to be an integer >= 0"


class NotFoundError(CassetteError):
    """No stored record for the user."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "There is no data stored for you"


class StorageError(CassetteError):
    default_message = "Could not access stored player states"


class SessionValueError(CassetteError):
    """A session value has an unexpected type."""

    def __init__(self, key: str, expected: type):
        super().__init__(f"Session value '{key}' is not of type {expected.__name__}")
        self.key = key

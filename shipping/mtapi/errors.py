"""
Error kinds raised by the MTAPI courier client.

Every failure the client can report derives from `CourierError`, so callers that
do not care about the distinction can catch a single type.
"""


class CourierError(Exception):
    """Base class for all MTAPI client failures."""


class ValidationError(CourierError):
    """
    One or more mandatory fields are missing or malformed.

    Raised before any network call. `errors` holds every message that was
    collected, not just the first one.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


class TransportError(CourierError):
    """A non-200 HTTP status or a network-level failure."""

    def __init__(self, detail, status_code=None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Request failed. Error: {detail}")


class ProviderError(CourierError):
    """The API answered 200 but did not return the expected `Shipment` field."""

    def __init__(self, error, error_level):
        self.error = error
        self.error_level = error_level
        super().__init__(f"Request failed. Error: {error}, Error Level: {error_level}")


class DecodeError(CourierError):
    """The response body could not be decoded."""

    def __init__(self, reason, text=None):
        self.reason = reason
        self.text = text
        super().__init__(f"Could not decode API response: {reason}")

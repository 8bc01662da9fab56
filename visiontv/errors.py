"""Exceptions raised by VisionTV providers and parsers.

Transport failures are not wrapped: ``httpx.HTTPError`` reaches the caller
unchanged.
"""


class VisionError(Exception):
    """Base class for all VisionTV errors."""


class ArticleNotFoundError(VisionError):
    """The page has no content container to parse."""

    def __init__(self, message: str = "Can not find article. Try to reload the page or try another search query."):
        super().__init__(message)


class DecodeError(VisionError):
    """A whole payload could not be decoded into usable data."""


class PlayerDataDecodeError(DecodeError):
    """Filmix player-data response has an unexpected shape."""


class InitCallNotFoundError(DecodeError):
    """Player init call is missing from the page."""

    def __init__(self, message: str = "sof.tv.initCDNMoviesEvents not found in HTML"):
        super().__init__(message)


class InitJSONNotFoundError(DecodeError):
    """Player init call has no JSON object argument."""

    def __init__(self, message: str = "JSON object not found in initCDNMoviesEvents call"):
        super().__init__(message)


class InitJSONDecodeError(DecodeError):
    """Player init call JSON argument is not valid JSON."""

    def __init__(self, message: str = "Failed to decode JSON from initCDNMoviesEvents"):
        super().__init__(message)


class AjaxDecodeError(DecodeError):
    """Translator switch response is not valid JSON."""


class RemoteRejectionError(VisionError):
    """The site answered but reported a failure."""


class CredentialsExpiredError(VisionError):
    """Configured session credentials are past their expiry and need a refresh."""

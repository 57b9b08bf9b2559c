"""
Error conditions for the CEBA Mapper.

None of these are fatal to the application: each one is caught close to
where it happens and turned into a log entry or a status message.
"""

from typing import Optional


class CebaMapperError(Exception):
    """Base class for all CEBA Mapper conditions."""


class FeedLoadError(CebaMapperError):
    """The facility feed could not be fetched or decoded."""


class RowSkipped(CebaMapperError):
    """
    A feed row was dropped during parsing.

    Kept as a value in the load report rather than raised.
    """

    def __init__(self, line_number: int, reason: str, row: str):
        self.line_number = line_number
        self.reason = reason
        self.row = row
        super().__init__(f"Row {line_number} skipped ({reason}): {row!r}")


class InputMissing(CebaMapperError):
    """The district search input was empty."""


class StoreNotReady(CebaMapperError):
    """A search was attempted before the feed finished loading."""


class NoMatches(CebaMapperError):
    """No facility district matched the search input."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"No facilities found for district '{query}'")


class GeocodeFailure(CebaMapperError):
    """A single facility could not be located."""

    def __init__(self, query: str, reason: Optional[str] = None):
        self.query = query
        self.reason = reason
        message = f"Could not geocode '{query}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NoneGeocoded(CebaMapperError):
    """A search finished without locating any facility."""

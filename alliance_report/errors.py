"""Exception types raised by the alliance report pipeline.

The compute engine itself only raises ``MalformedRecordError`` and the
catalog errors; network and file failures belong to the record source and
publishers and are wrapped so the CLI can tell them apart.
"""

from __future__ import annotations


class AllianceReportError(Exception):
    """Base class for every error raised by this package."""


class MalformedRecordError(AllianceReportError, ValueError):
    """Raised when a roster record is missing a field or has an invalid power."""

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        if index is not None:
            message = f"record #{index}: {message}"
        super().__init__(message)


class CatalogError(AllianceReportError, ValueError):
    """Raised when the team catalog cannot be loaded or a lookup fails."""


class EmptyCategoryError(CatalogError):
    """Raised at catalog-load time for a category that defines no teams."""


class RecordSourceError(AllianceReportError):
    """Raised when the roster records cannot be fetched or decoded."""


class PublishError(AllianceReportError):
    """Raised when a finished report cannot be written to its sink."""

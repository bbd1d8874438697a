"""Error hierarchy raised by the resolver and the import pipeline.

Configuration and mapping errors are fatal and raised before any row is read.
Bind and save errors never leave the row boundary of the loader: they are turned
into row failures. ``PipelineFatalError`` aborts the whole run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rowloader.config.errors import ConfigurationError as _SettingsError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .report import ImportReport


class RowLoaderError(Exception):
    """Base class for all loader errors."""


class ConfigurationError(RowLoaderError, _SettingsError):
    """Raised when a mapping or run is configured in an unusable way."""


class InvalidOperatorKindError(ConfigurationError):
    """Raised when a method detail is built with an unsupported operator kind."""


class MissingMandatoryColumnError(ConfigurationError):
    """Raised when the header lacks one or more mandatory columns."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Mandatory column(s) missing from header: {', '.join(self.missing)}")


class MappingError(RowLoaderError):
    """Raised when a header column cannot be bound to an operator."""

    def __init__(self, column: str, message: str | None = None) -> None:
        self.column = column
        super().__init__(message or f"No operator found for column {column!r}")


class BindError(RowLoaderError):
    """Raised when a cell cannot be coerced or assigned to its operator."""


class SaveError(RowLoaderError):
    """Raised when the backend rejects an instance."""

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages = tuple(messages)
        super().__init__("; ".join(self.messages) or "Save rejected by backend")


class PipelineFatalError(RowLoaderError):
    """Raised when a run must abort; the partial report is attached."""

    report: ImportReport | None = None


class BackendUnavailableError(PipelineFatalError):
    """Raised by stores when the persistence backend cannot be reached."""

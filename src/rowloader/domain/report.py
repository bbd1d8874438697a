"""Row outcomes and the run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class RowSuccess:
    row_index: int
    instance: object


@dataclass(frozen=True, slots=True)
class RowFailure:
    row_index: int
    row: tuple[object, ...]
    error: str
    messages: tuple[str, ...] = ()
    retryable: bool = True


type RowOutcome = RowSuccess | RowFailure


class RowFailureDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_index: int
    row: list[str | None]
    error: str
    messages: list[str] = Field(default_factory=list)
    retryable: bool = True


class ImportSummary(BaseModel):
    """Serialisable view of an :class:`ImportReport`."""

    model_config = ConfigDict(frozen=True)

    processed: int
    succeeded: int
    failed: int
    dry_run: bool = False
    committed: bool = False
    failures: list[RowFailureDetail] = Field(default_factory=list)

    def to_text(self) -> str:
        status = "dry run, no data persisted" if self.dry_run else (
            "committed" if self.committed else "not committed"
        )
        lines = [
            f"Processed {self.processed} rows: {self.succeeded} succeeded, "
            f"{self.failed} failed ({status})"
        ]
        for failure in self.failures:
            detail = "; ".join(failure.messages) or failure.error
            lines.append(f"  row {failure.row_index}: {detail} {failure.row}")
        return "\n".join(lines)


def _cell_text(value: object) -> str | None:
    return None if value is None else str(value)


@dataclass(slots=True)
class ImportReport:
    """Mutable counters for one run, filled row by row by the loader."""

    processed: int = 0
    successes: list[RowSuccess] = field(default_factory=list[RowSuccess])
    failures: list[RowFailure] = field(default_factory=list[RowFailure])
    dry_run: bool = False
    committed: bool = False

    @property
    def succeeded(self) -> int:
        return len(self.successes)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def loaded_objects(self) -> list[object]:
        return [success.instance for success in self.successes]

    def reset(self) -> None:
        self.processed = 0
        self.successes.clear()
        self.failures.clear()
        self.committed = False

    def increment_processed(self) -> None:
        self.processed += 1

    def record_success(self, instance: object, *, row_index: int = -1) -> None:
        self.successes.append(RowSuccess(row_index=row_index, instance=instance))

    def record_failure(  # noqa: PLR0913
        self,
        row: Sequence[object],
        retryable: bool,
        *,
        row_index: int = -1,
        error: str = "",
        messages: Sequence[str] = (),
    ) -> None:
        self.failures.append(
            RowFailure(
                row_index=row_index,
                row=tuple(row),
                error=error,
                messages=tuple(messages),
                retryable=retryable,
            )
        )

    def record(self, outcome: RowOutcome) -> None:
        if isinstance(outcome, RowSuccess):
            self.record_success(outcome.instance, row_index=outcome.row_index)
        else:
            self.record_failure(
                outcome.row,
                outcome.retryable,
                row_index=outcome.row_index,
                error=outcome.error,
                messages=outcome.messages,
            )

    def render(self) -> ImportSummary:
        return ImportSummary(
            processed=self.processed,
            succeeded=self.succeeded,
            failed=self.failed,
            dry_run=self.dry_run,
            committed=self.committed,
            failures=[
                RowFailureDetail(
                    row_index=failure.row_index,
                    row=[_cell_text(cell) for cell in failure.row],
                    error=failure.error,
                    messages=list(failure.messages),
                    retryable=failure.retryable,
                )
                for failure in self.failures
            ],
        )

"""Per-row outcomes and the import report returned to callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

from .import_rows import DecodedRecord


@dataclass(frozen=True, slots=True)
class RowSuccess:
    """A row that decoded and resolved its category."""

    line_number: int
    record: DecodedRecord
    category_id: int


@dataclass(frozen=True, slots=True)
class RowFailure:
    """A row rejected during decoding or category resolution."""

    line_number: int
    fields: Mapping[str, str]
    error: str


RowOutcome = Union[RowSuccess, RowFailure]


@dataclass(frozen=True, slots=True)
class ImportErrorEntry:
    """One rejected line as shown to the user."""

    line: int
    data: dict[str, str]
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"line": self.line, "data": dict(self.data), "error": self.error}


@dataclass(frozen=True, slots=True)
class ImportReport:
    """Summary of one import run.

    ``imported_count + error_count == total_lines_read`` always holds; blank
    lines are skipped before counting and appear nowhere in the report.
    """

    message: str
    total_lines_read: int
    imported_count: int
    error_count: int
    errors: tuple[ImportErrorEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the JSON field names exposed to API clients."""

        return {
            "message": self.message,
            "totalLinesRead": self.total_lines_read,
            "importedCount": self.imported_count,
            "errorCount": self.error_count,
            "errors": [entry.to_dict() for entry in self.errors],
        }


def build_report(
    outcomes: Iterable[RowOutcome], *, imported_count: int, entity_name: str
) -> ImportReport:
    """Assemble the report for a finished run.

    Errors are ordered by line number, not by the order in which the
    concurrent row tasks happened to finish.
    """

    outcome_list = list(outcomes)
    failures = sorted(
        (outcome for outcome in outcome_list if isinstance(outcome, RowFailure)),
        key=lambda failure: failure.line_number,
    )
    total = len(outcome_list)
    if imported_count + len(failures) != total:
        raise ValueError(
            f"Inconsistent import counts: {imported_count} imported + "
            f"{len(failures)} errors != {total} lines read"
        )

    errors = tuple(
        ImportErrorEntry(line=failure.line_number, data=dict(failure.fields), error=failure.error)
        for failure in failures
    )
    message = (
        f"Import finished. {imported_count} {entity_name}(s) imported. "
        f"{len(errors)} error(s)."
    )
    return ImportReport(
        message=message,
        total_lines_read=total,
        imported_count=imported_count,
        error_count=len(errors),
        errors=errors,
    )

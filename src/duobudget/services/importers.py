"""CSV import orchestration for expenses and revenues.

One run reads an uploaded buffer, decodes and resolves every row on a worker
pool while the reader keeps going, waits for all rows to settle, then writes
every successful row in one batch. Rows fail individually; the run as a whole
only fails when the upload cannot be tokenized, the batch write fails, or the
configured timeout expires.
"""

from __future__ import annotations

import csv
import io
import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..config import BaseConfig
from ..domain.repositories.category import CategoryRepository
from ..domain.repositories.record import RecordRepository
from ..infra.database import SessionFactory
from ..infra.repositories import (
    SQLModelExpenseCategoryRepository,
    SQLModelExpenseRepository,
    SQLModelRevenueCategoryRepository,
    SQLModelRevenueRepository,
)
from ..models.user import User
from .category_resolver import CategoryResolutionError, CategoryResolver
from .import_headers import (
    EXPENSE_HEADER_ALIASES,
    REVENUE_HEADER_ALIASES,
    HeaderMapper,
    build_header_mapper,
    map_header_row,
)
from .import_report import ImportReport, RowFailure, RowOutcome, RowSuccess, build_report
from .import_rows import DecodeError, RecordKind, decode_row, is_blank_row

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    RecordKind.EXPENSE: EXPENSE_HEADER_ALIASES,
    RecordKind.REVENUE: REVENUE_HEADER_ALIASES,
}
ENTITY_NAMES = {RecordKind.EXPENSE: "expense", RecordKind.REVENUE: "revenue"}

ImportKind = RecordKind


class HeaderDialect(str, Enum):
    """CSV flavours; each one fixes the column delimiter."""

    BANK_EXPORT = "bank_export"
    GENERIC = "generic"


class ImportState(str, Enum):
    PRIMING = "priming"
    STREAMING = "streaming"
    DRAINING = "draining"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class IngestionError(RuntimeError):
    """Fatal import failure: nothing from the run was written."""


class ImportStreamError(IngestionError):
    """The upload could not be decoded or tokenized as CSV."""


class ImportWriteError(IngestionError):
    """The batch insert of decoded rows failed."""


class UnknownOwnerError(IngestionError):
    """The import targets a user that does not exist."""


class ImportTimeoutError(IngestionError):
    """Row processing did not settle before the configured deadline."""


@dataclass(frozen=True)
class ImportRequest:
    """Everything one import run needs; built per upload and then discarded."""

    owner_id: int
    kind: RecordKind
    raw_bytes: bytes
    dialect: HeaderDialect = HeaderDialect.BANK_EXPORT


@dataclass(frozen=True, slots=True)
class RawRow:
    """A non-blank data row keyed by canonical field name.

    ``line_number`` is 1-based and counts data rows only: the header and
    blank rows do not take a number.
    """

    line_number: int
    fields: dict[str, str]


def _row_fields(headers: Sequence[str], values: Sequence[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for index, value in enumerate(values):
        name = headers[index] if index < len(headers) else f"_{index}"
        # two raw columns can share a canonical name; keep the first filled one
        if not fields.get(name):
            fields[name] = value
    for name in headers:
        fields.setdefault(name, "")
    return fields


def iter_raw_rows(raw_bytes: bytes, *, delimiter: str, mapper: HeaderMapper) -> Iterator[RawRow]:
    """Yield the data rows of an uploaded CSV buffer, header mapped once.

    Raises:
        ImportStreamError: when the buffer is not UTF-8 or not valid CSV.
    """

    try:
        text = raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportStreamError(f"CSV upload is not valid UTF-8: {exc}") from exc

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    headers: list[str] | None = None
    line_number = 0
    try:
        for values in reader:
            if not any(value.strip() for value in values):
                continue
            if headers is None:
                headers = map_header_row(values, mapper)
                logger.debug(f"CSV headers mapped: {values} -> {headers}")
                continue
            fields = _row_fields(headers, values)
            if is_blank_row(fields):
                continue
            line_number += 1
            yield RawRow(line_number=line_number, fields=fields)
    except csv.Error as exc:
        raise ImportStreamError(
            f"Malformed CSV near physical line {reader.line_num}: {exc}"
        ) from exc


class CsvImporter:
    """Runs CSV imports; ``state`` reflects the phase of the latest run.

    One run at a time per instance. The executor, when given, is shared and
    left running; otherwise each run owns a thread pool sized by
    ``IMPORT_MAX_WORKERS``.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        config: Optional[BaseConfig] = None,
        *,
        executor: Optional[Executor] = None,
        category_repository: Optional[CategoryRepository] = None,
        record_repository: Optional[RecordRepository] = None,
    ):
        self.session_factory = session_factory
        self.config = config or BaseConfig()
        self.executor = executor
        self.category_repository = category_repository
        self.record_repository = record_repository
        self.state: Optional[ImportState] = None
        self.last_resolver: Optional[CategoryResolver] = None

    def run(self, request: ImportRequest) -> ImportReport:
        """Import one buffer and return its report.

        Raises:
            IngestionError: on any fatal failure; the state ends ``FAILED``.
        """

        entity = ENTITY_NAMES[request.kind]
        deadline = self._deadline()
        logger.info(
            f"Starting {entity} import for user {request.owner_id} "
            f"({len(request.raw_bytes)} bytes, dialect={request.dialect.value})",
            extra={"owner_id": request.owner_id, "kind": entity},
        )
        try:
            self._transition(ImportState.PRIMING)
            self._check_size(request)
            category_repo, record_repo = self._repositories_for(request.kind)
            resolver = CategoryResolver(
                category_repo,
                owner_id=request.owner_id,
                conflict_backoff=self.config.IMPORT_CONFLICT_BACKOFF,
            )
            self.last_resolver = resolver
            try:
                self._check_owner(request.owner_id)
                resolver.prime()
            except SQLAlchemyError as exc:
                raise IngestionError(f"Could not load owner or existing categories: {exc}") from exc

            self._transition(ImportState.STREAMING)
            outcomes = self._process_stream(request, resolver, deadline)

            self._transition(ImportState.WRITING)
            imported = self._write(request, outcomes, record_repo)
            report = build_report(outcomes, imported_count=imported, entity_name=entity)
        except Exception:
            self._transition(ImportState.FAILED)
            raise

        self._transition(ImportState.DONE)
        logger.info(
            f"{entity.capitalize()} import finished: {report.total_lines_read} lines, "
            f"{report.imported_count} imported, {report.error_count} errors, "
            f"{resolver.created_count} categories created",
            extra={"owner_id": request.owner_id, "kind": entity},
        )
        return report

    def run_statement(
        self,
        raw_bytes: bytes,
        *,
        owner_id: int,
        dialect: HeaderDialect = HeaderDialect.BANK_EXPORT,
    ) -> dict[str, ImportReport]:
        """Import one bank statement as expenses, then as revenues."""

        return {
            "expenses": self.run(ImportRequest(owner_id, RecordKind.EXPENSE, raw_bytes, dialect)),
            "revenues": self.run(ImportRequest(owner_id, RecordKind.REVENUE, raw_bytes, dialect)),
        }

    def _transition(self, state: ImportState) -> None:
        logger.debug(f"Import state {self.state.value if self.state else 'new'} -> {state.value}")
        self.state = state

    def _deadline(self) -> Optional[float]:
        timeout = self.config.import_timeout
        return time.monotonic() + timeout if timeout else None

    def _check_owner(self, owner_id: int) -> None:
        with self.session_factory() as session:
            if session.get(User, owner_id) is None:
                raise UnknownOwnerError(f"User {owner_id} does not exist")

    def _check_size(self, request: ImportRequest) -> None:
        limit = self.config.MAX_UPLOAD_BYTES
        if limit and len(request.raw_bytes) > limit:
            raise ImportStreamError(
                f"CSV upload is {len(request.raw_bytes)} bytes; the limit is {limit} bytes"
            )

    def _repositories_for(self, kind: RecordKind) -> tuple[CategoryRepository, RecordRepository]:
        if kind is RecordKind.EXPENSE:
            category_repo = self.category_repository or SQLModelExpenseCategoryRepository(
                self.session_factory
            )
            record_repo = self.record_repository or SQLModelExpenseRepository(self.session_factory)
        else:
            category_repo = self.category_repository or SQLModelRevenueCategoryRepository(
                self.session_factory
            )
            record_repo = self.record_repository or SQLModelRevenueRepository(self.session_factory)
        return category_repo, record_repo

    def _process_stream(
        self,
        request: ImportRequest,
        resolver: CategoryResolver,
        deadline: Optional[float],
    ) -> list[RowOutcome]:
        delimiter = self.config.delimiter_for(request.dialect.value)
        mapper = build_header_mapper(HEADER_ALIASES[request.kind])
        owns_executor = self.executor is None
        executor = self.executor or ThreadPoolExecutor(
            max_workers=self.config.IMPORT_MAX_WORKERS, thread_name_prefix="csv-import"
        )
        futures: list[Future[RowOutcome]] = []
        try:
            try:
                for raw_row in iter_raw_rows(request.raw_bytes, delimiter=delimiter, mapper=mapper):
                    if deadline is not None and time.monotonic() > deadline:
                        raise ImportTimeoutError(
                            f"Import timed out while reading line {raw_row.line_number}"
                        )
                    futures.append(
                        executor.submit(self._process_row, raw_row, request.kind, resolver)
                    )
            except IngestionError as exc:
                # rows not yet started never run; running ones settle unless the deadline passed
                for future in futures:
                    future.cancel()
                if not isinstance(exc, ImportTimeoutError):
                    wait(futures)
                raise

            self._transition(ImportState.DRAINING)
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _done, not_done = wait(futures, timeout=remaining)
            if not_done:
                for future in not_done:
                    future.cancel()
                raise ImportTimeoutError(
                    f"Import timed out with {len(not_done)} of {len(futures)} rows unsettled"
                )
        finally:
            if owns_executor:
                executor.shutdown(wait=False, cancel_futures=True)

        return [future.result() for future in futures]

    def _process_row(
        self, raw_row: RawRow, kind: RecordKind, resolver: CategoryResolver
    ) -> RowOutcome:
        try:
            record = decode_row(raw_row.fields, kind)
            category_id = resolver.resolve(record.category_name)
        except (DecodeError, CategoryResolutionError) as exc:
            logger.debug(
                f"Line {raw_row.line_number} rejected: {exc}",
                extra={"line_number": raw_row.line_number},
            )
            return RowFailure(raw_row.line_number, raw_row.fields, str(exc))
        except Exception as exc:
            logger.warning(
                f"Line {raw_row.line_number} failed unexpectedly: {exc}", exc_info=True
            )
            return RowFailure(raw_row.line_number, raw_row.fields, f"unexpected error: {exc}")
        return RowSuccess(raw_row.line_number, record, category_id)

    def _write(
        self,
        request: ImportRequest,
        outcomes: Sequence[RowOutcome],
        record_repo: RecordRepository,
    ) -> int:
        models = [
            outcome.record.to_model(owner_id=request.owner_id, category_id=outcome.category_id)
            for outcome in outcomes
            if isinstance(outcome, RowSuccess)
        ]
        if not models:
            return 0
        try:
            return record_repo.bulk_insert(models)
        except SQLAlchemyError as exc:
            raise ImportWriteError(
                f"Batch insert of {len(models)} {ENTITY_NAMES[request.kind]}s failed: {exc}"
            ) from exc


def import_csv(
    raw_bytes: bytes,
    *,
    owner_id: int,
    kind: RecordKind,
    session_factory: SessionFactory,
    dialect: HeaderDialect = HeaderDialect.BANK_EXPORT,
    config: Optional[BaseConfig] = None,
) -> ImportReport:
    """Run a single import with a fresh importer."""

    importer = CsvImporter(session_factory, config)
    return importer.run(ImportRequest(owner_id, kind, raw_bytes, dialect))


def import_statement(
    raw_bytes: bytes,
    *,
    owner_id: int,
    session_factory: SessionFactory,
    dialect: HeaderDialect = HeaderDialect.BANK_EXPORT,
    config: Optional[BaseConfig] = None,
) -> dict[str, ImportReport]:
    """Import one upload as both expenses and revenues.

    Bank statements carry debits and credits in one file, so each kind picks
    its own amount column from the same buffer.
    """

    return CsvImporter(session_factory, config).run_statement(
        raw_bytes, owner_id=owner_id, dialect=dialect
    )

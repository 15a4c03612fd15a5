from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from ..models.field_spec import SYSTEM_FIELDS, FieldSpec
from ..models.import_result import ImportResult, ImportState
from ..models.typed_row import RawRow, TypedRow
from .coercion import coerce_value, is_blank, resolve_default
from .errors import (
    CoercionError,
    FieldNotFoundError,
    HeaderNotValidatedError,
    NoValidDataError,
    TableImportError,
)
from .header import validate_header_set

"""Typed row importer: header row + raw rows -> TypedRow sequence.

A plain sequential state machine, created fresh per import call:

    AWAITING_HEADER --accept_header--> PARSING --finish--> DONE
           |                              |
           +------------- error ----------+--> FAILED

Rows beyond ``max_rows`` are dropped silently (counted, never an error).
Nothing is handed to a sink from here; the caller receives the complete
ImportResult or an exception, so there is no partial commit.
"""

__all__ = [
    "TypedRowImporter",
    "import_typed_rows",
]

logger = logging.getLogger(__name__)


class TypedRowImporter:
    def __init__(self, fields: Sequence[FieldSpec], owner_uid: str | None, max_rows: int) -> None:
        self.fields = list(fields)
        self.owner_uid = owner_uid
        self.max_rows = max(1, max_rows)
        self.state = ImportState.AWAITING_HEADER
        self.header: list[str] = []
        self._rows: list[TypedRow] = []
        self._dropped = 0
        self._spec_by_name: dict[str, FieldSpec] = {}
        self._required: set[str] = set()

    @property
    def accepted(self) -> int:
        return len(self._rows)

    @property
    def dropped(self) -> int:
        return self._dropped

    def _fail(self, exc: TableImportError) -> TableImportError:
        self.state = ImportState.FAILED
        return exc

    def accept_header(self, header: Sequence[str]) -> list[str]:
        """Validate the header row and precompute the name -> FieldSpec map."""
        if self.state is not ImportState.AWAITING_HEADER:
            raise RuntimeError(f"header already processed (state={self.state.value})")
        try:
            self.header = validate_header_set(self.fields, header)
        except TableImportError:
            self.state = ImportState.FAILED
            raise
        self._spec_by_name = {f.name: f for f in self.fields if f.name not in SYSTEM_FIELDS}
        self._required = {name for name, f in self._spec_by_name.items() if f.required}
        self.state = ImportState.PARSING
        logger.debug("header accepted columns=%s required=%s", self.header, sorted(self._required))
        return self.header

    def parse_row(self, row: RawRow) -> TypedRow | None:
        """Coerce one raw row. Returns None when the row cap drops it."""
        if self.state is ImportState.AWAITING_HEADER:
            raise self._fail(HeaderNotValidatedError())
        if self.state is not ImportState.PARSING:
            raise RuntimeError(f"cannot parse rows in state={self.state.value}")
        if self.accepted >= self.max_rows:
            self._dropped += 1
            return None

        values: dict[str, Any] = {}
        for index, name in enumerate(self.header):
            spec = self._spec_by_name.get(name)
            if spec is None:
                raise self._fail(FieldNotFoundError(name, row=row.row_number))
            raw = row.cell(index)
            if raw is None or is_blank(raw):
                values[name] = resolve_default(spec, name in self._required)
                continue
            try:
                values[name] = coerce_value(raw, spec.type)
            except CoercionError as e:
                raise self._fail(e.at(row.row_number, name)) from e

        typed = TypedRow(row_number=row.row_number, owner_uid=self.owner_uid, values=values)
        self._rows.append(typed)
        return typed

    def finish(self) -> ImportResult:
        if self.state is ImportState.AWAITING_HEADER:
            raise self._fail(HeaderNotValidatedError())
        if self.state is not ImportState.PARSING:
            raise RuntimeError(f"cannot finish in state={self.state.value}")
        if not self._rows:
            raise self._fail(NoValidDataError("No valid data found in file, please check the Excel data."))
        self.state = ImportState.DONE
        if self._dropped:
            logger.info("row cap reached max_rows=%d dropped=%d", self.max_rows, self._dropped)
        return ImportResult(
            header=tuple(self.header),
            rows=tuple(self._rows),
            accepted_rows=len(self._rows),
            dropped_rows=self._dropped,
            state=self.state,
        )

    def run(self, header: Sequence[str], rows: Iterable[RawRow]) -> ImportResult:
        self.accept_header(header)
        for row in rows:
            self.parse_row(row)
        return self.finish()


def import_typed_rows(
    fields: Sequence[FieldSpec],
    header: Sequence[str],
    rows: Iterable[RawRow],
    owner_uid: str | None,
    max_rows: int,
) -> ImportResult:
    """One-shot convenience wrapper around TypedRowImporter."""
    return TypedRowImporter(fields, owner_uid, max_rows).run(header, rows)

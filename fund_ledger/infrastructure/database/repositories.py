"""Data access layer for fund records"""

import dataclasses
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fund_ledger.domain.exceptions import RepositoryFailure
from fund_ledger.domain.models import RecordKind
from fund_ledger.domain.repository import RECORD_TYPES, Filters, RecordRepository, kind_of
from fund_ledger.infrastructure.database.models import (
    Base,
    FundSettingsRecord,
    LoanRecord,
    MemberRecord,
    PaymentRecord,
    TransactionRecord,
)
from fund_ledger.infrastructure.observability.metrics import repository_failures_counter

ORM_MODELS = {
    RecordKind.FUND_SETTINGS: FundSettingsRecord,
    RecordKind.MEMBER: MemberRecord,
    RecordKind.LOAN: LoanRecord,
    RecordKind.TRANSACTION: TransactionRecord,
    RecordKind.PAYMENT: PaymentRecord,
}


class SqlAlchemyRecordRepository(RecordRepository):
    """
    RecordRepository backed by a SQLAlchemy session.

    Rows are returned as domain dataclasses. Each dataclass handed out is
    tracked against its row, and tracked changes are written back before
    every query and on save(), so aggregates always see pending mutations.

    Queries re-read rows from the database and copy them onto the tracked
    dataclasses, so a record fetched again picks up changes other sessions
    have committed since it was first loaded.
    """

    def __init__(self, db: Session):
        self.db = db
        self._tracked: Dict[Tuple[RecordKind, uuid.UUID], Tuple[Any, Base]] = {}

    def _fail(self, operation: str, error: Exception) -> RepositoryFailure:
        repository_failures_counter.labels(operation=operation).inc()
        logging.error(f"Repository {operation} failed: {error}", extra={"operation": operation})
        return RepositoryFailure(f"Repository {operation} failed: {error}")

    def _column(self, kind: RecordKind, field_name: str):
        try:
            return getattr(ORM_MODELS[kind], field_name)
        except AttributeError as e:
            raise self._fail("query", e) from e

    def _conditions(self, kind: RecordKind, filters: Optional[Filters]) -> list:
        return [self._column(kind, name) == value for name, value in (filters or {}).items()]

    @staticmethod
    def _copy_row(record: Any, row: Base) -> None:
        for f in dataclasses.fields(record):
            setattr(record, f.name, getattr(row, f.name))

    def _to_record(self, kind: RecordKind, row: Base) -> Any:
        key = (kind, row.id)
        if key in self._tracked:
            record = self._tracked[key][0]
            self._copy_row(record, row)
        else:
            record_type = RECORD_TYPES[kind]
            record = record_type(**{f.name: getattr(row, f.name) for f in dataclasses.fields(record_type)})
        self._tracked[key] = (record, row)
        return record

    def _prune(self) -> None:
        """Forget records whose rows a rollback removed from the session"""
        self._tracked = {key: entry for key, entry in self._tracked.items() if entry[1] in self.db}

    def _sync(self) -> None:
        """Copy tracked dataclass state onto rows and flush"""
        for record, row in self._tracked.values():
            for f in dataclasses.fields(record):
                value = getattr(record, f.name)
                # Unchanged fields stay out of the UPDATE
                if getattr(row, f.name) != value:
                    setattr(row, f.name, value)
        self.db.flush()

    def sum(self, kind: RecordKind, field_name: str, filters: Optional[Filters] = None) -> float:
        column = self._column(kind, field_name)
        stmt = select(func.coalesce(func.sum(column), 0)).where(*self._conditions(kind, filters))
        try:
            self._sync()
            return float(self.db.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise self._fail("sum", e) from e

    def find(
        self,
        kind: RecordKind,
        filters: Optional[Filters] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        stmt = (
            select(ORM_MODELS[kind])
            .where(*self._conditions(kind, filters))
            .execution_options(populate_existing=True)
        )
        if sort:
            column = self._column(kind, sort.lstrip("-"))
            stmt = stmt.order_by(column.desc() if sort.startswith("-") else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            self._sync()
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise self._fail("find", e) from e
        return [self._to_record(kind, row) for row in rows]

    def add(self, record: Any) -> Any:
        kind = kind_of(record)
        row = ORM_MODELS[kind](**{f.name: getattr(record, f.name) for f in dataclasses.fields(record)})
        self.db.add(row)
        self._tracked[(kind, record.id)] = (record, row)
        return record

    def delete(self, record: Any) -> None:
        kind = kind_of(record)
        entry = self._tracked.pop((kind, record.id), None)
        try:
            row = entry[1] if entry else self.db.get(ORM_MODELS[kind], record.id)
            if row is None:
                return
            if row in self.db.new:
                self.db.expunge(row)
            else:
                self.db.delete(row)
        except SQLAlchemyError as e:
            raise self._fail("delete", e) from e

    def refresh(self, record: Any) -> Any:
        entry = self._tracked.get((kind_of(record), record.id))
        if entry is None:
            return record
        row = entry[1]
        try:
            self._sync()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("refresh", e) from e
        self._copy_row(record, row)
        return record

    def fetch_or_create_singleton(self, kind: RecordKind, defaults: Filters) -> Any:
        existing = self.find(kind, limit=1)
        if existing:
            return existing[0]

        record = self.add(RECORD_TYPES[kind](**defaults))
        try:
            self._sync()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self._prune()
            raise self._fail("fetch_or_create", e) from e
        return record

    def save(self) -> None:
        try:
            self._sync()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self._prune()
            raise self._fail("save", e) from e

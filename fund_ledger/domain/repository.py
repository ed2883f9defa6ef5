"""Record repository contract consumed by the ledger engine"""

import abc
import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional

from fund_ledger.domain.exceptions import NotFound, RepositoryFailure
from fund_ledger.domain.models import (
    FundSettings,
    Loan,
    Member,
    Payment,
    RecordKind,
    Transaction,
)

Filters = Mapping[str, Any]

RECORD_TYPES = {
    RecordKind.FUND_SETTINGS: FundSettings,
    RecordKind.MEMBER: Member,
    RecordKind.LOAN: Loan,
    RecordKind.TRANSACTION: Transaction,
    RecordKind.PAYMENT: Payment,
}


def kind_of(record: Any) -> RecordKind:
    """Resolve the record kind for a domain dataclass instance"""
    for kind, record_type in RECORD_TYPES.items():
        if isinstance(record, record_type):
            return kind
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


class RecordRepository(abc.ABC):
    """
    List/sum capability over fund records.

    Filters are equality matches on record fields. Sort is a field name,
    prefixed with "-" for descending order. Implementations must return 0
    from sum() for an empty match set and raise RepositoryFailure on I/O errors.
    """

    @abc.abstractmethod
    def sum(self, kind: RecordKind, field_name: str, filters: Optional[Filters] = None) -> float:
        """Aggregate sum of field_name over matching records"""

    @abc.abstractmethod
    def find(
        self,
        kind: RecordKind,
        filters: Optional[Filters] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Matching records, optionally sorted and limited"""

    @abc.abstractmethod
    def add(self, record: Any) -> Any:
        """Stage a new record for the next save()"""

    @abc.abstractmethod
    def delete(self, record: Any) -> None:
        """Stage removal of a record for the next save()"""

    @abc.abstractmethod
    def refresh(self, record: Any) -> Any:
        """Reload a record from the store; its pending changes are written first"""

    @abc.abstractmethod
    def fetch_or_create_singleton(self, kind: RecordKind, defaults: Filters) -> Any:
        """Return the only record of kind, creating it from defaults if absent"""

    @abc.abstractmethod
    def save(self) -> None:
        """Commit pending mutations"""

    def get(self, kind: RecordKind, record_id: uuid.UUID) -> Any:
        records = self.find(kind, {"id": record_id}, limit=1)
        if not records:
            raise NotFound(kind.value, record_id)
        return records[0]

    def count(self, kind: RecordKind, filters: Optional[Filters] = None) -> int:
        return len(self.find(kind, filters))


class InMemoryRecordRepository(RecordRepository):
    """
    Repository over an in-memory view of records.

    Records are held by reference, so mutations made by the engine are
    visible to later aggregations. save() snapshots the committed state.
    """

    def __init__(self, records: Optional[List[Any]] = None):
        self._records: Dict[RecordKind, List[Any]] = {kind: [] for kind in RecordKind}
        self.save_count = 0
        self.committed: Dict[RecordKind, List[Any]] = {}
        for record in records or []:
            self.add(record)

    def _matching(self, kind: RecordKind, filters: Optional[Filters]) -> List[Any]:
        records = self._records[kind]
        if not filters:
            return list(records)
        try:
            return [
                record for record in records
                if all(getattr(record, name) == value for name, value in filters.items())
            ]
        except AttributeError as e:
            raise RepositoryFailure(f"Unknown field in filter for {kind.value}: {e}") from e

    def sum(self, kind: RecordKind, field_name: str, filters: Optional[Filters] = None) -> float:
        try:
            return float(sum(getattr(record, field_name) or 0 for record in self._matching(kind, filters)))
        except AttributeError as e:
            raise RepositoryFailure(f"Unknown field {field_name} for {kind.value}") from e

    def find(
        self,
        kind: RecordKind,
        filters: Optional[Filters] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        records = self._matching(kind, filters)
        if sort:
            field_name = sort.lstrip("-")
            try:
                records.sort(key=lambda r: getattr(r, field_name), reverse=sort.startswith("-"))
            except (AttributeError, TypeError) as e:
                raise RepositoryFailure(f"Cannot sort {kind.value} by {field_name}: {e}") from e
        if limit is not None:
            records = records[:limit]
        return records

    def add(self, record: Any) -> Any:
        self._records[kind_of(record)].append(record)
        return record

    def delete(self, record: Any) -> None:
        records = self._records[kind_of(record)]
        records[:] = [r for r in records if r is not record]

    def refresh(self, record: Any) -> Any:
        # Records are shared by reference, so they are always current
        return record

    def fetch_or_create_singleton(self, kind: RecordKind, defaults: Filters) -> Any:
        existing = self._records[kind]
        if existing:
            return existing[0]
        return self.add(RECORD_TYPES[kind](**defaults))

    def save(self) -> None:
        self.committed = {kind: copy.deepcopy(records) for kind, records in self._records.items()}
        self.save_count += 1

import asyncio
import copy
from logging import LoggerAdapter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from async_key_model.base.exceptions import KeyAlreadyExistsException, StoreError
from async_key_model.base.filter_expression import FilterExpression
from async_key_model.base.interfaces import Record, TableClient, Transaction
from async_key_model.base.query import FindOptions


def _sort_value(value: Any) -> Tuple[bool, Any]:
    """Sort key placing missing/None values first."""
    return (value is not None, value)


class MemoryTableClient(TableClient):
    """
    Table client keeping every table as an in-process list of records.

    Records keep insertion order. When ``key_field`` is set, inserts without
    a key get the next integer key of the table and duplicate keys are
    rejected. Transaction handles are not interpreted; they are recorded in
    ``transactions_seen``.
    """

    def __init__(self, key_field: Optional[str] = "key", auto_increment: bool = True):
        self._key_field = key_field
        self._auto_increment = auto_increment
        self._tables: Dict[str, List[Record]] = {}
        self._next_key: Dict[str, int] = {}
        self.transactions_seen: List[Transaction] = []

    def _table(self, table: str) -> List[Record]:
        return self._tables.setdefault(table, [])

    def _track(self, transaction: Optional[Transaction]) -> None:
        if transaction is not None:
            self.transactions_seen.append(transaction)

    def _key_taken(self, table: str, key: Any, ignore: Optional[Record] = None) -> bool:
        return any(
            record is not ignore and record.get(self._key_field) == key
            for record in self._table(table)
        )

    def _assign_key(self, table: str, record: Record) -> None:
        if self._key_field is None:
            return
        if self._key_field not in record:
            if not self._auto_increment:
                raise StoreError(
                    f"Record for table '{table}' has no '{self._key_field}' value."
                )
            next_key = self._next_key.get(table, 1)
            while self._key_taken(table, next_key):
                next_key += 1
            record[self._key_field] = next_key
            self._next_key[table] = next_key + 1
        elif self._key_taken(table, record[self._key_field]):
            raise KeyAlreadyExistsException(
                f"Record with {self._key_field} {record[self._key_field]!r} "
                f"already exists in table '{table}'."
            )

    def seed(self, table: str, records: Iterable[Mapping[str, Any]]) -> List[Record]:
        """Insert records directly, bypassing any model. Returns copies of the stored records."""
        stored = []
        for values in records:
            record = copy.deepcopy(dict(values))
            self._assign_key(table, record)
            self._table(table).append(record)
            stored.append(copy.deepcopy(record))
        return stored

    def records(self, table: str) -> List[Record]:
        """Copies of every record of ``table`` in insertion order."""
        return copy.deepcopy(self._table(table))

    def _matching(
        self, table: str, expression: FilterExpression, limit: Optional[int] = None
    ) -> List[Record]:
        matched = [record for record in self._table(table) if expression.matches(record)]
        return matched if limit is None else matched[:limit]

    async def select(
        self,
        table: str,
        expression: FilterExpression,
        options: FindOptions,
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> List[Record]:
        logger.debug(f"Selecting from '{table}' where {expression} with {options!r}")
        await asyncio.sleep(0)
        self._track(transaction)
        filtered = self._matching(table, expression)
        # Stable sorts applied from the least significant column.
        for order in reversed(options.order_by):
            filtered.sort(
                key=lambda record: _sort_value(record.get(order.column)),
                reverse=order.descending,
            )
        if options.offset > 0:
            filtered = filtered[options.offset :]
        if options.limit is not None:
            filtered = filtered[: options.limit]
        return copy.deepcopy(filtered)

    async def count(
        self,
        table: str,
        expression: FilterExpression,
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> int:
        logger.debug(f"Counting '{table}' where {expression}")
        await asyncio.sleep(0)
        self._track(transaction)
        return len(self._matching(table, expression))

    async def insert(
        self,
        table: str,
        values: Mapping[str, Any],
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> Record:
        logger.debug(f"Inserting into '{table}': {values}")
        await asyncio.sleep(0)
        self._track(transaction)
        record = copy.deepcopy(dict(values))
        self._assign_key(table, record)
        self._table(table).append(record)
        return copy.deepcopy(record)

    async def update(
        self,
        table: str,
        expression: FilterExpression,
        values: Mapping[str, Any],
        logger: LoggerAdapter,
        limit: Optional[int] = None,
        transaction: Optional[Transaction] = None,
    ) -> List[Record]:
        logger.debug(f"Updating '{table}' where {expression} (limit: {limit}): {values}")
        await asyncio.sleep(0)
        self._track(transaction)
        matched = self._matching(table, expression, limit)
        if self._key_field is not None and self._key_field in values:
            new_key = values[self._key_field]
            if len(matched) > 1 or (
                matched and self._key_taken(table, new_key, ignore=matched[0])
            ):
                raise KeyAlreadyExistsException(
                    f"Record with {self._key_field} {new_key!r} already exists in table '{table}'."
                )
        for record in matched:
            record.update(copy.deepcopy(dict(values)))
        return copy.deepcopy(matched)

    async def delete(
        self,
        table: str,
        expression: FilterExpression,
        logger: LoggerAdapter,
        limit: Optional[int] = None,
        transaction: Optional[Transaction] = None,
    ) -> int:
        logger.debug(f"Deleting from '{table}' where {expression} (limit: {limit})")
        await asyncio.sleep(0)
        self._track(transaction)
        matched = self._matching(table, expression, limit)
        matched_ids = {id(record) for record in matched}
        self._tables[table] = [
            record for record in self._table(table) if id(record) not in matched_ids
        ]
        return len(matched)

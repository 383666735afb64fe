# src/async_key_model/base/interfaces.py

from abc import ABC, abstractmethod
from logging import LoggerAdapter
from typing import Any, Dict, List, Mapping, Optional

from async_key_model.base.filter_expression import FilterExpression
from async_key_model.base.query import FindOptions

# Opaque handle scoping several operations to one unit of work. Table clients
# define what it is; models only forward it.
Transaction = Any

Record = Dict[str, Any]


class TableClient(ABC):
    """
    Interface of the store a model delegates to.

    A table client executes already validated filter expressions and values
    against named tables. It owns connections and the transaction lifecycle;
    models never begin, commit or roll back a transaction, they only pass the
    caller's handle through.

    Implementations raise ``StoreError`` subclasses (e.g.
    ``KeyAlreadyExistsException``) for store-side failures. Models never
    catch them.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        expression: FilterExpression,
        options: FindOptions,
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> List[Record]:
        """
        Fetch the records matching ``expression``.

        Args:
            table: Name of the table.
            expression: The filter expression; clauses are OR-ed.
            options: Ordering and pagination.
            logger: Logger adapter for recording operations.
            transaction: Optional transaction handle.

        Returns:
            The matching records, ordered and paginated per ``options``.
        """
        pass

    @abstractmethod
    async def count(
        self,
        table: str,
        expression: FilterExpression,
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> int:
        """Count the records matching ``expression``."""
        pass

    @abstractmethod
    async def insert(
        self,
        table: str,
        values: Mapping[str, Any],
        logger: LoggerAdapter,
        transaction: Optional[Transaction] = None,
    ) -> Record:
        """
        Insert one record.

        Returns:
            The stored record, including its key and any store defaults.

        Raises:
            KeyAlreadyExistsException: If the key is already taken.
        """
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        expression: FilterExpression,
        values: Mapping[str, Any],
        logger: LoggerAdapter,
        limit: Optional[int] = None,
        transaction: Optional[Transaction] = None,
    ) -> List[Record]:
        """
        Apply ``values`` to the records matching ``expression``.

        Args:
            limit: If given, at most this many records are updated.

        Returns:
            The updated records.
        """
        pass

    @abstractmethod
    async def delete(
        self,
        table: str,
        expression: FilterExpression,
        logger: LoggerAdapter,
        limit: Optional[int] = None,
        transaction: Optional[Transaction] = None,
    ) -> int:
        """
        Remove the records matching ``expression``.

        Args:
            limit: If given, at most this many records are removed.

        Returns:
            The number of records removed.
        """
        pass

# src/async_key_model/base/model.py

import logging
from logging import LoggerAdapter
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    cast,
)

from async_key_model.base.entity_schema import EntitySchema, build_entity_schemas
from async_key_model.base.exceptions import ObjectNotFoundException
from async_key_model.base.fields import FieldConstraint, check_registry
from async_key_model.base.filter_expression import (
    FilterExpression,
    FilterExpressionInput,
    FilterExpressionSchema,
    build_filter_expression_schema,
)
from async_key_model.base.interfaces import TableClient, Transaction
from async_key_model.base.query import OrderByInput, build_find_options

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Generic Type Variables ---
EntityT = TypeVar("EntityT", bound=Mapping[str, Any])
CreateValuesT = TypeVar("CreateValuesT", bound=Mapping[str, Any])
UpdateValuesT = TypeVar("UpdateValuesT", bound=Mapping[str, Any])
QueryItemT = TypeVar("QueryItemT", bound=Mapping[str, Any])


class Model(Generic[EntityT, CreateValuesT, UpdateValuesT, QueryItemT]):
    """
    Validation-gated access to one table.

    Every operation validates its filter expression and values against the
    schemas compiled at construction, then delegates to the table client.
    Errors raised by the client propagate unchanged.
    """

    def __init__(
        self,
        table_client: TableClient,
        table: str,
        fields: Mapping[str, FieldConstraint],
        create_schema: Optional[EntitySchema] = None,
        update_schema: Optional[EntitySchema] = None,
    ):
        """
        Compile the schemas of the model.

        Args:
            table_client: The store the model delegates to.
            table: The name of the underlying table.
            fields: The names and constraints of the table's fields.
            create_schema: Validator for create values. Defaults to every field required.
            update_schema: Validator for update values. Defaults to every field optional.
        """
        if not isinstance(table_client, TableClient):
            raise TypeError(
                f"table_client must be a TableClient, received {type(table_client).__name__}."
            )
        check_registry(fields)
        self._table_client = table_client
        self._table = table
        self._fields = MappingProxyType(dict(fields))
        self._filter_expression_schema = build_filter_expression_schema(self._fields)
        if create_schema is None or update_schema is None:
            default_create, default_update = build_entity_schemas(
                self._fields, name=self.__class__.__name__
            )
            create_schema = create_schema or default_create
            update_schema = update_schema or default_update
        self._create_schema = create_schema
        self._update_schema = update_schema
        self._logger = LoggerAdapter(log, {"table": table})
        log.debug(f"Initialized {self.__class__.__name__} for table '{table}'")

    # --- Properties ---

    @property
    def table(self) -> str:
        return self._table

    @property
    def table_client(self) -> TableClient:
        return self._table_client

    @property
    def fields(self) -> Mapping[str, FieldConstraint]:
        return self._fields

    @property
    def filter_expression_schema(self) -> FilterExpressionSchema:
        return self._filter_expression_schema

    @property
    def create_schema(self) -> EntitySchema:
        return self._create_schema

    @property
    def update_schema(self) -> EntitySchema:
        return self._update_schema

    def field_names(self) -> List[str]:
        """All fields present in the underlying data object, in registry order."""
        return list(self._fields)

    # --- Helpers ---

    def _resolve_logger(self, logger: Optional[LoggerAdapter]) -> LoggerAdapter:
        return logger if logger is not None else self._logger

    def _filter_expression(
        self,
        expression: FilterExpressionInput,
        is_validation_disabled: bool,
        logger: LoggerAdapter,
    ) -> FilterExpression:
        if is_validation_disabled:
            logger.debug(f"Filter expression validation disabled for {expression!r}")
            return self._filter_expression_schema.parse(expression)
        return self._filter_expression_schema.validate(expression)

    def _values(
        self,
        schema: EntitySchema,
        values: Mapping[str, Any],
        is_validation_disabled: bool,
        logger: LoggerAdapter,
    ) -> Dict[str, Any]:
        if is_validation_disabled:
            logger.debug(f"{schema.name} validation disabled")
            return dict(values)
        return schema.validate(values)

    # --- Create ---

    async def create(
        self,
        values: CreateValuesT,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> EntityT:
        """
        Create a single entity from the supplied values.

        Raises:
            ValidationError: If the values violate the create schema.
        """
        logger = self._resolve_logger(logger)
        validated = self._values(
            self._create_schema, values, is_validation_disabled, logger
        )
        logger.debug(f"Creating {self._table} entity with values: {validated}")
        record = await self._table_client.insert(
            self._table, validated, logger, transaction=transaction
        )
        return cast(EntityT, record)

    # --- Read ---

    async def find(
        self,
        expression: FilterExpressionInput,
        *,
        is_validation_disabled: bool = False,
        order_by: Optional[Sequence[OrderByInput]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> List[EntityT]:
        """
        Find all entities of the model matching the filter expression.

        Args:
            expression: A filter expression item or a list of items (OR-ed).
            is_validation_disabled: Skip validating the expression and options.
            order_by: Sequence of ``OrderBy`` (or ``(column, direction)`` pairs).
            limit: Maximum number of entities returned.
            offset: Number of matching entities skipped.
            transaction: Optional transaction handle forwarded to the table client.
            logger: Logger adapter; defaults to the model's logger.
        """
        logger = self._resolve_logger(logger)
        filter_expression = self._filter_expression(
            expression, is_validation_disabled, logger
        )
        options = build_find_options(
            self._fields, order_by, limit, offset, is_validation_disabled
        )
        logger.debug(f"Finding {self._table} entities matching {filter_expression} with {options!r}")
        records = await self._table_client.select(
            self._table, filter_expression, options, logger, transaction=transaction
        )
        return cast(List[EntityT], records)

    async def find_one(
        self,
        expression: FilterExpressionInput,
        *,
        is_validation_disabled: bool = False,
        order_by: Optional[Sequence[OrderByInput]] = None,
        offset: int = 0,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> Optional[EntityT]:
        """
        Find the first entity matching the filter expression.

        Returns:
            The entity, or None if nothing matches.
        """
        entities = await self.find(
            expression,
            is_validation_disabled=is_validation_disabled,
            order_by=order_by,
            limit=1,
            offset=offset,
            transaction=transaction,
            logger=logger,
        )
        return entities[0] if entities else None

    async def count(
        self,
        expression: FilterExpressionInput,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> int:
        """Count the entities matching the filter expression."""
        logger = self._resolve_logger(logger)
        filter_expression = self._filter_expression(
            expression, is_validation_disabled, logger
        )
        return await self._table_client.count(
            self._table, filter_expression, logger, transaction=transaction
        )

    # --- Update ---

    async def update(
        self,
        expression: FilterExpressionInput,
        values: UpdateValuesT,
        *,
        is_query_validation_disabled: bool = False,
        is_values_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> List[EntityT]:
        """
        Update every entity matching the filter expression with the supplied values.

        Returns:
            The updated entities.
        """
        return await self._update(
            expression,
            values,
            None,
            is_query_validation_disabled,
            is_values_validation_disabled,
            transaction,
            logger,
        )

    async def update_one(
        self,
        expression: FilterExpressionInput,
        values: UpdateValuesT,
        *,
        is_query_validation_disabled: bool = False,
        is_values_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> EntityT:
        """
        Update a single entity matching the filter expression.

        Raises:
            ObjectNotFoundException: If no entity matches.
        """
        entities = await self._update(
            expression,
            values,
            1,
            is_query_validation_disabled,
            is_values_validation_disabled,
            transaction,
            logger,
        )
        if not entities:
            raise ObjectNotFoundException(
                f"No {self._table} entity found matching {expression!r} for update."
            )
        return entities[0]

    async def _update(
        self,
        expression: FilterExpressionInput,
        values: Mapping[str, Any],
        limit: Optional[int],
        is_query_validation_disabled: bool,
        is_values_validation_disabled: bool,
        transaction: Optional[Transaction],
        logger: Optional[LoggerAdapter],
    ) -> List[EntityT]:
        logger = self._resolve_logger(logger)
        filter_expression = self._filter_expression(
            expression, is_query_validation_disabled, logger
        )
        validated = self._values(
            self._update_schema, values, is_values_validation_disabled, logger
        )
        logger.debug(
            f"Updating {self._table} entities matching {filter_expression} "
            f"(limit: {limit}) with values: {validated}"
        )
        records = await self._table_client.update(
            self._table,
            filter_expression,
            validated,
            logger,
            limit=limit,
            transaction=transaction,
        )
        return cast(List[EntityT], records)

    # --- Destroy ---

    async def destroy(
        self,
        expression: FilterExpressionInput,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> int:
        """
        Destroy every entity matching the filter expression.

        Returns:
            The number of destroyed entities.
        """
        return await self._destroy(
            expression, None, is_validation_disabled, transaction, logger
        )

    async def destroy_one(
        self,
        expression: FilterExpressionInput,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> None:
        """
        Destroy a single entity matching the filter expression.

        Raises:
            ObjectNotFoundException: If no entity matches.
        """
        count_destroyed = await self._destroy(
            expression, 1, is_validation_disabled, transaction, logger
        )
        if count_destroyed == 0:
            raise ObjectNotFoundException(
                f"No {self._table} entity found matching {expression!r} for destruction."
            )

    async def _destroy(
        self,
        expression: FilterExpressionInput,
        limit: Optional[int],
        is_validation_disabled: bool,
        transaction: Optional[Transaction],
        logger: Optional[LoggerAdapter],
    ) -> int:
        logger = self._resolve_logger(logger)
        filter_expression = self._filter_expression(
            expression, is_validation_disabled, logger
        )
        logger.debug(
            f"Destroying {self._table} entities matching {filter_expression} (limit: {limit})"
        )
        return await self._table_client.delete(
            self._table, filter_expression, logger, limit=limit, transaction=transaction
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self._table!r}, fields={self.field_names()!r})"

# src/async_key_model/base/key_model.py

import logging
from logging import LoggerAdapter
from typing import Any, List, Mapping, Optional, Sequence, Union, cast

from async_key_model.base.entity_schema import build_entity_schemas
from async_key_model.base.exceptions import (
    StructuralConfigurationError,
    ValidationError,
    Violation,
)
from async_key_model.base.fields import KEY_CONSTRAINT_TYPES, FieldConstraint
from async_key_model.base.interfaces import TableClient, Transaction
from async_key_model.base.model import (
    CreateValuesT,
    EntityT,
    Model,
    QueryItemT,
    UpdateValuesT,
)
from async_key_model.base.query import OrderByInput

log = logging.getLogger(__name__)

# Type of the value that identifies a record.
Key = Union[int, float, str]

KEY_FIELD = "key"


class KeyModel(Model[EntityT, CreateValuesT, UpdateValuesT, QueryItemT]):
    """
    Model of a table whose records are identified by a ``key`` field.

    Adds key-addressed operations on top of the filtered operations of
    ``Model``. The key is excluded from the create and update schemas.
    """

    def __init__(
        self,
        table_client: TableClient,
        table: str,
        fields: Mapping[str, FieldConstraint],
    ):
        """
        Confirm the registry contains the primary key and compile the schemas.

        Args:
            table_client: The store the model delegates to.
            table: The name of the underlying table.
            fields: The names and constraints of the table's fields,
                    including ``key`` (a NumberField or StringField).

        Raises:
            StructuralConfigurationError: If ``fields`` has no usable ``key`` entry.
        """
        if KEY_FIELD not in fields:
            raise StructuralConfigurationError(
                "The submitted fields object does not contain a primary key entry."
            )
        if not isinstance(fields[KEY_FIELD], KEY_CONSTRAINT_TYPES):
            raise StructuralConfigurationError(
                "The primary key must be a number or string field, "
                f"received {type(fields[KEY_FIELD]).__name__}."
            )

        value_fields = {
            name: constraint for name, constraint in fields.items() if name != KEY_FIELD
        }
        create_schema, update_schema = build_entity_schemas(
            value_fields, name=self.__class__.__name__
        )
        super().__init__(table_client, table, fields, create_schema, update_schema)

    def field_names(self, is_key_excluded: bool = False) -> List[str]:
        """
        All fields present in the underlying data object.

        Args:
            is_key_excluded: Leave out the primary key.
        """
        names = super().field_names()
        if is_key_excluded:
            return [name for name in names if name != KEY_FIELD]
        return names

    def _key_item(self, key: Key) -> QueryItemT:
        if isinstance(key, (list, tuple, set, dict)) or key is None:
            raise ValidationError(
                [Violation((KEY_FIELD,), f"expected a single key value, got {key!r}", "key_type")],
                title=f"{self.__class__.__name__} key validation failed",
            )
        return cast(QueryItemT, {KEY_FIELD: key})

    async def find_by_key(
        self,
        key: Key,
        *,
        is_validation_disabled: bool = False,
        order_by: Optional[Sequence[OrderByInput]] = None,
        offset: int = 0,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> Optional[EntityT]:
        """
        Find a single entity of the model matching the key.

        Ordering, offset, validation and transaction options are forwarded to
        ``find_one``. There is no ``limit`` option: a key addresses at most one
        entity, so the lookup is always limited to one.

        Returns:
            The entity, or None if no entity has this key.
        """
        return await self.find_one(
            self._key_item(key),
            is_validation_disabled=is_validation_disabled,
            order_by=order_by,
            offset=offset,
            transaction=transaction,
            logger=logger,
        )

    async def update_by_key(
        self,
        key: Key,
        values: UpdateValuesT,
        *,
        is_query_validation_disabled: bool = False,
        is_values_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> EntityT:
        """
        Update a single entity of the model matching the key with the supplied values.

        Raises:
            ObjectNotFoundException: If no entity has this key.
        """
        return await self.update_one(
            self._key_item(key),
            values,
            is_query_validation_disabled=is_query_validation_disabled,
            is_values_validation_disabled=is_values_validation_disabled,
            transaction=transaction,
            logger=logger,
        )

    async def destroy_by_key(
        self,
        key: Key,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> None:
        """
        Destroy a single entity of the model matching the key.

        Raises:
            ObjectNotFoundException: If no entity has this key.
        """
        await self.destroy_one(
            self._key_item(key),
            is_validation_disabled=is_validation_disabled,
            transaction=transaction,
            logger=logger,
        )

    def _document_key(self, document: Mapping[str, Any]) -> Key:
        if KEY_FIELD not in document:
            raise ValidationError(
                [Violation((KEY_FIELD,), "the document has no primary key", "missing")],
                title=f"{self.__class__.__name__} key validation failed",
            )
        return document[KEY_FIELD]

    async def save(
        self,
        document: EntityT,
        *,
        is_query_validation_disabled: bool = False,
        is_values_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> EntityT:
        """
        Update the entity indicated by the primary key that's part of the given document.

        Every non-key field present in the document is written back.
        """
        values = {
            name: document[name]
            for name in self.field_names(is_key_excluded=True)
            if name in document
        }
        return await self.update_by_key(
            self._document_key(document),
            cast(UpdateValuesT, values),
            is_query_validation_disabled=is_query_validation_disabled,
            is_values_validation_disabled=is_values_validation_disabled,
            transaction=transaction,
            logger=logger,
        )

    async def delete(
        self,
        document: EntityT,
        *,
        is_validation_disabled: bool = False,
        transaction: Optional[Transaction] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> None:
        """Destroy the entity indicated by the primary key that's part of the given document."""
        await self.destroy_by_key(
            self._document_key(document),
            is_validation_disabled=is_validation_disabled,
            transaction=transaction,
            logger=logger,
        )

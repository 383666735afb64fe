# src/async_key_model/base/entity_schema.py
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from pydantic import ValidationError as PydanticValidationError

from async_key_model.base.exceptions import ValidationError, Violation
from async_key_model.base.fields import (
    FieldConstraint,
    compile_record_model,
    registry_annotations,
)
from async_key_model.base.validation import violations_from_pydantic

log = logging.getLogger(__name__)


class EntitySchema:
    """
    Compiled validator for create or update values.

    - all specified keys must correspond to fields.
    - all present fields must conform to the given rules.
    - with ``required`` every field must be present.
    """

    def __init__(self, name: str, fields: Mapping[str, FieldConstraint], *, required: bool):
        self.name = name
        self.required = required
        self._fields = MappingProxyType(dict(fields))
        self._model = compile_record_model(
            name, registry_annotations(self._fields), required=required
        )

    @property
    def fields(self) -> Mapping[str, FieldConstraint]:
        return self._fields

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(self._fields)

    def validate(self, values: Any) -> Dict[str, Any]:
        """
        Validate ``values`` and return the validated mapping.

        Only keys present in ``values`` appear in the result.

        Raises:
            ValidationError: Carrying every violated constraint.
        """
        if not isinstance(values, Mapping):
            raise ValidationError(
                [
                    Violation(
                        (),
                        f"expected a mapping of field values, got {type(values).__name__}",
                        "dict_type",
                    )
                ],
                title=f"{self.name} validation failed",
            )
        try:
            instance = self._model.model_validate(dict(values))
        except PydanticValidationError as e:
            raise ValidationError(
                violations_from_pydantic(e), title=f"{self.name} validation failed"
            ) from None
        return instance.model_dump(by_alias=True, exclude_unset=True)

    def __repr__(self) -> str:
        return (
            f"EntitySchema({self.name!r}, fields={list(self._fields)!r}, "
            f"required={self.required!r})"
        )


def build_entity_schemas(
    fields: Mapping[str, FieldConstraint], name: str = "Entity"
) -> Tuple[EntitySchema, EntitySchema]:
    """
    Build the create and update validators for a field registry.

    The create schema requires every field; the update schema permits any
    subset. Both reject unknown fields and never coerce values.

    Returns:
        ``(create_schema, update_schema)``
    """
    log.debug(f"Building entity schemas for {name} over {list(fields)}")
    return (
        EntitySchema(f"{name}CreateValues", fields, required=True),
        EntitySchema(f"{name}UpdateValues", fields, required=False),
    )

# src/async_key_model/base/fields.py
"""
Field constraint descriptors.

A model is described by a *field registry*: an ordered mapping from field
name to one of the constraint descriptors below. The registry is the single
source from which the filter, create and update schemas are compiled.

Every descriptor compiles to a pydantic annotation with coercion disabled:
a number field never accepts ``"5"`` and a string field never accepts ``5``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Type,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictBool,
    confloat,
    conint,
    constr,
    create_model,
)

# --- Setup Logging ---
log = logging.getLogger(__name__)

# Config shared by every compiled record model.
# - all specified keys must correspond to fields.
# - fields are only reachable by their registry name, never by the generated attribute name.
RECORD_MODEL_CONFIG = ConfigDict(extra="forbid", populate_by_name=False)


# --- Constraint Descriptors ---
@dataclass(frozen=True)
class FieldConstraint:
    """Base class for the tagged variant of field constraints."""

    kind: ClassVar[str] = "any"

    nullable: bool = False

    def base_annotation(self) -> Any:
        raise NotImplementedError

    def annotation(self) -> Any:
        """The pydantic annotation values of this field are validated against."""
        base = self.base_annotation()
        return Optional[base] if self.nullable else base


@dataclass(frozen=True)
class BooleanField(FieldConstraint):
    kind: ClassVar[str] = "boolean"

    def base_annotation(self) -> Any:
        return StrictBool


@dataclass(frozen=True)
class NumberField(FieldConstraint):
    """A number. Bounds are inclusive; ``integer`` rejects floats."""

    kind: ClassVar[str] = "number"

    minimum: Optional[float] = None
    maximum: Optional[float] = None
    integer: bool = False

    def base_annotation(self) -> Any:
        integer_type = conint(strict=True, ge=self.minimum, le=self.maximum)
        if self.integer:
            return integer_type
        float_type = confloat(
            strict=True, ge=self.minimum, le=self.maximum, allow_inf_nan=False
        )
        return Union[integer_type, float_type]


@dataclass(frozen=True)
class StringField(FieldConstraint):
    """A string, optionally restricted to an enumerated set of ``choices``."""

    kind: ClassVar[str] = "string"

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    choices: Optional[Tuple[str, ...]] = None

    def base_annotation(self) -> Any:
        if self.choices:
            return Literal[tuple(self.choices)]
        return constr(
            strict=True,
            min_length=self.min_length,
            max_length=self.max_length,
            pattern=self.pattern,
        )


@dataclass(frozen=True)
class ObjectField(FieldConstraint):
    """
    A JSON-like object. With ``keys`` the object must carry exactly the
    nested fields of that registry; without it any string-keyed dict is accepted.

    ``keys`` may be given as a mapping; it is kept as a tuple of
    ``(name, constraint)`` pairs so the descriptor stays hashable.
    """

    kind: ClassVar[str] = "object"

    keys: Optional[Tuple[Tuple[str, FieldConstraint], ...]] = None

    def __post_init__(self) -> None:
        if isinstance(self.keys, Mapping):
            object.__setattr__(self, "keys", tuple(self.keys.items()))
        elif self.keys is not None:
            object.__setattr__(self, "keys", tuple(self.keys))

    def base_annotation(self) -> Any:
        if self.keys is None:
            return Annotated[Dict[str, Any], Strict()]
        return compile_record_model(
            "NestedObject", registry_annotations(dict(self.keys)), required=True
        )


@dataclass(frozen=True)
class DateField(FieldConstraint):
    """A ``datetime`` instance, optionally bounded (inclusive)."""

    kind: ClassVar[str] = "date"

    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None

    def base_annotation(self) -> Any:
        bounds: Dict[str, datetime] = {}
        if self.earliest is not None:
            bounds["ge"] = self.earliest
        if self.latest is not None:
            bounds["le"] = self.latest
        if bounds:
            return Annotated[datetime, Strict(), Field(**bounds)]
        return Annotated[datetime, Strict()]


# Constraint types a key field may have.
KEY_CONSTRAINT_TYPES = (NumberField, StringField)


# --- Registry Helpers ---
def check_registry(fields: Mapping[str, FieldConstraint]) -> None:
    """Reject registry entries that are not constraint descriptors."""
    for field_name, constraint in fields.items():
        if not isinstance(field_name, str):
            raise TypeError(f"Field names must be strings, received {field_name!r}.")
        if not isinstance(constraint, FieldConstraint):
            raise TypeError(
                f"Field '{field_name}' must be a FieldConstraint, "
                f"received {type(constraint).__name__}."
            )


def registry_annotations(fields: Mapping[str, FieldConstraint]) -> Dict[str, Any]:
    check_registry(fields)
    return {name: constraint.annotation() for name, constraint in fields.items()}


def compile_record_model(
    name: str, annotations: Mapping[str, Any], *, required: bool
) -> Type[BaseModel]:
    """
    Build a pydantic model accepting the keys of ``annotations``.

    Attribute names are generated (``field_0``, ``field_1``, ...) and the
    keys are used as aliases, so any string is a legal key.

    Args:
        name: Name of the generated model class.
        annotations: Mapping of key to the annotation its value must satisfy.
        required: If True every key must be present, otherwise every key
                  is optional and absent keys are left unset.

    Returns:
        The compiled pydantic model class.
    """
    definitions: Dict[str, Any] = {}
    for index, (key, annotation) in enumerate(annotations.items()):
        default = ... if required else None
        definitions[f"field_{index}"] = (annotation, Field(default, alias=key))
    log.debug(f"Compiling record model {name} over keys {list(annotations)}")
    return create_model(name, __config__=RECORD_MODEL_CONFIG, **definitions)

# src/async_key_model/base/filter_expression.py
"""
Filter expressions.

A filter expression is either one *item* or a list of items. Items in a list
are OR-ed; the keys of one item are AND-ed. Each key is a field name
(positive: the field equals the value, or one of the listed values) or its
negated key (the field equals none of them). A field's positive and negated
key may not appear in the same item.

Example:
    >>> schema = build_filter_expression_schema({"key": NumberField(), "status": StringField()})
    >>> expression = schema.validate([{"status": "open"}, {"!status": ["closed", "archived"]}])
    >>> expression.matches({"key": 1, "status": "draft"})
    True
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Sequence,
    Tuple,
    Union,
)

from pydantic import ValidationError as PydanticValidationError
from pydantic import conlist

from async_key_model.base.exceptions import (
    Location,
    StructuralConfigurationError,
    ValidationError,
    Violation,
)
from async_key_model.base.fields import (
    FieldConstraint,
    check_registry,
    compile_record_model,
)
from async_key_model.base.validation import violations_from_pydantic

# --- Setup Logging ---
log = logging.getLogger(__name__)

NEGATION_PREFIX = "!"

FilterExpressionItem = Mapping[str, Any]
FilterExpressionInput = Union[FilterExpressionItem, Sequence[FilterExpressionItem]]


# --- Structured Filter Expression ---
@dataclass(frozen=True)
class FilterTerm:
    """``field`` equals one of ``values`` (or, when ``negated``, none of them)."""

    field: str
    values: Tuple[Any, ...]
    negated: bool = False
    many: bool = False

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        found = any(value == candidate for candidate in self.values)
        return not found if self.negated else found

    def key(self) -> str:
        return f"{NEGATION_PREFIX}{self.field}" if self.negated else self.field

    def payload_value(self) -> Any:
        return list(self.values) if self.many else self.values[0]


@dataclass(frozen=True)
class FilterClause:
    """An AND-combination of terms. An empty clause matches every record."""

    terms: Tuple[FilterTerm, ...] = ()

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(term.matches(record) for term in self.terms)

    def to_payload(self) -> Dict[str, Any]:
        return {term.key(): term.payload_value() for term in self.terms}


@dataclass(frozen=True)
class FilterExpression:
    """An OR-combination of clauses. No clauses at all matches nothing."""

    clauses: Tuple[FilterClause, ...] = ()

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(clause.matches(record) for clause in self.clauses)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [clause.to_payload() for clause in self.clauses]

    def __str__(self) -> str:
        return repr(self.to_payload())


# --- Schema ---
@dataclass(frozen=True)
class FieldKeyPair:
    """The positive and negated filter keys generated for one field."""

    field: str
    positive: str
    negated: str


class FilterExpressionSchema:
    """Compiled validator for filter expressions over a field registry."""

    def __init__(self, fields: Mapping[str, FieldConstraint]):
        check_registry(fields)
        self._fields = MappingProxyType(dict(fields))
        self._pairs = tuple(
            FieldKeyPair(name, name, f"{NEGATION_PREFIX}{name}") for name in self._fields
        )

        # Resolve each schema key to (field, negated) once, so keys are never
        # interpreted by prefix while validating.
        key_lookup: Dict[str, Tuple[str, bool]] = {}
        for pair in self._pairs:
            for key, negated in ((pair.positive, False), (pair.negated, True)):
                if key in key_lookup:
                    raise StructuralConfigurationError(
                        f"Filter key '{key}' of field '{pair.field}' collides with "
                        f"a key of field '{key_lookup[key][0]}'."
                    )
                key_lookup[key] = (pair.field, negated)
        self._key_lookup = MappingProxyType(key_lookup)

        # Allow value or non-empty list of values in a positive and negated version of the field.
        annotations: Dict[str, Any] = {}
        for pair in self._pairs:
            value_annotation = self._fields[pair.field].annotation()
            alternatives = Union[value_annotation, conlist(value_annotation, min_length=1)]
            annotations[pair.positive] = alternatives
            annotations[pair.negated] = alternatives
        self._item_model = compile_record_model(
            "FilterExpressionItem", annotations, required=False
        )
        log.debug(f"Compiled filter expression schema over fields {list(self._fields)}")

    @property
    def fields(self) -> Mapping[str, FieldConstraint]:
        return self._fields

    @property
    def key_pairs(self) -> Tuple[FieldKeyPair, ...]:
        return self._pairs

    def validate(self, expression: Any) -> FilterExpression:
        """
        Validate a filter expression and return its structured form.

        Every violation across every item is collected before raising.

        Raises:
            ValidationError: If the expression is missing or violates the schema.
        """
        violations: List[Violation] = []
        clauses: List[FilterClause] = []
        for location, item in self._split_items(expression):
            if not isinstance(item, Mapping):
                violations.append(
                    Violation(
                        location,
                        f"expected a filter expression item, got {type(item).__name__}",
                        "filter_item_type",
                    )
                )
                continue
            violations.extend(self._exclusivity_violations(location, item))
            try:
                validated = self._item_model.model_validate(dict(item))
            except PydanticValidationError as e:
                violations.extend(violations_from_pydantic(e, location))
                continue
            clauses.append(
                self._clause(validated.model_dump(by_alias=True, exclude_unset=True))
            )
        if violations:
            raise ValidationError(violations, title="Filter expression validation failed")
        return FilterExpression(tuple(clauses))

    def parse(self, expression: Any) -> FilterExpression:
        """
        Build the structured form of an expression without validating values.

        Keys that are not generated by this schema are taken as positive
        filters on a field of that name.
        """
        clauses: List[FilterClause] = []
        for location, item in self._split_items(expression):
            if not isinstance(item, Mapping):
                raise ValidationError(
                    [
                        Violation(
                            location,
                            f"expected a filter expression item, got {type(item).__name__}",
                            "filter_item_type",
                        )
                    ],
                    title="Filter expression could not be parsed",
                )
            clauses.append(self._clause(item))
        return FilterExpression(tuple(clauses))

    def _split_items(self, expression: Any) -> List[Tuple[Location, Any]]:
        if expression is None:
            raise ValidationError(
                [Violation((), "a filter expression is required", "missing")],
                title="Filter expression validation failed",
            )
        if isinstance(expression, Mapping):
            return [((), expression)]
        if isinstance(expression, (list, tuple)):
            return [((index,), item) for index, item in enumerate(expression)]
        raise ValidationError(
            [
                Violation(
                    (),
                    "expected a filter expression item or a list of items, "
                    f"got {type(expression).__name__}",
                    "filter_expression_type",
                )
            ],
            title="Filter expression validation failed",
        )

    def _exclusivity_violations(
        self, location: Location, item: FilterExpressionItem
    ) -> List[Violation]:
        return [
            Violation(
                tuple(location) + (pair.negated,),
                f"'{pair.positive}' and '{pair.negated}' are mutually exclusive",
                "filter_key_exclusive",
            )
            for pair in self._pairs
            if pair.positive in item and pair.negated in item
        ]

    def _clause(self, item: Mapping[str, Any]) -> FilterClause:
        terms = []
        for key, value in item.items():
            field_name, negated = self._key_lookup.get(key, (key, False))
            many = isinstance(value, (list, tuple))
            values = tuple(value) if many else (value,)
            terms.append(FilterTerm(field_name, values, negated=negated, many=many))
        return FilterClause(tuple(terms))

    def __repr__(self) -> str:
        return f"FilterExpressionSchema(fields={list(self._fields)!r})"


def build_filter_expression_schema(
    fields: Mapping[str, FieldConstraint],
) -> FilterExpressionSchema:
    """Compile the filter expression validator for a field registry."""
    return FilterExpressionSchema(fields)

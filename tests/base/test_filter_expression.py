# tests/base/test_filter_expression.py
import pytest

from async_key_model.base.exceptions import (
    StructuralConfigurationError,
    ValidationError,
)
from async_key_model.base.fields import BooleanField, NumberField, StringField
from async_key_model.base.filter_expression import (
    FilterClause,
    FilterExpression,
    FilterTerm,
    build_filter_expression_schema,
)


@pytest.fixture
def schema():
    return build_filter_expression_schema(
        {"key": NumberField(), "status": StringField(), "done": BooleanField()}
    )


def _first_locations(error: ValidationError):
    return {violation.location[0] for violation in error.violations}


# --- Key Pairs ---


def test_key_pairs_are_generated_per_field(schema):
    pairs = {pair.field: (pair.positive, pair.negated) for pair in schema.key_pairs}
    assert pairs == {
        "key": ("key", "!key"),
        "status": ("status", "!status"),
        "done": ("done", "!done"),
    }


def test_colliding_negated_key_is_a_configuration_error():
    with pytest.raises(StructuralConfigurationError, match="collides"):
        build_filter_expression_schema({"a": NumberField(), "!a": NumberField()})


def test_field_name_starting_with_negation_prefix():
    schema = build_filter_expression_schema({"!flag": BooleanField()})
    expression = schema.validate({"!!flag": True})
    assert expression.clauses[0].terms == (FilterTerm("!flag", (True,), negated=True),)
    expression = schema.validate({"!flag": True})
    assert expression.clauses[0].terms == (FilterTerm("!flag", (True,), negated=False),)


# --- Accepted Shapes ---


def test_empty_item_matches_everything(schema):
    expression = schema.validate({})
    assert expression == FilterExpression((FilterClause(()),))
    assert expression.matches({"key": 1, "status": "open"})


def test_empty_list_matches_nothing(schema):
    expression = schema.validate([])
    assert expression.clauses == ()
    assert not expression.matches({"key": 1})


def test_single_value_and_list_of_values(schema):
    expression = schema.validate({"key": 1, "status": ["open", "draft"]})
    (clause,) = expression.clauses
    assert FilterTerm("key", (1,)) in clause.terms
    assert FilterTerm("status", ("open", "draft"), many=True) in clause.terms


def test_negated_key_resolves_to_field(schema):
    expression = schema.validate({"!status": ["closed", "archived"]})
    (term,) = expression.clauses[0].terms
    assert term.field == "status"
    assert term.negated
    assert term.values == ("closed", "archived")


def test_list_expression_keeps_item_order(schema):
    expression = schema.validate([{"key": 1}, {"key": 2}])
    assert expression.to_payload() == [{"key": 1}, {"key": 2}]


def test_payload_round_trip_preserves_negation_and_lists(schema):
    raw = [{"status": "open"}, {"!status": ["closed", "archived"], "done": False}]
    assert schema.validate(raw).to_payload() == raw


# --- Violations ---


def test_missing_expression_is_rejected(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate(None)
    assert exc_info.value.kinds() == ["missing"]


def test_wrong_expression_type_is_rejected(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate("status=open")
    assert exc_info.value.kinds() == ["filter_expression_type"]


def test_non_mapping_list_item_is_rejected(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate([{"key": 1}, "key=2"])
    assert exc_info.value.violations[0].location == (1,)
    assert exc_info.value.kinds() == ["filter_item_type"]


def test_unknown_key_is_rejected(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({"stauts": "open"})
    assert exc_info.value.violations[0].location == ("stauts",)
    assert exc_info.value.kinds() == ["extra_forbidden"]


def test_positive_and_negated_key_are_exclusive(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({"status": "open", "!status": "closed"})
    assert "filter_key_exclusive" in exc_info.value.kinds()


def test_numeric_string_is_not_coerced(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({"key": "1"})
    assert _first_locations(exc_info.value) == {"key"}


def test_union_alternatives_report_one_violation_per_key(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({"key": "1"})
    (violation,) = exc_info.value.violations
    assert violation.location == ("key",)
    assert violation.kind == "invalid_value"

    with pytest.raises(ValidationError) as exc_info:
        schema.validate([{"key": 1}, {"key": "1", "done": "yes"}])
    assert sorted(v.location for v in exc_info.value.violations) == [(1, "done"), (1, "key")]


def test_empty_value_list_is_rejected(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({"status": []})
    assert _first_locations(exc_info.value) == {"status"}
    with pytest.raises(ValidationError):
        schema.validate({"!status": []})


def test_invalid_list_member_is_rejected(schema):
    with pytest.raises(ValidationError):
        schema.validate({"key": [1, "2"]})


def test_all_violations_are_reported_together(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate(
            {"key": "1", "status": 5, "!status": "closed", "bogus": True}
        )
    error = exc_info.value
    assert "filter_key_exclusive" in error.kinds()
    assert {"key", "status", "!status", "bogus"} <= _first_locations(error)


def test_violations_across_items_are_located_by_index(schema):
    with pytest.raises(ValidationError) as exc_info:
        schema.validate([{"key": "1"}, {"done": True}, {"done": "yes"}])
    assert _first_locations(exc_info.value) == {0, 2}
    assert str(exc_info.value).startswith("Filter expression validation failed (")


# --- Parsing Without Validation ---


def test_parse_skips_value_validation(schema):
    expression = schema.parse({"key": "1", "!status": "closed"})
    terms = expression.clauses[0].terms
    assert FilterTerm("key", ("1",)) in terms
    assert FilterTerm("status", ("closed",), negated=True) in terms


def test_parse_keeps_unknown_keys_as_positive_fields(schema):
    (term,) = schema.parse({"!unknown": 1}).clauses[0].terms
    assert term == FilterTerm("!unknown", (1,))


def test_parse_still_requires_an_expression(schema):
    with pytest.raises(ValidationError):
        schema.parse(None)


# --- Matching Semantics ---


@pytest.mark.parametrize(
    "item, record, expected",
    [
        ({"status": "open"}, {"status": "open"}, True),
        ({"status": "open"}, {"status": "closed"}, False),
        ({"status": ["open", "draft"]}, {"status": "draft"}, True),
        ({"status": ["open", "draft"]}, {"status": "closed"}, False),
        ({"!status": ["closed", "archived"]}, {"status": "open"}, True),
        ({"!status": ["closed", "archived"]}, {"status": "archived"}, False),
        ({"!status": "closed"}, {"status": "closed"}, False),
        ({"status": "open", "done": False}, {"status": "open", "done": True}, False),
        ({"status": "open", "done": False}, {"status": "open", "done": False}, True),
    ],
)
def test_item_matching(schema, item, record, expected):
    assert schema.validate(item).matches(record) is expected


def test_list_expression_is_or_of_items(schema):
    expression = schema.validate([{"status": "open"}, {"!status": ["closed", "archived"]}])
    assert expression.matches({"status": "open"})
    assert expression.matches({"status": "draft"})
    assert not expression.matches({"status": "closed"})
    assert not expression.matches({"status": "archived"})

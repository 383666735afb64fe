# tests/base/test_query.py
import pytest

from async_key_model.base.exceptions import ValidationError
from async_key_model.base.fields import NumberField, StringField
from async_key_model.base.query import FindOptions, OrderBy, build_find_options

FIELDS = {"key": NumberField(), "title": StringField()}


def test_defaults():
    options = build_find_options(FIELDS)
    assert options == FindOptions(order_by=(), limit=None, offset=0)
    assert repr(options) == "FindOptions()"


def test_order_by_accepts_pairs_and_mappings():
    options = build_find_options(
        FIELDS,
        order_by=[("title", "desc"), {"column": "key"}, OrderBy("key", "asc")],
        limit=10,
        offset=5,
    )
    assert options.order_by == (
        OrderBy("title", "desc"),
        OrderBy("key", "asc"),
        OrderBy("key", "asc"),
    )
    assert options.order_by[0].descending
    assert options.limit == 10
    assert options.offset == 5


def test_invalid_options_are_reported_together():
    with pytest.raises(ValidationError) as exc_info:
        build_find_options(
            FIELDS, order_by=[("missing", "sideways")], limit=-1, offset=True
        )
    assert exc_info.value.kinds() == [
        "order_by_column",
        "order_by_direction",
        "pagination",
        "pagination",
    ]


def test_disabled_validation_passes_options_through():
    options = build_find_options(
        FIELDS, order_by=[("missing", "asc")], limit=-1, is_validation_disabled=True
    )
    assert options.order_by == (OrderBy("missing", "asc"),)
    assert options.limit == -1


def test_malformed_order_by_entry():
    with pytest.raises(ValidationError):
        build_find_options(FIELDS, order_by=["title"])


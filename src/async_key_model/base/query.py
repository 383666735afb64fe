# src/async_key_model/base/query.py
import logging
from dataclasses import dataclass
from typing import Any, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from async_key_model.base.exceptions import ValidationError, Violation
from async_key_model.base.fields import FieldConstraint, ObjectField

# --- Setup Logging ---
log = logging.getLogger(__name__)

SortDirection = Literal["asc", "desc"]
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class OrderBy:
    """Sort by ``column`` in the given direction."""

    column: str
    direction: SortDirection = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


OrderByInput = Union[OrderBy, Tuple[str, str], Mapping[str, str]]


# --- Find Options ---
@dataclass
class FindOptions:
    """Ordering and pagination of a select."""

    order_by: Tuple[OrderBy, ...] = ()
    limit: Optional[int] = None
    offset: int = 0

    def __repr__(self) -> str:
        parts = []
        if self.order_by:
            parts.append(f"order_by={list(self.order_by)!r}")
        if self.limit is not None:
            parts.append(f"limit={self.limit!r}")
        if self.offset:
            parts.append(f"offset={self.offset!r}")
        return f"FindOptions({', '.join(parts)})"


def _coerce_order_by(entry: Any) -> OrderBy:
    if isinstance(entry, OrderBy):
        return entry
    if isinstance(entry, Mapping):
        return OrderBy(entry.get("column"), entry.get("direction", "asc"))
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return OrderBy(entry[0], entry[1])
    raise ValidationError(
        [Violation(("order_by",), f"invalid order_by entry {entry!r}", "order_by_type")],
        title="Find options validation failed",
    )


def build_find_options(
    fields: Mapping[str, FieldConstraint],
    order_by: Optional[Sequence[OrderByInput]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    is_validation_disabled: bool = False,
) -> FindOptions:
    """
    Normalise ordering and pagination arguments into FindOptions.

    Unless validation is disabled, every ordered column must be a registered
    non-object field, directions must be ``"asc"`` or ``"desc"`` and
    limit/offset must be non-negative integers. All violations are reported together.
    """
    entries = tuple(_coerce_order_by(entry) for entry in order_by or ())
    options = FindOptions(order_by=entries, limit=limit, offset=offset)
    if is_validation_disabled:
        return options

    violations: List[Violation] = []
    for index, entry in enumerate(entries):
        if entry.column not in fields:
            violations.append(
                Violation(
                    ("order_by", index, "column"),
                    f"unknown column {entry.column!r}",
                    "order_by_column",
                )
            )
        elif isinstance(fields[entry.column], ObjectField):
            violations.append(
                Violation(
                    ("order_by", index, "column"),
                    f"column {entry.column!r} holds objects and cannot be ordered",
                    "order_by_column_type",
                )
            )
        if entry.direction not in SORT_DIRECTIONS:
            violations.append(
                Violation(
                    ("order_by", index, "direction"),
                    f"direction must be one of {SORT_DIRECTIONS}, got {entry.direction!r}",
                    "order_by_direction",
                )
            )
    for name, value in (("limit", limit), ("offset", offset)):
        if value is None and name == "limit":
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            violations.append(
                Violation(
                    (name,),
                    f"{name} must be a non-negative integer, got {value!r}",
                    "pagination",
                )
            )
    if violations:
        raise ValidationError(violations, title="Find options validation failed")
    log.debug(f"Built {options!r}")
    return options

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from async_key_model.base.exceptions import Location, Violation

log = logging.getLogger(__name__)

# Kind of a violation merged from errors of different kinds.
MERGED_KIND = "invalid_value"


def violations_from_pydantic(
    exc: PydanticValidationError, prefix: Optional[Location] = None
) -> List[Violation]:
    """
    Translate the errors of a pydantic ValidationError into Violations.

    Locations are reported by alias, which for compiled record models is the
    registry field name (or its negated key). ``prefix`` is prepended, e.g.
    the index of an item inside a list expression.

    A value failing a union (number: int or float; filter key: value or list
    of values) yields one error per union member, located below the member's
    internal tag. Errors sharing their first location component are merged
    into one violation at that key, so locations never expose the tags.
    """
    prefix = tuple(prefix or ())
    grouped: Dict[Any, List[Dict[str, Any]]] = {}
    for error in exc.errors(include_url=False):
        head = error["loc"][0] if error["loc"] else None
        grouped.setdefault(head, []).append(error)

    violations: List[Violation] = []
    for head, errors in grouped.items():
        if len(errors) == 1:
            (error,) = errors
            violations.append(
                Violation(prefix + tuple(error["loc"]), error["msg"], error["type"])
            )
            continue
        messages = list(dict.fromkeys(error["msg"] for error in errors))
        kinds = {error["type"] for error in errors}
        violations.append(
            Violation(
                prefix + ((head,) if head is not None else ()),
                "; ".join(messages),
                kinds.pop() if len(kinds) == 1 else MERGED_KIND,
            )
        )
    log.debug(f"Translated {len(violations)} violation(s) at {prefix!r}")
    return violations

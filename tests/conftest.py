# tests/conftest.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, TypedDict

import pytest

from async_key_model.base.fields import (
    BooleanField,
    DateField,
    NumberField,
    ObjectField,
    StringField,
)
from async_key_model.base.filter_expression import FilterExpression
from async_key_model.base.interfaces import Transaction
from async_key_model.base.key_model import KeyModel
from async_key_model.memory.base import MemoryTableClient

OPENED_AT = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# --- Test Models ---


class Ticket(TypedDict):
    key: int
    title: str
    status: str
    priority: int
    done: bool


class TicketCreateValues(TypedDict):
    title: str
    status: str
    priority: int
    done: bool


class TicketUpdateValues(TypedDict, total=False):
    title: str
    status: str
    priority: int
    done: bool


class TicketQueryItem(TypedDict, total=False):
    key: int
    title: str
    status: str
    priority: int
    done: bool


TICKET_FIELDS = {
    "key": NumberField(integer=True, minimum=1),
    "title": StringField(min_length=1, max_length=80),
    "status": StringField(choices=("open", "closed", "archived", "draft")),
    "priority": NumberField(minimum=0, maximum=5),
    "done": BooleanField(),
}


class TicketModel(KeyModel[Ticket, TicketCreateValues, TicketUpdateValues, TicketQueryItem]):
    def __init__(self, table_client: MemoryTableClient):
        super().__init__(table_client, "tickets", TICKET_FIELDS)


class RecordingTableClient(MemoryTableClient):
    """Memory table client that also records what each call received."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.calls: List[Dict[str, Any]] = []

    def _record(
        self,
        operation: str,
        expression: Optional[FilterExpression] = None,
        values: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        transaction: Optional[Transaction] = None,
    ) -> None:
        self.calls.append(
            {
                "operation": operation,
                "filter": expression.to_payload() if expression is not None else None,
                "values": dict(values) if values is not None else None,
                "limit": limit,
                "transaction": transaction,
            }
        )

    async def select(self, table, expression, options, logger, transaction=None):
        self._record("select", expression, limit=options.limit, transaction=transaction)
        return await super().select(table, expression, options, logger, transaction)

    async def update(self, table, expression, values, logger, limit=None, transaction=None):
        self._record("update", expression, values, limit, transaction)
        return await super().update(table, expression, values, logger, limit, transaction)

    async def delete(self, table, expression, logger, limit=None, transaction=None):
        self._record("delete", expression, limit=limit, transaction=transaction)
        return await super().delete(table, expression, logger, limit, transaction)


# --- Fixtures ---


@pytest.fixture
def logger():
    """Create a test logger."""
    _logger = logging.getLogger("test_key_model_logger")
    if not _logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.setLevel(logging.DEBUG)
        _logger.addHandler(handler)
        _logger.setLevel(logging.DEBUG)
        _logger.propagate = False
    return logging.LoggerAdapter(_logger, {})


@pytest.fixture
def ticket_fields():
    return dict(TICKET_FIELDS)


@pytest.fixture
def mixed_fields():
    """A registry exercising every constraint kind."""
    return {
        "key": StringField(min_length=1),
        "active": BooleanField(),
        "score": NumberField(minimum=0),
        "name": StringField(pattern=r"^[a-z]+$"),
        "settings": ObjectField(),
        "address": ObjectField(keys={"city": StringField(), "zip": NumberField(integer=True)}),
        "opened_at": DateField(earliest=datetime(2000, 1, 1, tzinfo=timezone.utc)),
        "note": StringField(nullable=True),
    }


@pytest.fixture
def table_client():
    return RecordingTableClient()


@pytest.fixture
def ticket_model(table_client):
    return TicketModel(table_client)


@pytest.fixture
def seeded_tickets(table_client):
    """Five tickets with keys 1..5."""
    return table_client.seed(
        "tickets",
        [
            {"title": "login", "status": "open", "priority": 3, "done": False},
            {"title": "logout", "status": "closed", "priority": 1, "done": True},
            {"title": "signup", "status": "archived", "priority": 2, "done": True},
            {"title": "profile", "status": "draft", "priority": 5, "done": False},
            {"title": "search", "status": "open", "priority": 4, "done": False},
        ],
    )

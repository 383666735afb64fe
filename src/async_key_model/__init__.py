# src/async_key_model/__init__.py

"""
Async Key Model Library Initialization.

This package provides validation-gated, asynchronous access to relational
tables. Field registries compile into filter, create and update schemas
which every model operation checks before delegating to a table client.

It initializes a logger with a NullHandler and makes the models, schema
builders, field constraints, exceptions and the in-memory table client
available at the top level.
"""

import logging

# --------------------------------------------------------------------------
# Logging Setup
# --------------------------------------------------------------------------
# Library logs are discarded unless the consuming application configures
# logging for "async_key_model".
logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())
logger.propagate = False

# --------------------------------------------------------------------------
# Field Constraint Exports
# --------------------------------------------------------------------------
from .base.fields import (
    BooleanField,
    DateField,
    FieldConstraint,
    NumberField,
    ObjectField,
    StringField,
)

# --------------------------------------------------------------------------
# Schema Exports
# --------------------------------------------------------------------------
from .base.filter_expression import (
    FieldKeyPair,
    FilterClause,
    FilterExpression,
    FilterExpressionSchema,
    FilterTerm,
    build_filter_expression_schema,
)
from .base.entity_schema import EntitySchema, build_entity_schemas

# --------------------------------------------------------------------------
# Model and Table Client Exports
# --------------------------------------------------------------------------
from .base.query import FindOptions, OrderBy
from .base.interfaces import TableClient
from .base.model import Model
from .base.key_model import KeyModel
from .memory.base import MemoryTableClient

# --------------------------------------------------------------------------
# Exception Exports
# --------------------------------------------------------------------------
from .base.exceptions import (
    KeyAlreadyExistsException,
    ObjectNotFoundException,
    StoreError,
    StructuralConfigurationError,
    ValidationError,
    Violation,
)

__all__ = [
    # Fields
    "FieldConstraint",
    "BooleanField",
    "NumberField",
    "StringField",
    "ObjectField",
    "DateField",
    # Schemas
    "FieldKeyPair",
    "FilterTerm",
    "FilterClause",
    "FilterExpression",
    "FilterExpressionSchema",
    "build_filter_expression_schema",
    "EntitySchema",
    "build_entity_schemas",
    # Models
    "FindOptions",
    "OrderBy",
    "TableClient",
    "Model",
    "KeyModel",
    "MemoryTableClient",
    # Exceptions
    "StructuralConfigurationError",
    "ValidationError",
    "Violation",
    "ObjectNotFoundException",
    "StoreError",
    "KeyAlreadyExistsException",
    # Logging
    "logger",
]

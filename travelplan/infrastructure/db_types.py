"""
Cross-dialect column types.
"""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Type

from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.types import CHAR, String, TypeDecorator


class GUID(TypeDecorator):
    """
    UUID column: native UUID on PostgreSQL, CHAR(36) text everywhere else.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


class ValueEnum(TypeDecorator):
    """
    Stores a str-valued Enum by its value ("dayPlanItem", "booked", ...)
    in a plain VARCHAR so new members never need a migration.
    """
    impl = String
    cache_ok = True

    def __init__(self, enum_class: Type[Enum], length: int = 32):
        super().__init__(length)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value)

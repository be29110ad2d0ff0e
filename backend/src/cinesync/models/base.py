"""Declarative base and shared column types."""

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import DeclarativeBase

# PostgreSQL types with a plain JSON fallback for SQLite databases
StringArray = ARRAY(String).with_variant(JSON(), "sqlite")
JsonDocument = JSONB(none_as_null=True).with_variant(JSON(none_as_null=True), "sqlite")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

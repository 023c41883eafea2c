"""Declarative base and portable column types shared by all services."""

from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Native UUID on PostgreSQL, CHAR(32) elsewhere.
GUID = Uuid(as_uuid=True)


class Base(DeclarativeBase):
    pass

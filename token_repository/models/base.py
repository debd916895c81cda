"""SQLAlchemy declarative base shared by all token tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class holding the metadata for all token tables."""

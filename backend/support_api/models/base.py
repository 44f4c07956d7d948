"""
Base model class for all SQLAlchemy models.

WHY: All external-store models share one metadata object so tests can
create the whole schema with a single ``create_all``.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass

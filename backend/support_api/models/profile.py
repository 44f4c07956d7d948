"""
Submitter profile and company models for the external ticket database.

WHAT: The people and companies external tickets point at.

WHY: The hosted schema normalizes submitter details out of the ticket
row; the local document flattens them back into ``userName``,
``userEmail``, ``userPhone`` and ``companyName``.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from support_api.models.base import Base
from support_api.models.ticket import new_uuid


class Profile(Base):
    """A ticket submitter."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}')>"


class Company(Base):
    """A customer company."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name='{self.name}')>"

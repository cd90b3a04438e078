"""Establishment model (owner-scoped)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Establishment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "establishments"

    # Opaque identity issued by the auth provider; never taken from a payload
    user_id: str = Field(max_length=255, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    address: str = Field(max_length=500, nullable=False)
    city: str = Field(max_length=100, nullable=False)
    state: str = Field(max_length=2, nullable=False)
    zip_code: str = Field(max_length=10, nullable=False)
    naics_code: Optional[str] = Field(default=None, max_length=6)
    industry_description: Optional[str] = Field(default=None, max_length=500)
    average_employees: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})

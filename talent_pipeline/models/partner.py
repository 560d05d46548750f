"""
Partner Model Module

Partners are the named top-level entities that own a set of client records.
Clients reference their partner by name only, so the name is the real key;
it is unique and case-sensitive.
"""
from typing import Optional
from sqlmodel import SQLModel, Field

from talent_pipeline.models.common import new_id, utc_now


class Partner(SQLModel, table=True):
    """
    Partner table model.

    Attributes:
        id: Unique identifier (UUID) automatically generated for each partner
        name: Trimmed display name, unique across the directory
        createdAt: ISO timestamp of when the partner was added
    """
    __tablename__ = "partners"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(unique=True, index=True, nullable=False)
    createdAt: str = Field(default_factory=utc_now)


class PartnerCreate(SQLModel):
    """Schema for resolving or creating a partner."""
    name: str = ""


class PartnerRead(SQLModel):
    """
    Schema for reading a partner.

    `id` is None for partners derived from client records while the
    directory itself is still empty.
    """
    id: Optional[str] = None
    name: str

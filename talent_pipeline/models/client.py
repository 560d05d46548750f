"""
Client Record Model Module

A client record is one client's full pipeline state and the unit of persistence:
the scalar fields plus the nested requirement tree, stored as a single row with
the tree inline in a JSON column. Any change anywhere in the tree is written by
rewriting that row.

`revision` counts the writes to a record. A writer that sends the revision it
loaded gets a ConflictError instead of overwriting a newer copy.
"""
from typing import List, Optional
from pydantic import model_validator
from sqlmodel import SQLModel, Field, JSON, Column

from talent_pipeline.models.common import new_id, normalize_payload, utc_now
from talent_pipeline.models.requirement import Application, Requirement

# Key names used by documents written before the fields were renamed
LEGACY_CLIENT_KEYS = {
    "client": "clientName",
    "engagement": "engagementType",
}

OTHER_ENGAGEMENT = "Others"


class ClientBase(SQLModel):
    """
    Scalar fields shared by every client record schema.

    engagementOther holds the free-text engagement type when engagementType is "Others".
    """
    startDate: str = ""
    clientName: str = ""
    spoc: str = ""
    location: str = ""
    roles: str = ""
    engagementType: str = ""
    engagementOther: str = ""
    currentStatus: str = ""
    status: str = ""
    nextSteps: str = ""
    details: str = ""

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        return normalize_payload(data, LEGACY_CLIENT_KEYS)


class ClientRecord(ClientBase, table=True):
    """
    Client record table model.

    Attributes:
        id: Unique identifier (UUID) automatically generated for each record
        partnerName: Owning partner, by name (no foreign key)
        requirements: Serialized Requirement documents, in display order
        revision: Number of writes applied since creation
        createdAt: ISO timestamp of creation, used for newest-first ordering
        updatedAt: ISO timestamp of the latest write
    """
    __tablename__ = "client_records"

    id: str = Field(default_factory=new_id, primary_key=True)
    partnerName: str = Field(index=True, nullable=False)

    # Embedded tree - stored inline, never in tables of its own
    requirements: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    revision: int = Field(default=0, nullable=False)
    createdAt: str = Field(default_factory=utc_now, index=True)
    updatedAt: str = Field(default_factory=utc_now)


class ClientCreate(ClientBase):
    """Schema for creating a client record. Requirements always start empty."""
    pass


class ClientUpdate(SQLModel):
    """
    Schema for a partial client record write.

    Only the fields present in the request are written. A null value counts as
    absent. `requirements` replaces the whole tree when present. `revision`, when
    present, must match the stored revision.
    """
    partnerName: Optional[str] = None
    startDate: Optional[str] = None
    clientName: Optional[str] = None
    spoc: Optional[str] = None
    location: Optional[str] = None
    roles: Optional[str] = None
    engagementType: Optional[str] = None
    engagementOther: Optional[str] = None
    currentStatus: Optional[str] = None
    status: Optional[str] = None
    nextSteps: Optional[str] = None
    details: Optional[str] = None
    requirements: Optional[List[Requirement]] = None
    revision: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        return normalize_payload(data, LEGACY_CLIENT_KEYS)


class ClientRead(ClientBase):
    """
    Schema for reading a client record.

    This is also the working copy the synchronization client mutates locally.
    """
    id: str
    partnerName: str
    requirements: List[Requirement] = []
    revision: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ApplicationsSave(SQLModel):
    """Body for replacing one requirement's application list."""
    applications: List[Application] = []
    uid: Optional[str] = None
    revision: Optional[int] = None

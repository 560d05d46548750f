"""
Embedded Record Models Module

This module defines the entities that live inside a client record's document:
Requirement, and the Candidate and Application lists nested in each requirement.
None of them has a table of its own; they are stored inline in the client
record's JSON column and are written only as part of a whole-record write.

Each entity carries a `uid` generated at creation. Callers still address entries
by position; the uid lets the addressing helpers detect that a cached position
now points at a different entry.

The *Input models are the validated request objects used to create or edit an
entity. They never carry a uid or nested lists, so an edit can't clobber them.
"""
import base64
import binascii
import mimetypes
from typing import List

from pydantic import field_validator, model_validator
from sqlmodel import SQLModel, Field

from talent_pipeline.core.config import settings
from talent_pipeline.core.errors import ValidationError
from talent_pipeline.models.common import new_uid, normalize_payload

# Key names used by documents written before the fields were renamed
LEGACY_APPLICATION_KEYS = {
    "r1": "round1",
    "r2": "round2",
    "r3": "round3",
    "r4": "round4",
    "final": "finalOutcome",
}
LEGACY_REQUIREMENT_KEYS = {
    "jobDescriptionFileDataUrl": "jobDescriptionFileBlob",
}


class CandidateFields(SQLModel):
    """A sourced individual proposed against a requirement."""
    candidateName: str = ""
    position: str = ""
    yearsOfExp: str = ""
    currentSalary: str = ""
    expectedSalary: str = ""
    marketSalary: str = ""
    clientSalary: str = ""
    hiringCostH2E: str = ""
    costToClientC2C: str = ""
    hourlyRate: str = ""

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        return normalize_payload(data)


class Candidate(CandidateFields):
    uid: str = Field(default_factory=new_uid)


class CandidateInput(CandidateFields):
    @field_validator("*", mode="after")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("candidateName")
    @classmethod
    def require_name(cls, v):
        if not v:
            raise ValueError("Candidate name is required")
        return v


class ApplicationFields(SQLModel):
    """One tracked interview-process entry for a requirement."""
    name: str = ""
    exp: str = ""
    work: str = ""
    current: str = ""
    expected: str = ""
    date: str = ""
    time: str = ""
    round1: str = ""
    round2: str = ""
    round3: str = ""
    round4: str = ""
    finalOutcome: str = ""

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        return normalize_payload(data, LEGACY_APPLICATION_KEYS)


class Application(ApplicationFields):
    uid: str = Field(default_factory=new_uid)


class ApplicationInput(ApplicationFields):
    @field_validator("*", mode="after")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def require_name(cls, v):
        if not v:
            raise ValueError("Applicant name is required")
        return v


class RequirementFields(SQLModel):
    """Scalar fields of an open role being sourced for a client."""
    roleName: str = ""
    numRequirements: str = ""
    yearsOfExp: str = ""
    location: str = ""
    typeOfPosition: str = ""
    contractDuration: str = ""
    startDate: str = ""
    numResumeSources: str = ""
    numShortlistedResumes: str = ""
    onedriveLink: str = ""
    notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        return normalize_payload(data, LEGACY_REQUIREMENT_KEYS)


class Requirement(RequirementFields):
    """
    A requirement as stored inside the client record.

    The job description file is embedded as a `data:` URL so it travels with the
    record; it is dropped or replaced only by an explicit attach or clear.
    """
    uid: str = Field(default_factory=new_uid)
    jobDescriptionFileName: str = ""
    jobDescriptionFileBlob: str = ""
    candidates: List[Candidate] = Field(default_factory=list)
    applications: List[Application] = Field(default_factory=list)

    def apply(self, fields: RequirementFields) -> None:
        """Overwrite the scalar fields, keeping uid, attachment and nested lists."""
        for name in RequirementFields.model_fields:
            setattr(self, name, getattr(fields, name))

    def attach_job_description(self, filename: str, content: bytes, content_type: str = None) -> None:
        if not filename:
            raise ValidationError("Job description file name is required")
        if len(content) > settings.MAX_JOB_DESCRIPTION_BYTES:
            raise ValidationError(
                f"Job description file is larger than {settings.MAX_JOB_DESCRIPTION_BYTES} bytes"
            )
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        encoded = base64.b64encode(content).decode("ascii")
        self.jobDescriptionFileName = filename
        self.jobDescriptionFileBlob = f"data:{content_type};base64,{encoded}"

    def clear_job_description(self) -> None:
        self.jobDescriptionFileName = ""
        self.jobDescriptionFileBlob = ""

    def job_description_content(self) -> bytes:
        """Decode the embedded job description file (empty if none is attached)."""
        if not self.jobDescriptionFileBlob:
            return b""
        header, _, payload = self.jobDescriptionFileBlob.partition(",")
        if not header.startswith("data:") or not header.endswith(";base64"):
            raise ValidationError("Job description is not a base64 data URL")
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValidationError("Job description data is corrupt") from exc


class RequirementInput(RequirementFields):
    @field_validator("*", mode="after")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("roleName")
    @classmethod
    def require_role(cls, v):
        if not v:
            raise ValueError("Role name is required")
        return v

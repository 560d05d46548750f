from .partner import Partner, PartnerCreate, PartnerRead
from .client import ClientRecord, ClientCreate, ClientUpdate, ClientRead, ApplicationsSave
from .requirement import (
    Requirement, RequirementInput,
    Candidate, CandidateInput,
    Application, ApplicationInput,
)

__all__ = [
    "Partner", "PartnerCreate", "PartnerRead",
    "ClientRecord", "ClientCreate", "ClientUpdate", "ClientRead", "ApplicationsSave",
    "Requirement", "RequirementInput",
    "Candidate", "CandidateInput",
    "Application", "ApplicationInput",
]

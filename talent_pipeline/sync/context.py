"""
Navigation Context Module

The caller's current selection (partner, client, requirement), passed
explicitly into the sync engine instead of being kept in ambient storage.
A selection below the partner is cleared whenever the selection above it
changes, and every cached position is stored together with the id or uid it
was read with so it can be checked, or re-resolved, on the next load.
"""
from dataclasses import dataclass
from typing import Optional

from talent_pipeline.models.client import ClientRead
from talent_pipeline.models.requirement import Requirement


@dataclass
class NavigationContext:
    partner_name: Optional[str] = None
    client_position: Optional[int] = None
    client_id: Optional[str] = None
    requirement_position: Optional[int] = None
    requirement_uid: Optional[str] = None

    def select_partner(self, partner_name: str) -> None:
        self.partner_name = partner_name
        self.clear_client()

    def select_client(self, position: int, record: ClientRead) -> None:
        self.client_position = position
        self.client_id = record.id
        self.clear_requirement()

    def select_requirement(self, position: int, requirement: Requirement) -> None:
        self.requirement_position = position
        self.requirement_uid = requirement.uid

    def clear_client(self) -> None:
        self.client_position = None
        self.client_id = None
        self.clear_requirement()

    def clear_requirement(self) -> None:
        self.requirement_position = None
        self.requirement_uid = None

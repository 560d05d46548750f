"""
Client Repository Module

Per-partner collection of client records. Every write goes through `_write`,
which applies the changed fields with a compare-and-swap on `revision`: the
UPDATE only matches if the row still has the revision that was read, and the
revision is bumped in the same statement. Two writers can therefore never
interleave, and a caller that sends the revision it loaded is told about a
newer write (ConflictError) instead of silently discarding it.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from talent_pipeline.core import addressing
from talent_pipeline.core.errors import ConflictError, NotFoundError, ValidationError
from talent_pipeline.models.client import (
    OTHER_ENGAGEMENT, ClientCreate, ClientRecord, ClientUpdate,
)
from talent_pipeline.models.common import utc_now
from talent_pipeline.models.requirement import Application, Requirement
from talent_pipeline.services.partners import PartnerDirectory

logger = logging.getLogger(__name__)


def _apply_engagement_rule(values: Dict[str, Any]) -> None:
    """engagementOther is required for "Others" and cleared for any other type."""
    if values.get("engagementType") == OTHER_ENGAGEMENT:
        if not values.get("engagementOther"):
            raise ValidationError("Please specify the engagement type for Others")
    else:
        values["engagementOther"] = ""


def _has_uids(requirements: List[Dict[str, Any]]) -> bool:
    for item in requirements or []:
        if not item.get("uid"):
            return False
        for key in ("candidates", "applications"):
            if any(not entry.get("uid") for entry in item.get(key) or []):
                return False
    return True


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db
        self.partners = PartnerDirectory(db)

    def list_for_partner(self, partner_name: str) -> List[ClientRecord]:
        """Records of one partner, newest first. The name is matched exactly."""
        statement = (
            select(ClientRecord)
            .where(ClientRecord.partnerName == partner_name)
            .order_by(ClientRecord.createdAt.desc())
        )
        records = list(self.db.exec(statement).all())
        self._assign_missing_uids(records)
        return records

    def get(self, client_id: str) -> ClientRecord:
        record = self.db.get(ClientRecord, client_id)
        if not record:
            raise NotFoundError("Client not found")
        self._assign_missing_uids([record])
        return record

    def _assign_missing_uids(self, records: List[ClientRecord]) -> None:
        """
        Store uids for embedded entries that were saved without one, so that
        repeated reads return the same uids. The revision is not bumped, but
        the update only matches the revision that was read.
        """
        pending = [record for record in records if not _has_uids(record.requirements)]
        if not pending:
            return
        for record in pending:
            requirements = [item.model_dump() for item in self.requirements_of(record)]
            statement = (
                update(ClientRecord)
                .where(ClientRecord.id == record.id)
                .where(ClientRecord.revision == record.revision)
                .values(requirements=requirements)
            )
            self.db.connection().execute(statement)
        self.db.commit()
        logger.info("Assigned uids to embedded entries of %d client record(s)", len(pending))

    def create(self, partner_name: str, fields: ClientCreate) -> ClientRecord:
        """
        Create a client record with an empty requirement list.

        The trimmed partner name is stored on the record and upserted into the
        partner directory in the same transaction.

        Raises:
            ValidationError: If clientName or the partner name is empty, or
                engagementOther is missing for the "Others" engagement type
        """
        partner_name = (partner_name or "").strip()
        if not partner_name:
            raise ValidationError("Partner name is required")
        values = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in fields.model_dump().items()
        }
        if not values["clientName"]:
            raise ValidationError("Client name is required")
        _apply_engagement_rule(values)

        record = ClientRecord(partnerName=partner_name, requirements=[], **values)
        self.db.add(record)
        self.partners.get_or_create(partner_name, commit=False)
        self.db.commit()
        self.db.refresh(record)
        logger.info("Created client %s (%r) for partner %r", record.id, record.clientName, partner_name)
        return record

    def replace(self, client_id: str, update_data: ClientUpdate) -> ClientRecord:
        """
        Write the fields the caller supplied; every omitted field keeps its stored value.

        Supplying `requirements` replaces the whole embedded tree. Entries
        without a uid are given one here, so callers should adopt the returned
        record rather than keep using the copy they sent.

        Raises:
            NotFoundError: If the record doesn't exist
            ConflictError: If `revision` was supplied and is not the stored revision
            ValidationError: If clientName or partnerName is supplied empty
        """
        record = self.get(client_id)
        changes = update_data.model_dump(exclude_unset=True)
        expected_revision = changes.pop("revision", None)

        if "clientName" in changes:
            changes["clientName"] = changes["clientName"].strip()
            if not changes["clientName"]:
                raise ValidationError("Client name is required")

        new_partner = None
        if "partnerName" in changes:
            changes["partnerName"] = changes["partnerName"].strip()
            if not changes["partnerName"]:
                raise ValidationError("Partner name is required")
            if changes["partnerName"] != record.partnerName:
                new_partner = changes["partnerName"]

        if "engagementType" in changes or "engagementOther" in changes:
            engagement = {
                "engagementType": changes.get("engagementType", record.engagementType),
                "engagementOther": changes.get("engagementOther", record.engagementOther),
            }
            _apply_engagement_rule(engagement)
            changes.update(engagement)

        if "requirements" in changes:
            # Dump the validated models, not the exclude_unset dict, so generated uids are kept
            changes["requirements"] = [
                requirement.model_dump() for requirement in update_data.requirements
            ]

        return self._write(record, changes, expected_revision, partner_name=new_partner)

    def delete(self, client_id: str) -> None:
        record = self.get(client_id)
        self.db.delete(record)
        self.db.commit()
        logger.info("Deleted client %s", client_id)

    def requirements_of(self, record: ClientRecord) -> List[Requirement]:
        return [Requirement.model_validate(item) for item in record.requirements or []]

    def get_applications(self, client_id: str, position: int, uid: Optional[str] = None) -> List[Application]:
        record = self.get(client_id)
        requirement = addressing.resolve(self.requirements_of(record), position, uid, "Requirement")
        return requirement.applications

    def save_applications(
        self,
        client_id: str,
        position: int,
        applications: List[Application],
        uid: Optional[str] = None,
        revision: Optional[int] = None,
    ) -> ClientRecord:
        """Replace the application list of the requirement at `position`."""
        record = self.get(client_id)
        requirements = self.requirements_of(record)
        requirement = addressing.resolve(requirements, position, uid, "Requirement")
        requirement.applications = list(applications)
        changes = {"requirements": [item.model_dump() for item in requirements]}
        return self._write(record, changes, revision)

    def _write(
        self,
        record: ClientRecord,
        changes: Dict[str, Any],
        expected_revision: Optional[int],
        partner_name: Optional[str] = None,
    ) -> ClientRecord:
        """Apply `changes` and, if given, upsert `partner_name`; both commit or neither does."""
        current_revision = record.revision
        if expected_revision is not None and expected_revision != current_revision:
            raise ConflictError(
                f"Client {record.id} is at revision {current_revision}, "
                f"not {expected_revision}; reload and apply the change again"
            )

        values = dict(changes, revision=current_revision + 1, updatedAt=utc_now())
        statement = (
            update(ClientRecord)
            .where(ClientRecord.id == record.id)
            .where(ClientRecord.revision == current_revision)
            .values(**values)
        )
        result = self.db.connection().execute(statement)
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError(f"Client {record.id} was modified by another writer; reload and try again")

        if partner_name:
            self.partners.get_or_create(partner_name, commit=False)
        self.db.commit()
        self.db.refresh(record)
        logger.info("Wrote client %s at revision %d (%s)", record.id, record.revision, ", ".join(sorted(changes)))
        return record

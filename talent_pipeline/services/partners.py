"""
Partner Directory Module

Resolves and creates partners by name. Client records reference partners by a
free-typed name string, so there are two sources for "which partners exist":
the partners table and the partnerName values on client records. Creating a
client upserts its partner to keep them aligned; while the table is still
empty, listing falls back to the names found on client records.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from talent_pipeline.core.errors import ConflictError, ValidationError
from talent_pipeline.models.client import ClientRecord
from talent_pipeline.models.partner import Partner, PartnerRead

logger = logging.getLogger(__name__)


class PartnerDirectory:
    def __init__(self, db: Session):
        self.db = db

    def list_partners(self) -> List[PartnerRead]:
        """
        List partners sorted by name.

        With an empty directory, the distinct partner names found on client
        records are returned instead (with no id). They are not persisted.
        """
        partners = self.db.exec(select(Partner).order_by(Partner.name)).all()
        if partners:
            return [PartnerRead(id=partner.id, name=partner.name) for partner in partners]

        names = self.db.exec(
            select(ClientRecord.partnerName).distinct().order_by(ClientRecord.partnerName)
        ).all()
        if names:
            logger.warning(
                "Partner directory is empty; derived %d partner name(s) from client records", len(names)
            )
        return [PartnerRead(name=name) for name in names]

    def get(self, name: str) -> Optional[Partner]:
        return self.db.exec(select(Partner).where(Partner.name == name)).first()

    def get_or_create(self, name: str, commit: bool = True) -> Tuple[Partner, bool]:
        """
        Resolve a partner by trimmed name, creating it if it doesn't exist.

        With `commit=False` a new partner is only flushed, so it lands or is
        rolled back together with the caller's transaction.

        Returns:
            Tuple of the partner and whether it was created by this call

        Raises:
            ValidationError: If the name is empty after trimming
            ConflictError: If `commit=False` and another request created the
                same name concurrently
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Partner name is required")

        existing = self.get(name)
        if existing:
            return existing, False

        partner = Partner(name=name)
        self.db.add(partner)
        try:
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except IntegrityError:
            # Another request inserted the same name between our read and write
            self.db.rollback()
            if not commit:
                raise ConflictError(f"Partner {name!r} was created concurrently; try again")
            existing = self.get(name)
            if existing is None:
                raise
            return existing, False

        if commit:
            self.db.refresh(partner)
        logger.info("Created partner %r", name)
        return partner, True

    def seed(self, names: Iterable[str]) -> List[Partner]:
        """Insert the given names, but only into an empty directory."""
        if self.db.exec(select(Partner).limit(1)).first():
            return []
        created = []
        for name in names:
            partner, was_created = self.get_or_create(name)
            if was_created:
                created.append(partner)
        return created

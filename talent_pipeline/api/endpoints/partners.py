"""
Partner Endpoints Module

Lists partners and resolves/creates them by name.
"""
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from talent_pipeline.db.session import get_db
from talent_pipeline.models.partner import PartnerCreate, PartnerRead
from talent_pipeline.services.partners import PartnerDirectory

router = APIRouter()


@router.get("", response_model=List[PartnerRead])
def list_partners(db: Session = Depends(get_db)):
    """
    Retrieve all partners sorted by name.

    While the partner table is empty, the partner names found on client
    records are returned instead, without ids.
    """
    return PartnerDirectory(db).list_partners()


@router.post("", response_model=PartnerRead, status_code=status.HTTP_201_CREATED)
def create_partner(
    partner_in: PartnerCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Resolve a partner by name, creating it if needed.

    Args:
        partner_in: Body with the partner name (trimmed before lookup)
        response: Used to downgrade the status to 200 when the partner existed
        db: Database session

    Returns:
        PartnerRead: The existing or newly created partner

    Raises:
        ValidationError (400): If the name is empty after trimming
    """
    partner, created = PartnerDirectory(db).get_or_create(partner_in.name)
    if not created:
        response.status_code = status.HTTP_200_OK
    return partner

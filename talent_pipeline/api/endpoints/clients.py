"""
Client Endpoints Module

CRUD endpoints for client records. Listing and creation are scoped by partner
name; replace and delete address a record by id. A client record is always
returned whole, with its embedded requirement tree.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from talent_pipeline.db.session import get_db
from talent_pipeline.models.client import ClientCreate, ClientRead, ClientUpdate
from talent_pipeline.services.clients import ClientRepository

router = APIRouter()


@router.get("/{partner_name}", response_model=List[ClientRead])
def list_clients(partner_name: str, db: Session = Depends(get_db)):
    """
    Retrieve all client records of a partner, newest first.

    The partner name is matched exactly (no trimming or case folding).
    """
    return ClientRepository(db).list_for_partner(partner_name)


@router.post("/{partner_name}", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    partner_name: str,
    client_in: ClientCreate,
    db: Session = Depends(get_db),
):
    """
    Create a client record for a partner.

    The record starts with no requirements. The partner is created in the
    directory if it isn't there yet.

    Raises:
        ValidationError (400): If clientName or the trimmed partner name is empty
    """
    return ClientRepository(db).create(partner_name, client_in)


@router.put("/{client_id}", response_model=ClientRead)
def replace_client(
    client_id: str,
    client_update: ClientUpdate,
    db: Session = Depends(get_db),
):
    """
    Write the supplied fields of a client record.

    Omitted fields are preserved. Sending `requirements` replaces the whole
    requirement tree. Sending `revision` makes the write conditional on the
    record still being at that revision.

    Raises:
        NotFoundError (404): If the record doesn't exist
        ConflictError (409): If the revision is stale
    """
    return ClientRepository(db).replace(client_id, client_update)


@router.delete("/{client_id}")
def delete_client(client_id: str, db: Session = Depends(get_db)):
    """
    Delete a client record and everything embedded in it.

    Raises:
        NotFoundError (404): If the record doesn't exist
    """
    ClientRepository(db).delete(client_id)
    return {"ok": True}

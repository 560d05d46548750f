"""
Application Tracker Endpoints Module

Reads and replaces the application list of a single requirement, addressed by
client id and requirement position. The partner segment of the path is kept for
URL compatibility and is not used for lookup.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from talent_pipeline.db.session import get_db
from talent_pipeline.models.client import ApplicationsSave
from talent_pipeline.models.requirement import Application
from talent_pipeline.services.clients import ClientRepository

router = APIRouter()


@router.get("/{partner_name}/{client_id}/{req_index}", response_model=List[Application])
def list_applications(
    partner_name: str,
    client_id: str,
    req_index: int,
    uid: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Get the applications tracked for one requirement.

    Args:
        req_index: Position of the requirement in the client record
        uid: Optional uid the caller saw at that position; a mismatch is a 409

    Raises:
        NotFoundError (404): Unknown client or position out of range
        StaleReferenceError (409): The position now holds a different requirement
    """
    return ClientRepository(db).get_applications(client_id, req_index, uid)


@router.post("/{partner_name}/{client_id}/{req_index}")
def save_applications(
    partner_name: str,
    client_id: str,
    req_index: int,
    body: ApplicationsSave,
    db: Session = Depends(get_db),
):
    """
    Replace the applications tracked for one requirement.

    The rest of the client record is left as stored.
    """
    record = ClientRepository(db).save_applications(
        client_id, req_index, body.applications, uid=body.uid, revision=body.revision
    )
    return {"ok": True, "revision": record.revision}

"""
Synchronization Engine Module

Bridges a caller's local working copy of a client record with the store.

- `load()` fetches a partner's records; callers pick one by position.
- `checkout()` hands out a WorkingCopy: a deep copy the caller mutates freely,
  with no network traffic per nested edit.
- `commit()` sends the whole working copy, including the revision it was
  loaded at. The store rejects it with ConflictError if another writer got
  there first, so an out-of-date copy can't silently discard their change.
  On success the record the store returns becomes the new working copy.
  On failure the working copy is left exactly as it was so the caller can retry.

Only one commit per record can be in flight at a time; a second one is
rejected rather than queued.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Set, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from talent_pipeline.core import addressing
from talent_pipeline.core.errors import ConflictError, CRMError, NotFoundError, ValidationError
from talent_pipeline.models.client import ClientCreate, ClientRead, ClientUpdate
from talent_pipeline.models.partner import PartnerRead
from talent_pipeline.models.requirement import (
    Application, ApplicationInput, Candidate, CandidateInput, Requirement, RequirementInput,
)
from talent_pipeline.sync.context import NavigationContext
from talent_pipeline.sync.transport import ApiTransport

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


def parse_input(input_class: Type[InputT], data: Union[InputT, Dict[str, Any]]) -> InputT:
    """Validate user-supplied values before anything is mutated."""
    if isinstance(data, input_class):
        return data
    try:
        return input_class.model_validate(data)
    except SchemaError as exc:
        messages = "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())
        raise ValidationError(messages) from exc


class WorkingCopy:
    """
    A locally mutable copy of one client record.

    Nested entries are addressed by position. Every method also accepts the
    uid the caller saw at that position; when given, an entry that has moved
    raises StaleReferenceError instead of being edited by mistake.

    `editing_requirement` is the position of the requirement open in an edit
    flow, or None. It is cleared on commit and on cancel.
    """

    def __init__(self, engine: "SyncEngine", record: ClientRead):
        self.engine = engine
        self.record = record
        self.editing_requirement: Optional[int] = None
        self._editing_uid: Optional[str] = None

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def requirements(self) -> List[Requirement]:
        return self.record.requirements

    # === Client fields ===
    def update_fields(self, data: Union[ClientUpdate, Dict[str, Any]]) -> None:
        """Set scalar client fields. Nested requirements and the revision can't be set this way."""
        fields = parse_input(ClientUpdate, data)
        changes = fields.model_dump(exclude_unset=True, exclude={"requirements", "revision"})
        if "clientName" in changes:
            changes["clientName"] = changes["clientName"].strip()
            if not changes["clientName"]:
                raise ValidationError("Client name is required")
        for key, value in changes.items():
            setattr(self.record, key, value)

    # === Requirements ===
    def requirement(self, position: int, uid: Optional[str] = None) -> Requirement:
        return addressing.resolve(self.requirements, position, uid, "Requirement")

    def add_requirement(self, data: Union[RequirementInput, Dict[str, Any]]) -> int:
        fields = parse_input(RequirementInput, data)
        return addressing.append(self.requirements, Requirement(**fields.model_dump()))

    def edit_requirement(
        self, position: int, data: Union[RequirementInput, Dict[str, Any]], uid: Optional[str] = None
    ) -> Requirement:
        """Overwrite a requirement's fields; its candidates, applications and attachment are kept."""
        fields = parse_input(RequirementInput, data)
        requirement = self.requirement(position, uid)
        requirement.apply(fields)
        return requirement

    def delete_requirement(self, position: int, uid: Optional[str] = None) -> Requirement:
        removed = addressing.remove_at(self.requirements, position, uid, "Requirement")
        if self._editing_uid == removed.uid:
            self.cancel_edit()
        elif self._editing_uid is not None:
            self.editing_requirement = addressing.position_of(self.requirements, self._editing_uid, "Requirement")
        return removed

    def begin_requirement_edit(self, position: int, uid: Optional[str] = None) -> Requirement:
        requirement = self.requirement(position, uid)
        self.editing_requirement = position
        self._editing_uid = requirement.uid
        return requirement

    def save_requirement_edit(self, data: Union[RequirementInput, Dict[str, Any]]) -> Requirement:
        if self.editing_requirement is None:
            raise ValidationError("No requirement is being edited")
        return self.edit_requirement(self.editing_requirement, data, uid=self._editing_uid)

    def cancel_edit(self) -> None:
        self.editing_requirement = None
        self._editing_uid = None

    def attach_job_description(
        self, position: int, filename: str, content: bytes, content_type: str = None, uid: Optional[str] = None
    ) -> None:
        self.requirement(position, uid).attach_job_description(filename, content, content_type)

    def clear_job_description(self, position: int, uid: Optional[str] = None) -> None:
        self.requirement(position, uid).clear_job_description()

    # === Candidates ===
    def add_candidate(
        self, requirement_position: int, data: Union[CandidateInput, Dict[str, Any]], requirement_uid: str = None
    ) -> int:
        fields = parse_input(CandidateInput, data)
        requirement = self.requirement(requirement_position, requirement_uid)
        return addressing.append(requirement.candidates, Candidate(**fields.model_dump()))

    def remove_candidate(
        self, requirement_position: int, candidate_position: int, requirement_uid: str = None, candidate_uid: str = None
    ) -> Candidate:
        requirement = self.requirement(requirement_position, requirement_uid)
        return addressing.remove_at(requirement.candidates, candidate_position, candidate_uid, "Candidate")

    # === Applications ===
    def add_application(
        self, requirement_position: int, data: Union[ApplicationInput, Dict[str, Any]], requirement_uid: str = None
    ) -> int:
        fields = parse_input(ApplicationInput, data)
        requirement = self.requirement(requirement_position, requirement_uid)
        return addressing.append(requirement.applications, Application(**fields.model_dump()))

    def remove_application(
        self, requirement_position: int, application_position: int, requirement_uid: str = None, application_uid: str = None
    ) -> Application:
        requirement = self.requirement(requirement_position, requirement_uid)
        return addressing.remove_at(requirement.applications, application_position, application_uid, "Application")

    # === Persistence ===
    def commit(self) -> ClientRead:
        return self.engine.commit(self)

    def adopt(self, record: ClientRead) -> None:
        self.record = record.model_copy(deep=True)
        self.cancel_edit()


class SyncEngine:
    """
    Client-side synchronization over the pipeline API.

    `records` is the list from the latest `load()`, in the store's order
    (newest first). It is a disposable cache: positions into it are only
    meaningful until the next load.
    """

    def __init__(self, transport: ApiTransport = None):
        self.transport = transport or ApiTransport()
        self.partner_name: Optional[str] = None
        self.records: List[ClientRead] = []
        self._in_flight: Set[str] = set()
        self._in_flight_lock = threading.Lock()

    # === Partners ===
    def list_partners(self) -> List[PartnerRead]:
        return [PartnerRead.model_validate(item) for item in self.transport.list_partners()]

    def add_partner(self, name: str) -> PartnerRead:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Partner name is required")
        return PartnerRead.model_validate(self.transport.add_partner(name))

    # === Client list ===
    def load(self, partner_name: str) -> List[ClientRead]:
        self.records = [ClientRead.model_validate(item) for item in self.transport.list_clients(partner_name)]
        self.partner_name = partner_name
        logger.debug("Loaded %d client(s) for partner %r", len(self.records), partner_name)
        return self.records

    def create_client(self, partner_name: str, data: Union[ClientCreate, Dict[str, Any]]) -> ClientRead:
        fields = parse_input(ClientCreate, data)
        if not fields.clientName.strip():
            raise ValidationError("Client name is required")
        created = ClientRead.model_validate(self.transport.create_client(partner_name, fields.model_dump()))
        if created.partnerName == self.partner_name:
            self.records.insert(0, created)
        return created

    def delete_client(self, position: int, client_id: Optional[str] = None) -> None:
        record = self._resolve_record(position, client_id)
        self.transport.delete_client(record.id)
        self.records = [item for item in self.records if item.id != record.id]

    def _resolve_record(self, position: int, client_id: Optional[str] = None) -> ClientRead:
        """
        Find a loaded record by position, checked against the id cached with it.

        If the position now holds a different record (the list changed since the
        position was cached), the record is looked up by id instead.
        """
        if isinstance(position, int) and 0 <= position < len(self.records):
            record = self.records[position]
            if client_id is None or record.id == client_id:
                return record
        if client_id is not None:
            for index, record in enumerate(self.records):
                if record.id == client_id:
                    logger.info("Client %s moved from position %s to %d", client_id, position, index)
                    return record
            raise NotFoundError(f"Client {client_id} no longer exists")
        raise NotFoundError(f"Client not found at position {position}")

    # === Working copies ===
    def checkout(self, position: int, client_id: Optional[str] = None) -> WorkingCopy:
        record = self._resolve_record(position, client_id)
        return WorkingCopy(self, record.model_copy(deep=True))

    def open(self, context: NavigationContext) -> WorkingCopy:
        """
        Reload the selected partner's records and check out the selected client.

        The context's cached client position is corrected if the client moved.
        Its requirement selection is kept only if the uid still matches the
        requirement at that position.
        """
        if context.partner_name is None or context.client_position is None:
            raise NotFoundError("No client selected")
        self.load(context.partner_name)
        copy = self.checkout(context.client_position, context.client_id)
        context.client_position = next(i for i, item in enumerate(self.records) if item.id == copy.id)
        context.client_id = copy.id

        if context.requirement_position is not None:
            try:
                copy.requirement(context.requirement_position, context.requirement_uid)
            except CRMError:
                logger.info("Cached requirement selection for client %s is stale; cleared", copy.id)
                context.clear_requirement()
        return copy

    def commit(self, copy: WorkingCopy) -> ClientRead:
        """
        Persist the whole working copy and adopt the store's version of it.

        Raises:
            ConflictError: Another commit for this record is in flight, or the
                store has a newer revision than the working copy
            NotFoundError: The record was deleted
            TransportError: The API could not be reached
        """
        client_id = copy.id
        with self._in_flight_lock:
            if client_id in self._in_flight:
                raise ConflictError(f"A commit for client {client_id} is already in progress")
            self._in_flight.add(client_id)

        try:
            payload = copy.record.model_dump(mode="json", exclude={"id", "createdAt", "updatedAt"})
            updated = ClientRead.model_validate(self.transport.replace_client(client_id, payload))
        except CRMError as exc:
            logger.warning("Commit of client %s failed, working copy kept: %s", client_id, exc.message)
            raise
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(client_id)

        copy.adopt(updated)
        self.records = [updated if item.id == client_id else item for item in self.records]
        logger.info("Committed client %s at revision %d", client_id, updated.revision)
        return updated

    # === Application tracker ===
    def load_applications(self, context: NavigationContext) -> List[Application]:
        """Fetch the selected requirement's applications straight from the store."""
        self._require_requirement(context)
        items = self.transport.get_applications(
            context.partner_name, context.client_id, context.requirement_position, context.requirement_uid
        )
        return [Application.model_validate(item) for item in items]

    def save_applications(self, context: NavigationContext, applications: List[Application], revision: int = None) -> int:
        """Replace the selected requirement's applications; returns the record's new revision."""
        self._require_requirement(context)
        result = self.transport.save_applications(
            context.partner_name,
            context.client_id,
            context.requirement_position,
            [application.model_dump(mode="json") for application in applications],
            uid=context.requirement_uid,
            revision=revision,
        )
        return result["revision"]

    @staticmethod
    def _require_requirement(context: NavigationContext) -> None:
        if context.partner_name is None or context.client_id is None or context.requirement_position is None:
            raise NotFoundError("No requirement selected")

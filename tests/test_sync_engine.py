import pytest
import requests

from talent_pipeline.core.errors import (
    ConflictError, NotFoundError, StaleReferenceError, TransportError, ValidationError,
)
from talent_pipeline.models.requirement import Application
from talent_pipeline.sync import ApiTransport, NavigationContext, SyncEngine


def _requirement(name, **fields):
    return dict(roleName=name, **fields)


def test_load_and_checkout_by_position(sync, acme_client):
    records = sync.load("Acme")

    copy = sync.checkout(0)

    assert [r.id for r in records] == [acme_client["id"]]
    assert copy.id == acme_client["id"]
    assert copy.record is not records[0]


def test_checkout_out_of_range(sync, acme_client):
    sync.load("Acme")

    with pytest.raises(NotFoundError):
        sync.checkout(1)


def test_appended_requirements_keep_their_order_through_edits(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    for i in range(5):
        copy.add_requirement(_requirement(f"Role {i}"))
    copy.edit_requirement(1, _requirement("Role 1", location="Pune"))
    copy.edit_requirement(3, _requirement("Role 3", yearsOfExp="5"))
    copy.update_fields({"status": "Sourcing"})

    committed = copy.commit()

    assert [r.roleName for r in committed.requirements] == [f"Role {i}" for i in range(5)]
    assert committed.requirements[1].location == "Pune"
    assert committed.requirements[3].yearsOfExp == "5"
    assert committed.status == "Sourcing"


def test_mutations_stay_local_until_commit(sync, other_sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("Backend"))

    assert other_sync.load("Acme")[0].requirements == []

    copy.commit()

    assert [r.roleName for r in other_sync.load("Acme")[0].requirements] == ["Backend"]


def test_commit_adopts_the_stored_record(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("Backend"))
    local_uid = copy.requirements[0].uid

    committed = copy.commit()

    assert copy.record.revision == 1
    assert copy.record.model_dump() == committed.model_dump()
    assert copy.record is not committed
    assert copy.requirements[0].uid == local_uid
    assert sync.records[0].revision == 1


def test_whole_record_round_trip(sync, other_sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    first = copy.add_requirement(_requirement("Data Engineer", numRequirements="2", onedriveLink="https://x"))
    second = copy.add_requirement(_requirement("QA Lead", notes="urgent"))
    copy.add_candidate(first, {"candidateName": "Ada", "currentSalary": "10", "hourlyRate": "40"})
    copy.add_candidate(first, {"candidateName": "Grace", "position": "Senior"})
    copy.add_application(first, {"name": "Ada", "round1": "Cleared", "date": "2024-05-01"})
    copy.add_candidate(second, {"candidateName": "Linus"})
    copy.attach_job_description(first, "jd.pdf", b"%PDF-1.4 job description")
    committed = copy.commit()

    reloaded = other_sync.load("Acme")[0]

    assert reloaded.model_dump() == committed.model_dump()
    assert [c.candidateName for c in reloaded.requirements[0].candidates] == ["Ada", "Grace"]
    assert reloaded.requirements[0].job_description_content() == b"%PDF-1.4 job description"
    assert reloaded.requirements[0].jobDescriptionFileBlob.startswith("data:application/pdf;base64,")


def test_remove_candidate_and_application_shift_positions(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    position = copy.add_requirement(_requirement("Backend"))
    for name in ("A", "B", "C"):
        copy.add_candidate(position, {"candidateName": name})
        copy.add_application(position, {"name": name})

    copy.remove_candidate(position, 0)
    copy.remove_application(position, 1)
    committed = copy.commit()

    requirement = committed.requirements[0]
    assert [c.candidateName for c in requirement.candidates] == ["B", "C"]
    assert [a.name for a in requirement.applications] == ["A", "C"]


def test_stale_nested_uid_is_rejected(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    for name in ("R0", "R1", "R2"):
        copy.add_requirement(_requirement(name))
    cached_uid = copy.requirements[1].uid

    copy.delete_requirement(0)

    with pytest.raises(StaleReferenceError):
        copy.add_candidate(1, {"candidateName": "Ada"}, requirement_uid=cached_uid)
    with pytest.raises(NotFoundError):
        copy.remove_candidate(0, 0)


def test_edit_keeps_candidates_and_attachment(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    position = copy.add_requirement(_requirement("Backend"))
    copy.add_candidate(position, {"candidateName": "Ada"})
    copy.attach_job_description(position, "jd.txt", b"hello")

    copy.edit_requirement(position, _requirement("Backend Lead", notes="renamed"))

    requirement = copy.requirements[position]
    assert requirement.roleName == "Backend Lead"
    assert [c.candidateName for c in requirement.candidates] == ["Ada"]
    assert requirement.jobDescriptionFileName == "jd.txt"

    copy.clear_job_description(position)
    assert requirement.jobDescriptionFileName == ""
    assert requirement.job_description_content() == b""


def test_job_description_size_limit(sync, acme_client, monkeypatch):
    from talent_pipeline.core.config import settings

    monkeypatch.setattr(settings, "MAX_JOB_DESCRIPTION_BYTES", 4)
    sync.load("Acme")
    copy = sync.checkout(0)
    position = copy.add_requirement(_requirement("Backend"))

    with pytest.raises(ValidationError):
        copy.attach_job_description(position, "jd.txt", b"too large")


def test_inputs_are_validated_before_mutation(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)

    with pytest.raises(ValidationError, match="Role name is required"):
        copy.add_requirement({"roleName": "   "})
    position = copy.add_requirement(_requirement("Backend"))
    with pytest.raises(ValidationError, match="Candidate name is required"):
        copy.add_candidate(position, {"candidateName": ""})
    with pytest.raises(ValidationError):
        copy.update_fields({"clientName": " "})

    assert len(copy.requirements) == 1
    assert copy.requirements[0].candidates == []
    assert copy.record.clientName == "Globex"


def test_editing_index_is_cleared_after_commit_and_cancel(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("R0"))
    copy.add_requirement(_requirement("R1"))

    copy.begin_requirement_edit(1)
    copy.save_requirement_edit(_requirement("R1 edited"))
    copy.commit()
    assert copy.editing_requirement is None

    copy.begin_requirement_edit(0)
    copy.cancel_edit()
    assert copy.editing_requirement is None
    with pytest.raises(ValidationError):
        copy.save_requirement_edit(_requirement("nothing open"))


def test_editing_index_follows_a_delete(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    for name in ("R0", "R1", "R2"):
        copy.add_requirement(_requirement(name))

    copy.begin_requirement_edit(2)
    copy.delete_requirement(0)
    assert copy.editing_requirement == 1
    copy.save_requirement_edit(_requirement("R2 edited"))
    assert [r.roleName for r in copy.requirements] == ["R1", "R2 edited"]

    copy.begin_requirement_edit(1)
    copy.delete_requirement(1)
    assert copy.editing_requirement is None


def test_reload_gives_a_fresh_working_copy(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("R0"))
    copy.begin_requirement_edit(0)

    sync.load("Acme")
    fresh = sync.checkout(0)

    assert fresh.editing_requirement is None
    assert fresh.requirements == []


def test_only_one_commit_in_flight_per_record(client, acme_client):
    class ReentrantTransport(ApiTransport):
        nested_error = None

        def replace_client(self, client_id, record):
            try:
                engine.commit(copy)
            except ConflictError as exc:
                self.nested_error = exc
            return super().replace_client(client_id, record)

    transport = ReentrantTransport(base_url="http://testserver/api", session=client, timeout=None)
    engine = SyncEngine(transport)
    engine.load("Acme")
    copy = engine.checkout(0)
    copy.update_fields({"status": "Interviewing"})

    committed = copy.commit()

    assert isinstance(transport.nested_error, ConflictError)
    assert committed.revision == 1
    assert committed.status == "Interviewing"

    copy.update_fields({"status": "Closed"})
    assert copy.commit().revision == 2


def test_failed_commit_leaves_working_copy_untouched(sync, other_sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("Backend"))
    before = copy.record.model_dump()

    other_sync.load("Acme")
    other_sync.delete_client(0)

    with pytest.raises(NotFoundError):
        copy.commit()
    assert copy.record.model_dump() == before


def test_transport_errors_are_not_retried(acme_client):
    class DownSession:
        calls = 0

        def request(self, method, url, **kwargs):
            self.calls += 1
            raise requests.ConnectionError("connection refused")

    session = DownSession()
    engine = SyncEngine(ApiTransport(base_url="http://crm.invalid/api", session=session, timeout=5))

    with pytest.raises(TransportError):
        engine.load("Acme")
    assert session.calls == 1


def test_navigation_context_re_resolves_a_moved_client(sync, other_sync, client, acme_client):
    client.post("/api/clients/Acme", json={"clientName": "Initech"})
    context = NavigationContext()
    context.select_partner("Acme")
    records = sync.load("Acme")
    context.select_client(1, records[1])
    assert records[1].clientName == "Globex"

    other_sync.create_client("Acme", {"clientName": "Umbrella"})
    copy = sync.open(context)

    assert copy.record.clientName == "Globex"
    assert context.client_position == 2

    other_sync.load("Acme")
    other_sync.delete_client(2, acme_client["id"])
    with pytest.raises(NotFoundError):
        sync.open(context)


def test_navigation_context_drops_a_stale_requirement(sync, other_sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("R0"))
    copy.add_requirement(_requirement("R1"))
    copy.commit()
    context = NavigationContext(partner_name="Acme")
    context.select_client(0, sync.records[0])
    context.select_requirement(1, sync.records[0].requirements[1])

    other_sync.load("Acme")
    other_copy = other_sync.checkout(0)
    other_copy.delete_requirement(0)
    other_copy.commit()

    sync.open(context)

    assert context.requirement_position is None
    assert context.requirement_uid is None


def test_selecting_a_partner_clears_the_client(sync, acme_client):
    records = sync.load("Acme")
    context = NavigationContext()
    context.select_partner("Acme")
    context.select_client(0, records[0])

    context.select_partner("Mondo")

    assert context.client_id is None
    assert context.client_position is None


def test_application_tracker_round_trip(sync, acme_client):
    sync.load("Acme")
    copy = sync.checkout(0)
    copy.add_requirement(_requirement("R0"))
    copy.add_requirement(_requirement("R1"))
    copy.commit()
    context = NavigationContext(partner_name="Acme")
    context.select_client(0, copy.record)
    context.select_requirement(1, copy.requirements[1])

    revision = sync.save_applications(
        context, [Application(name="Ada", round1="Cleared"), Application(name="Bo")], revision=1
    )
    applications = sync.load_applications(context)

    assert revision == 2
    assert [a.name for a in applications] == ["Ada", "Bo"]
    assert sync.load("Acme")[0].requirements[0].applications == []

    # The working copy from before the tracker write is now out of date
    copy.update_fields({"status": "Stale"})
    with pytest.raises(ConflictError):
        copy.commit()


def test_application_tracker_errors(client, acme_client):
    base = f"/api/applications/Acme/{acme_client['id']}"
    client.put(f"/api/clients/{acme_client['id']}", json={"requirements": [{"roleName": "R0"}]})

    assert client.get(f"{base}/3").status_code == 404
    assert client.get(f"{base}/-1").status_code == 404
    assert client.get(f"{base}/0", params={"uid": "not-it"}).status_code == 409
    assert client.post(f"{base}/0", json={"applications": [], "revision": 0}).status_code == 409
    assert client.get("/api/applications/Acme/missing/0").status_code == 404


def test_created_client_joins_the_loaded_list_under_its_stored_partner_name(sync, acme_client):
    sync.load("Acme")

    created = sync.create_client(" Acme ", {"clientName": "Umbrella"})

    assert created.partnerName == "Acme"
    assert [r.clientName for r in sync.records] == ["Umbrella", "Globex"]

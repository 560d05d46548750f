import pytest

from talent_pipeline.core.errors import ValidationError
from talent_pipeline.models.client import ClientRecord
from talent_pipeline.services.partners import PartnerDirectory


def test_get_or_create_is_idempotent(db):
    directory = PartnerDirectory(db)

    first, created_first = directory.get_or_create("Mondo")
    second, created_second = directory.get_or_create("  Mondo ")

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert [p.name for p in directory.list_partners()] == ["Mondo"]


def test_get_or_create_rejects_blank_names(db):
    with pytest.raises(ValidationError):
        PartnerDirectory(db).get_or_create("   ")


def test_names_are_case_sensitive(db):
    directory = PartnerDirectory(db)
    directory.get_or_create("acme")
    directory.get_or_create("Acme")

    assert [p.name for p in directory.list_partners()] == ["Acme", "acme"]


def test_empty_directory_falls_back_to_client_partner_names(db):
    db.add(ClientRecord(partnerName="Acme", clientName="Globex", requirements=[]))
    db.add(ClientRecord(partnerName="Acme", clientName="Initech", requirements=[]))
    db.commit()

    partners = PartnerDirectory(db).list_partners()

    assert [p.name for p in partners] == ["Acme"]
    assert partners[0].id is None


def test_directory_entries_win_over_fallback(db):
    db.add(ClientRecord(partnerName="Orphan", clientName="Globex", requirements=[]))
    db.commit()
    PartnerDirectory(db).get_or_create("Arc Light")

    assert [p.name for p in PartnerDirectory(db).list_partners()] == ["Arc Light"]


def test_seed_only_fills_an_empty_directory(db):
    directory = PartnerDirectory(db)

    created = directory.seed(["Addision", "Mondo", "Mondo"])
    assert [p.name for p in created] == ["Addision", "Mondo"]

    assert directory.seed(["Someone Else"]) == []
    assert [p.name for p in directory.list_partners()] == ["Addision", "Mondo"]


def test_partner_api_status_codes(client):
    created = client.post("/api/partners", json={"name": " Arc Light "})
    assert created.status_code == 201
    assert created.json()["name"] == "Arc Light"

    existing = client.post("/api/partners", json={"name": "Arc Light"})
    assert existing.status_code == 200
    assert existing.json()["id"] == created.json()["id"]

    blank = client.post("/api/partners", json={"name": ""})
    assert blank.status_code == 400
    assert blank.json()["detail"] == "Partner name is required"

    listed = client.get("/api/partners")
    assert listed.json() == [{"id": created.json()["id"], "name": "Arc Light"}]


def test_creating_a_client_registers_its_partner(client):
    client.post("/api/clients/Acme", json={"clientName": "Globex"})

    listed = client.get("/api/partners").json()

    assert [p["name"] for p in listed] == ["Acme"]
    assert listed[0]["id"] is not None

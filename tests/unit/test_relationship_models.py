"""
Unit tests for the partner relationship model and its enums.
"""

from datetime import datetime, timezone

import pytest

from supply_chain_partners.models.relationships import (
    PartnerRelationship,
    RelationshipStatus,
    RelationshipType,
)


@pytest.mark.parametrize("rel", list(RelationshipType))
def test_invert_is_an_involution(rel):
    assert rel.invert() != rel
    assert rel.invert().invert() == rel


@pytest.mark.parametrize("raw", ["supplier", "SUPPLIER", " Supplier "])
def test_stored_relationship_parse_is_lenient(raw):
    assert RelationshipType.parse(raw) == RelationshipType.SUPPLIER


@pytest.mark.parametrize("raw", ["", "vendor", None, 3])
def test_relationship_parse_rejects_unknown_values(raw):
    with pytest.raises(ValueError):
        RelationshipType.parse(raw)


def test_status_parse():
    assert RelationshipStatus.parse("Removed") == RelationshipStatus.REMOVED
    with pytest.raises(ValueError):
        RelationshipStatus.parse("paused")


def test_model_coerces_strings_and_defaults():
    record = PartnerRelationship(self_address="0xaa", company_address="0xbb", relationship="Customer")

    assert record.relationship == RelationshipType.CUSTOMER
    assert record.status == RelationshipStatus.ACTIVE
    assert record.id is None
    assert record.created_at.tzinfo is not None


def test_model_accepts_camel_case_input():
    record = PartnerRelationship.model_validate(
        {"selfAddress": "0xaa", "companyAddress": "0xbb", "relationship": "supplier", "companyName": "B"}
    )
    assert record.company_name == "B"
    assert record.model_dump(by_alias=True)["selfAddress"] == "0xaa"


def test_mirror_swaps_parties_and_inverts_relationship():
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    record = PartnerRelationship(
        id="k1",
        self_address="0xaa",
        company_address="0xbb",
        relationship=RelationshipType.SUPPLIER,
        company_name="Beta Mills",
        created_at=created,
        updated_at=created,
    )

    mirror = record.mirror("Acme Farms")

    assert mirror.id is None
    assert (mirror.self_address, mirror.company_address) == ("0xbb", "0xaa")
    assert mirror.relationship == RelationshipType.CUSTOMER
    assert mirror.company_name == "Acme Farms"
    assert mirror.status == record.status
    assert mirror.created_at == created


def test_document_round_trip():
    record = PartnerRelationship(
        id="k1", self_address="0xaa", company_address="0xbb", relationship="supplier"
    )

    doc = record.to_doc()

    assert doc["_key"] == "k1"
    assert doc["relationship"] == "supplier"
    assert isinstance(doc["updated_at"], str)
    assert PartnerRelationship.from_doc(doc).model_dump() == record.model_dump()


def test_from_doc_tolerates_older_documents():
    doc = {
        "_key": "old",
        "self_address": "0xaa",
        "company_address": "0xbb",
        "relationship": "customer",
        "created_at": "2023-01-01T00:00:00+00:00",
    }

    record = PartnerRelationship.from_doc(doc)

    assert record.status == RelationshipStatus.ACTIVE
    assert record.company_name is None
    assert record.updated_at == record.created_at


def test_request_values_must_match_exactly():
    assert RelationshipType.from_request("customer") == RelationshipType.CUSTOMER
    assert RelationshipType.from_request(RelationshipType.SUPPLIER) == RelationshipType.SUPPLIER
    for raw in ["Customer", "SUPPLIER", " supplier", "", None]:
        with pytest.raises(ValueError):
            RelationshipType.from_request(raw)

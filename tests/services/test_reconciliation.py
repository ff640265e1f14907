from datetime import timedelta

import pytest

from supply_chain_partners.models.relationships import RelationshipStatus, RelationshipType
from supply_chain_partners.services.reconciliation import (
    MISSING_MIRROR,
    RELATIONSHIP_MISMATCH,
    STATUS_MISMATCH,
    ReconciliationService,
)
from supply_chain_partners.services.relationship_service import RelationshipService


@pytest.fixture
def service(store, directory):
    return RelationshipService(store, directory)


@pytest.fixture
def reconciler(store, directory):
    return ReconciliationService(store, directory)


def test_consistent_pairs_report_nothing(service, reconciler):
    service.create_relationship("0xaa", "0xbb", "supplier")
    service.create_relationship("0xaa", "0xcc", "customer")

    assert reconciler.scan() == []


def test_missing_mirror_is_reported_without_repair(service, reconciler, store):
    primary = service.create_relationship("0xaa", "0xbb", "supplier").relationship
    store.delete_by_id(store.find_one("0xbb", "0xaa").id)

    [issue] = reconciler.scan()

    assert issue.kind == MISSING_MIRROR
    assert issue.relationship_id == primary.id
    assert not issue.repaired
    assert store.find_one("0xbb", "0xaa") is None


def test_missing_mirror_is_recreated_on_repair(service, reconciler, store):
    service.create_relationship("0xaa", "0xbb", "supplier", "Acme")
    store.delete_by_id(store.find_one("0xbb", "0xaa").id)

    [issue] = reconciler.scan(repair=True)

    assert issue.repaired
    mirror = store.find_one("0xbb", "0xaa")
    assert mirror.relationship == RelationshipType.CUSTOMER
    assert mirror.company_name == "Acme Farms"
    assert reconciler.scan() == []


def test_status_mismatch_follows_most_recent_write(service, reconciler, store):
    primary = service.create_relationship("0xaa", "0xbb", "supplier").relationship
    mirror = store.find_one("0xbb", "0xaa")
    later = (primary.updated_at + timedelta(minutes=5)).isoformat()
    # Owner removed the partnership but the mirror update was lost
    store.update_fields(primary.id, {"status": "removed", "updated_at": later})

    [issue] = reconciler.scan(repair=True)

    assert issue.kind == STATUS_MISMATCH
    assert issue.repaired
    assert store.get(mirror.id).status == RelationshipStatus.REMOVED
    assert store.get(primary.id).status == RelationshipStatus.REMOVED


def test_relationship_mismatch_is_never_auto_repaired(service, reconciler, store):
    service.create_relationship("0xaa", "0xbb", "supplier")
    mirror = store.find_one("0xbb", "0xaa")
    store.update_fields(mirror.id, {"relationship": "supplier"})

    issues = reconciler.scan(repair=True)

    assert [i.kind for i in issues] == [RELATIONSHIP_MISMATCH]
    assert not issues[0].repaired
    assert store.get(mirror.id).relationship == RelationshipType.SUPPLIER


def test_scan_can_be_limited_to_one_address(service, reconciler, store):
    service.create_relationship("0xaa", "0xbb", "supplier")
    service.create_relationship("0xcc", "0x01", "supplier")
    store.delete_by_id(store.find_one("0xbb", "0xaa").id)
    store.delete_by_id(store.find_one("0x01", "0xcc").id)

    issues = reconciler.scan(address="0xBB")

    assert [(i.self_address, i.company_address) for i in issues] == [("0xaa", "0xbb")]


def test_failed_repair_records_error(flaky_store, directory):
    service = RelationshipService(flaky_store, directory)
    service.create_relationship("0xaa", "0xbb", "supplier")
    flaky_store.delete_by_id(flaky_store.find_one("0xbb", "0xaa").id)
    flaky_store.broken_pairs.add(("0xbb", "0xaa"))

    [issue] = ReconciliationService(flaky_store, directory).scan(repair=True)

    assert not issue.repaired
    assert "write refused" in issue.error

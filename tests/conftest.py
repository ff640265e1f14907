import os

# Settings are cached on first import; keep the limiter out of the way and
# register a known admin key before anything imports the package.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("API_KEYS", "test-admin-key:ops")

import uuid

import pytest

from supply_chain_partners.domain.errors import DuplicateRecord, StorageError, ValidationFailed
from supply_chain_partners.models.relationships import PartnerRelationship, RelationshipStatus
from supply_chain_partners.store.relationship_store import is_valid_key


class InMemoryRelationshipStore:
    """Dict-backed stand-in for ArangoRelationshipStore with the same method surface."""

    def __init__(self):
        self.docs: dict[str, PartnerRelationship] = {}

    def ping(self) -> str:
        return "in-memory"

    def get(self, relationship_id):
        if not is_valid_key(relationship_id):
            raise ValidationFailed(f"Invalid partner ID: {relationship_id!r}")
        return self.docs.get(relationship_id)

    def find_one(self, self_address, company_address):
        for record in self.docs.values():
            if record.self_address == self_address and record.company_address == company_address:
                return record
        return None

    def exists(self, self_address, company_address):
        return self.find_one(self_address, company_address) is not None

    def find_all_by_self(self, self_address, status=RelationshipStatus.ACTIVE):
        records = [r for r in self.docs.values() if r.self_address == self_address and r.status == status]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def find_all_involving(self, address=None, status=None):
        records = [
            r
            for r in self.docs.values()
            if (address is None or address in (r.self_address, r.company_address))
            and (status is None or r.status == status)
        ]
        return sorted(records, key=lambda r: r.created_at)

    def insert(self, record):
        if self.exists(record.self_address, record.company_address):
            raise DuplicateRecord(f"{record.self_address} -> {record.company_address}")
        stored = record.model_copy(update={"id": record.id or uuid.uuid4().hex})
        self.docs[stored.id] = stored
        return stored

    def update_fields(self, relationship_id, fields):
        record = self.docs.get(relationship_id)
        if record is None:
            return None
        updated = PartnerRelationship.from_doc({**record.to_doc(), **fields, "_key": relationship_id})
        self.docs[relationship_id] = updated
        return updated

    def delete_by_id(self, relationship_id):
        return self.docs.pop(relationship_id, None) is not None


class FlakyRelationshipStore(InMemoryRelationshipStore):
    """Fails every write touching one of ``broken_pairs`` (ordered self/company tuples)."""

    def __init__(self):
        super().__init__()
        self.broken_pairs: set[tuple[str, str]] = set()

    def _check(self, self_address, company_address):
        if (self_address, company_address) in self.broken_pairs:
            raise StorageError(f"write refused for {self_address} -> {company_address}")

    def insert(self, record):
        self._check(record.self_address, record.company_address)
        return super().insert(record)

    def update_fields(self, relationship_id, fields):
        record = self.docs.get(relationship_id)
        if record is not None:
            self._check(record.self_address, record.company_address)
        return super().update_fields(relationship_id, fields)

    def delete_by_id(self, relationship_id):
        record = self.docs.get(relationship_id)
        if record is not None:
            self._check(record.self_address, record.company_address)
        return super().delete_by_id(relationship_id)


class FakeCompanyDirectory:
    def __init__(self, names: dict[str, str] | None = None):
        self.names = names or {}
        self.lookups: list[str] = []

    def resolve_name(self, address):
        self.lookups.append(address)
        return self.names.get(address.lower())


@pytest.fixture
def store():
    return InMemoryRelationshipStore()


@pytest.fixture
def flaky_store():
    return FlakyRelationshipStore()


@pytest.fixture
def directory():
    return FakeCompanyDirectory({"0xaa": "Acme Farms", "0xbb": "Beta Mills", "0xcc": "Cargo Co"})

import logging
import re
import uuid

from arango.exceptions import ArangoError, DocumentInsertError, DocumentUpdateError

from supply_chain_partners.domain.errors import DuplicateRecord, StorageError, ValidationFailed
from supply_chain_partners.models.relationships import PartnerRelationship, RelationshipStatus

# ArangoDB error numbers
DOCUMENT_NOT_FOUND = 1202
UNIQUE_CONSTRAINT_VIOLATED = 1210

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.@()+,=;$!*'%]{1,254}$")


def is_valid_key(key: str) -> bool:
    return bool(key) and bool(_KEY_PATTERN.match(key))


class ArangoRelationshipStore:
    """Partner relationship records in one ArangoDB document collection.

    Every method is a single independent request. Nothing here spans two
    documents atomically; keeping mirrored pairs in step is the caller's job.
    """

    def __init__(self, db, collection_name: str = "partners"):
        self.db = db
        self.collection_name = collection_name
        self.logger = logging.getLogger(__name__)

    @property
    def collection(self):
        return self.db.collection(self.collection_name)

    def ensure_schema(self) -> None:
        """Create the collection and its indexes when missing."""
        try:
            if not self.db.has_collection(self.collection_name):
                self.db.create_collection(self.collection_name)
                self.logger.info(f"Created collection: {self.collection_name}")
        except ArangoError as e:
            self.logger.error(f"Error initializing collection {self.collection_name}: {e}")
            raise StorageError(str(e)) from e
        self._init_indexes()

    def _init_indexes(self) -> None:
        coll = self.collection
        # At most one record per ordered address pair
        try:
            coll.add_index({
                "type": "persistent",
                "fields": ["self_address", "company_address"],
                "name": "uniq_self_company",
                "unique": True,
                "sparse": False,
            })
        except ArangoError as e:
            self.logger.warning(f"Could not ensure unique pair index: {e}")
        # Listing by owner, newest first
        try:
            coll.add_index({
                "type": "persistent",
                "fields": ["self_address", "status", "created_at"],
                "name": "idx_self_status_created",
            })
        except ArangoError as e:
            self.logger.warning(f"Could not ensure listing index: {e}")
        self.logger.info(f"Initialized indexes on {self.collection_name}")

    def ping(self) -> str:
        try:
            return self.db.version()
        except ArangoError as e:
            raise StorageError(str(e)) from e

    def _query(self, aql: str, bind_vars: dict) -> list[dict]:
        try:
            return list(self.db.aql.execute(aql, bind_vars=bind_vars))
        except ArangoError as e:
            self.logger.error(f"Query on {self.collection_name} failed: {e}")
            raise StorageError(str(e)) from e

    def get(self, relationship_id: str) -> PartnerRelationship | None:
        if not is_valid_key(relationship_id):
            raise ValidationFailed(f"Invalid partner ID: {relationship_id!r}")
        try:
            doc = self.collection.get(relationship_id)
        except ArangoError as e:
            raise StorageError(str(e)) from e
        return PartnerRelationship.from_doc(doc) if doc else None

    def find_one(self, self_address: str, company_address: str) -> PartnerRelationship | None:
        aql = """
        FOR doc IN @@coll
            FILTER doc.self_address == @self_address AND doc.company_address == @company_address
            LIMIT 1
            RETURN doc
        """
        docs = self._query(aql, {
            "@coll": self.collection_name,
            "self_address": self_address,
            "company_address": company_address,
        })
        return PartnerRelationship.from_doc(docs[0]) if docs else None

    def exists(self, self_address: str, company_address: str) -> bool:
        return self.find_one(self_address, company_address) is not None

    def find_all_by_self(
        self, self_address: str, status: RelationshipStatus = RelationshipStatus.ACTIVE
    ) -> list[PartnerRelationship]:
        aql = """
        FOR doc IN @@coll
            FILTER doc.self_address == @self_address AND doc.status == @status
            SORT doc.created_at DESC
            RETURN doc
        """
        docs = self._query(aql, {
            "@coll": self.collection_name,
            "self_address": self_address,
            "status": status.value,
        })
        return [PartnerRelationship.from_doc(d) for d in docs]

    def find_all_involving(
        self, address: str | None = None, status: RelationshipStatus | None = None
    ) -> list[PartnerRelationship]:
        """Records on either side of ``address`` (all records when None)."""
        aql = """
        FOR doc IN @@coll
            FILTER @address == null OR doc.self_address == @address OR doc.company_address == @address
            FILTER @status == null OR doc.status == @status
            SORT doc.created_at ASC
            RETURN doc
        """
        docs = self._query(aql, {
            "@coll": self.collection_name,
            "address": address,
            "status": status.value if status else None,
        })
        return [PartnerRelationship.from_doc(d) for d in docs]

    def insert(self, record: PartnerRelationship) -> PartnerRelationship:
        doc = record.to_doc()
        doc.setdefault("_key", uuid.uuid4().hex)
        try:
            self.collection.insert(doc)
        except DocumentInsertError as e:
            if getattr(e, "error_code", None) == UNIQUE_CONSTRAINT_VIOLATED:
                raise DuplicateRecord(
                    f"Record already exists for {record.self_address} -> {record.company_address}"
                ) from e
            raise StorageError(str(e)) from e
        except ArangoError as e:
            raise StorageError(str(e)) from e
        self.logger.debug(
            f"Inserted relationship {doc['_key']}: {record.self_address} "
            f"--{record.relationship.value}--> {record.company_address}"
        )
        return record.model_copy(update={"id": doc["_key"]})

    def update_fields(self, relationship_id: str, fields: dict) -> PartnerRelationship | None:
        """Patch fields on one record. Returns the new record, or None if it is gone."""
        try:
            result = self.collection.update({"_key": relationship_id, **fields}, return_new=True)
        except DocumentUpdateError as e:
            if getattr(e, "error_code", None) == DOCUMENT_NOT_FOUND:
                return None
            raise StorageError(str(e)) from e
        except ArangoError as e:
            raise StorageError(str(e)) from e
        return PartnerRelationship.from_doc(result["new"])

    def delete_by_id(self, relationship_id: str) -> bool:
        try:
            return bool(self.collection.delete(relationship_id, ignore_missing=True))
        except ArangoError as e:
            raise StorageError(str(e)) from e

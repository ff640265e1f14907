"""
Partner relationship orchestration.

Each partnership is two documents, one per party, written one after the other
because the store gives no multi-document atomicity. Validation and conflict
checks happen before the first write; anything that goes wrong with the mirror
after the primary has committed is reported as a ConsistencyWarning instead of
an error.
"""

import logging
from dataclasses import dataclass, field

from supply_chain_partners.domain.errors import (
    MIRROR_MISSING,
    MIRROR_WRITE_FAILED,
    ConflictError,
    ConsistencyWarning,
    DuplicateRecord,
    ResourceNotFound,
    StorageError,
    ValidationFailed,
)
from supply_chain_partners.models.relationships import (
    PartnerRelationship,
    RelationshipStatus,
    RelationshipType,
    utcnow,
)
from supply_chain_partners.utils.addresses import normalize_address


@dataclass
class MutationResult:
    relationship: PartnerRelationship
    warnings: list[ConsistencyWarning] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.warnings


class RelationshipService:
    def __init__(self, store, directory):
        self.store = store
        self.directory = directory
        self.logger = logging.getLogger(__name__)

    def create_relationship(
        self,
        self_address: str,
        company_address: str,
        relationship: str | RelationshipType,
        company_name: str | None = None,
    ) -> MutationResult:
        """Create both sides of a partnership and return the caller's side."""
        if not self_address or not self_address.strip() or not company_address or not company_address.strip():
            raise ValidationFailed("Self address, company address, and relationship are required")
        if not relationship:
            raise ValidationFailed("Self address, company address, and relationship are required")

        owner = normalize_address(self_address)
        partner = normalize_address(company_address)
        if owner == partner:
            raise ValidationFailed("Cannot add yourself as a partner")
        try:
            rel_type = RelationshipType.from_request(relationship)
        except ValueError:
            raise ValidationFailed("Relationship must be either 'supplier' or 'customer'")

        # Only the caller's ordered pair is checked; an orphaned reverse record
        # makes the mirror insert fail and is reported as a warning
        if self.store.exists(owner, partner):
            raise ConflictError("Partner relationship already exists")

        partner_name = company_name or self.directory.resolve_name(partner)
        owner_name = self.directory.resolve_name(owner)

        now = utcnow()
        primary = PartnerRelationship(
            self_address=owner,
            company_address=partner,
            relationship=rel_type,
            company_name=partner_name,
            status=RelationshipStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        try:
            primary = self.store.insert(primary)
        except DuplicateRecord as e:
            # Lost the race against a concurrent create of the same pair
            raise ConflictError("Partner relationship already exists") from e

        result = MutationResult(relationship=primary)
        try:
            self.store.insert(primary.mirror(owner_name))
        except StorageError as e:
            self._warn(result, "create", primary, MIRROR_WRITE_FAILED, str(e))

        self.logger.info(
            f"Created partnership {owner} --{rel_type.value}--> {partner} (id={primary.id})"
        )
        return result

    def get_relationship(self, relationship_id: str) -> PartnerRelationship:
        record = self.store.get(relationship_id)
        if record is None:
            raise ResourceNotFound("Partner not found")
        return record

    def list_relationships(self, self_address: str) -> list[PartnerRelationship]:
        """Active partnerships owned by ``self_address``, newest first."""
        if not self_address or not self_address.strip():
            raise ValidationFailed("Self address is required")
        records = self.store.find_all_by_self(normalize_address(self_address), RelationshipStatus.ACTIVE)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def update_relationship(
        self,
        relationship_id: str,
        company_name: str | None = None,
        status: str | RelationshipStatus | None = None,
    ) -> MutationResult:
        """Update the display name and/or status; a status change is copied to the mirror."""
        new_status = None
        if status is not None:
            try:
                new_status = RelationshipStatus.parse(status)
            except ValueError:
                raise ValidationFailed("Status must be either 'active' or 'removed'")

        now = utcnow().isoformat()
        fields: dict = {"updated_at": now}
        if company_name is not None:
            fields["company_name"] = company_name
        if new_status is not None:
            fields["status"] = new_status.value

        # Existence and id shape are checked before the write
        self.get_relationship(relationship_id)
        updated = self.store.update_fields(relationship_id, fields)
        if updated is None:
            raise ResourceNotFound("Partner not found")

        result = MutationResult(relationship=updated)
        if new_status is None:
            return result

        try:
            mirror = self.store.find_one(updated.company_address, updated.self_address)
            if mirror is None:
                self._warn(result, "update", updated, MIRROR_MISSING)
            elif self.store.update_fields(mirror.id, {"status": new_status.value, "updated_at": now}) is None:
                self._warn(result, "update", updated, MIRROR_MISSING)
        except StorageError as e:
            self._warn(result, "update", updated, MIRROR_WRITE_FAILED, str(e))
        return result

    def delete_relationship(self, relationship_id: str) -> MutationResult:
        """Delete a record and, best effort, its mirror."""
        record = self.get_relationship(relationship_id)
        if not self.store.delete_by_id(relationship_id):
            # Deleted by a concurrent request between lookup and delete
            raise ResourceNotFound("Partner not found")

        result = MutationResult(relationship=record)
        try:
            mirror = self.store.find_one(record.company_address, record.self_address)
            if mirror is None or not self.store.delete_by_id(mirror.id):
                self._warn(result, "delete", record, MIRROR_MISSING)
        except StorageError as e:
            self._warn(result, "delete", record, MIRROR_WRITE_FAILED, str(e))

        self.logger.info(
            f"Deleted partnership {record.self_address} <-> {record.company_address} (id={relationship_id})"
        )
        return result

    def _warn(
        self,
        result: MutationResult,
        operation: str,
        primary: PartnerRelationship,
        reason: str,
        detail: str | None = None,
    ) -> None:
        warning = ConsistencyWarning(
            operation=operation,
            relationship_id=primary.id,
            mirror_self_address=primary.company_address,
            mirror_company_address=primary.self_address,
            reason=reason,
            detail=detail,
        )
        result.warnings.append(warning)
        self.logger.warning(
            f"Mirror {operation} incomplete for {primary.id} ({reason}); pair needs reconciliation",
            extra={"consistency_warning": warning.to_dict()},
        )

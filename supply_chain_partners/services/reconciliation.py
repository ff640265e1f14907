"""
Out-of-band repair of mirrored partner records.

Partial failures in RelationshipService leave pairs with a missing mirror or a
mirror whose status drifted. This pass finds them and, when asked, repairs what
can be repaired without guessing.
"""

import logging
from dataclasses import asdict, dataclass

from supply_chain_partners.domain.errors import StorageError
from supply_chain_partners.models.relationships import PartnerRelationship, RelationshipStatus, utcnow
from supply_chain_partners.utils.addresses import normalize_address

MISSING_MIRROR = "missing_mirror"
STATUS_MISMATCH = "status_mismatch"
RELATIONSHIP_MISMATCH = "relationship_mismatch"


@dataclass
class ReconciliationIssue:
    relationship_id: str
    self_address: str
    company_address: str
    kind: str
    repaired: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class ReconciliationService:
    def __init__(self, store, directory):
        self.store = store
        self.directory = directory
        self.logger = logging.getLogger(__name__)

    def scan(self, address: str | None = None, repair: bool = False) -> list[ReconciliationIssue]:
        """Check every active record (optionally only those involving ``address``)."""
        target = normalize_address(address) if address else None
        records = self.store.find_all_involving(target, RelationshipStatus.ACTIVE)
        self.logger.info(
            f"Reconciling {len(records)} active records"
            + (f" involving {target}" if target else "")
            + (" (repair enabled)" if repair else "")
        )

        issues: list[ReconciliationIssue] = []
        seen_pairs: set[tuple[str, str]] = set()
        for record in records:
            pair = tuple(sorted((record.self_address, record.company_address)))
            mirror = self.store.find_one(record.company_address, record.self_address)
            if mirror is not None and pair in seen_pairs:
                continue
            seen_pairs.add(pair)

            issue = self._check(record, mirror)
            if issue is None:
                continue
            if repair:
                self._repair(record, mirror, issue)
            issues.append(issue)

        repaired = sum(1 for i in issues if i.repaired)
        self.logger.info(f"Reconciliation found {len(issues)} issues, repaired {repaired}")
        return issues

    def _check(
        self, record: PartnerRelationship, mirror: PartnerRelationship | None
    ) -> ReconciliationIssue | None:
        kind = None
        if mirror is None:
            kind = MISSING_MIRROR
        elif mirror.relationship != record.relationship.invert():
            kind = RELATIONSHIP_MISMATCH
        elif mirror.status != record.status:
            kind = STATUS_MISMATCH
        if kind is None:
            return None
        return ReconciliationIssue(
            relationship_id=record.id,
            self_address=record.self_address,
            company_address=record.company_address,
            kind=kind,
        )

    def _repair(
        self,
        record: PartnerRelationship,
        mirror: PartnerRelationship | None,
        issue: ReconciliationIssue,
    ) -> None:
        try:
            if issue.kind == MISSING_MIRROR:
                owner_name = self.directory.resolve_name(record.self_address)
                self.store.insert(record.mirror(owner_name).model_copy(update={"updated_at": utcnow()}))
                issue.repaired = True
            elif issue.kind == STATUS_MISMATCH:
                # The side written last carries the intended status
                newer, older = (record, mirror) if record.updated_at >= mirror.updated_at else (mirror, record)
                updated = self.store.update_fields(
                    older.id, {"status": newer.status.value, "updated_at": utcnow().isoformat()}
                )
                issue.repaired = updated is not None
            # Relationship label mismatches need a human to pick the right side
        except StorageError as e:
            issue.error = str(e)
            self.logger.error(f"Failed to repair {issue.kind} for {record.id}: {e}")

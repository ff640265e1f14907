from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RelationshipType(str, Enum):
    SUPPLIER = "supplier"  # partner supplies the owner
    CUSTOMER = "customer"  # partner buys from the owner

    def invert(self) -> "RelationshipType":
        """The same edge seen from the partner's side."""
        return RelationshipType.CUSTOMER if self is RelationshipType.SUPPLIER else RelationshipType.SUPPLIER

    @classmethod
    def parse(cls, value) -> "RelationshipType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for rt in cls:
                if rt.value == value.strip().lower():
                    return rt
        raise ValueError(
            f"Invalid value '{value}' for relationship. Allowed: {[e.value for e in cls]}"
        )

    @classmethod
    def from_request(cls, value) -> "RelationshipType":
        """Exact-match parse for caller input; stored documents go through parse()."""
        if isinstance(value, cls):
            return value
        for rt in cls:
            if value == rt.value:
                return rt
        raise ValueError(
            f"Invalid value '{value}' for relationship. Allowed: {[e.value for e in cls]}"
        )


class RelationshipStatus(str, Enum):
    ACTIVE = "active"
    REMOVED = "removed"

    @classmethod
    def parse(cls, value) -> "RelationshipStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for st in cls:
                if st.value == value.strip().lower():
                    return st
        raise ValueError(f"Invalid value '{value}' for status. Allowed: {[e.value for e in cls]}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PartnerRelationship(BaseModel):
    """One party's view of a partnership. Every pair is stored twice, once per side."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = Field(None, description="Document key assigned by the store")
    self_address: str = Field(..., description="Owner of this record")
    company_address: str = Field(..., description="The partner seen by the owner")
    relationship: RelationshipType
    company_name: str | None = Field(None, description="Partner's display name (never the owner's)")
    status: RelationshipStatus = RelationshipStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("relationship", mode="before")
    @classmethod
    def validate_relationship_str(cls, v):
        return RelationshipType.parse(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status_str(cls, v):
        return RelationshipStatus.parse(v)

    def mirror(self, company_name: str | None) -> "PartnerRelationship":
        """Build the reciprocal record; ``company_name`` is the owner's own name."""
        return PartnerRelationship(
            self_address=self.company_address,
            company_address=self.self_address,
            relationship=self.relationship.invert(),
            company_name=company_name,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_doc(self) -> dict:
        """Serialize to the stored document shape (snake_case, ISO timestamps)."""
        doc = {
            "self_address": self.self_address,
            "company_address": self.company_address,
            "relationship": self.relationship.value,
            "company_name": self.company_name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if self.id:
            doc["_key"] = self.id
        return doc

    @classmethod
    def from_doc(cls, doc: dict) -> "PartnerRelationship":
        return cls(
            id=doc.get("_key"),
            self_address=doc["self_address"],
            company_address=doc["company_address"],
            relationship=doc["relationship"],
            company_name=doc.get("company_name"),
            status=doc.get("status", RelationshipStatus.ACTIVE.value),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at") or doc["created_at"],
        )

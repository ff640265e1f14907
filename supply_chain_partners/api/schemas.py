"""
API request/response schemas for the partner relationship endpoints.

Field names are camelCase on the wire; snake_case input is accepted too.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from supply_chain_partners.models.relationships import PartnerRelationship


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePartnerRequest(_CamelModel):
    """Request model for creating a partnership (both sides)."""

    self_address: str = ""
    company_address: str = ""
    relationship: str = ""
    company_name: str | None = None


class UpdatePartnerRequest(_CamelModel):
    """Only the display name and status may change after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    company_name: str | None = None
    status: str | None = None


class ReconcileRequest(_CamelModel):
    address: str | None = None
    repair: bool = False


class ConsistencyWarningSchema(_CamelModel):
    operation: str
    relationship_id: str | None = None
    mirror_self_address: str
    mirror_company_address: str
    reason: str
    detail: str | None = None


class CreatePartnerResponse(_CamelModel):
    message: str
    partner: PartnerRelationship
    warnings: list[ConsistencyWarningSchema] = Field(default_factory=list)


class UpdatePartnerResponse(_CamelModel):
    partner: PartnerRelationship
    warnings: list[ConsistencyWarningSchema] = Field(default_factory=list)


class DeletePartnerResponse(_CamelModel):
    message: str
    warnings: list[ConsistencyWarningSchema] = Field(default_factory=list)


class ReconciliationIssueSchema(_CamelModel):
    relationship_id: str | None = None
    self_address: str
    company_address: str
    kind: str
    repaired: bool
    error: str | None = None


class ReconcileResponse(_CamelModel):
    issues: list[ReconciliationIssueSchema]

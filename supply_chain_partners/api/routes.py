"""
API routes for partner relationships.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from supply_chain_partners.api.schemas import (
    ConsistencyWarningSchema,
    CreatePartnerRequest,
    CreatePartnerResponse,
    DeletePartnerResponse,
    ReconcileRequest,
    ReconcileResponse,
    ReconciliationIssueSchema,
    UpdatePartnerRequest,
    UpdatePartnerResponse,
)
from supply_chain_partners.domain.errors import ConsistencyWarning, StorageError
from supply_chain_partners.models.relationships import PartnerRelationship
from supply_chain_partners.observability.rate_limiter import rate_limit
from supply_chain_partners.services.reconciliation import ReconciliationService
from supply_chain_partners.services.relationship_service import RelationshipService
from supply_chain_partners.services.security import resolve_api_key, sanitize_display_name

router = APIRouter()

logger = logging.getLogger(__name__)


def get_service(request: Request) -> RelationshipService:
    return request.app.state.relationship_service


def get_reconciler(request: Request) -> ReconciliationService:
    return request.app.state.reconciliation_service


def require_api_key(x_api_key: str | None = Header(None)) -> str:
    client_name = resolve_api_key(x_api_key)
    if client_name is None:
        raise HTTPException(status_code=401, detail="A valid X-API-Key header is required")
    return client_name


def _warnings(warnings: list[ConsistencyWarning]) -> list[ConsistencyWarningSchema]:
    return [ConsistencyWarningSchema(**w.to_dict()) for w in warnings]


@router.get("/api/partners", response_model=list[PartnerRelationship])
@rate_limit()
def list_partners(
    request: Request,
    self_address: str | None = Query(None, alias="selfAddress"),
    service: RelationshipService = Depends(get_service),
) -> list[PartnerRelationship]:
    """Active partners of one company, newest first."""
    if not self_address or not self_address.strip():
        raise ValueError("Self address is required")
    return service.list_relationships(self_address)


@router.post("/api/partners", response_model=CreatePartnerResponse, status_code=201)
@rate_limit()
def create_partner(
    request: Request,
    payload: CreatePartnerRequest,
    service: RelationshipService = Depends(get_service),
) -> CreatePartnerResponse:
    """Create a partnership; the partner gets the reciprocal record."""
    result = service.create_relationship(
        self_address=payload.self_address,
        company_address=payload.company_address,
        relationship=payload.relationship,
        company_name=sanitize_display_name(payload.company_name),
    )
    message = "Partner relationship created successfully"
    if result.warnings:
        message = "Partner relationship created, but the partner's record could not be written"
    return CreatePartnerResponse(
        message=message, partner=result.relationship, warnings=_warnings(result.warnings)
    )


@router.post("/api/partners/reconcile", response_model=ReconcileResponse)
@rate_limit()
def reconcile_partners(
    request: Request,
    payload: ReconcileRequest,
    client_name: str = Depends(require_api_key),
    reconciler: ReconciliationService = Depends(get_reconciler),
) -> ReconcileResponse:
    """Find (and optionally repair) pairs whose mirrored records disagree."""
    logger.info(f"Reconciliation requested by {client_name} (repair={payload.repair})")
    issues = reconciler.scan(address=payload.address, repair=payload.repair)
    return ReconcileResponse(issues=[ReconciliationIssueSchema(**i.to_dict()) for i in issues])


@router.get("/api/partners/{partner_id}", response_model=PartnerRelationship)
@rate_limit()
def get_partner(
    request: Request, partner_id: str, service: RelationshipService = Depends(get_service)
) -> PartnerRelationship:
    return service.get_relationship(partner_id)


@router.put("/api/partners/{partner_id}", response_model=UpdatePartnerResponse)
@rate_limit()
def update_partner(
    request: Request,
    partner_id: str,
    payload: UpdatePartnerRequest,
    service: RelationshipService = Depends(get_service),
) -> UpdatePartnerResponse:
    """Update display name and/or status. Status changes are copied to the partner's record."""
    company_name = None
    if payload.company_name is not None:
        # An explicit empty name clears the cached one
        company_name = sanitize_display_name(payload.company_name) or ""
    result = service.update_relationship(partner_id, company_name=company_name, status=payload.status)
    return UpdatePartnerResponse(partner=result.relationship, warnings=_warnings(result.warnings))


@router.delete("/api/partners/{partner_id}", response_model=DeletePartnerResponse)
@rate_limit()
def delete_partner(
    request: Request, partner_id: str, service: RelationshipService = Depends(get_service)
) -> DeletePartnerResponse:
    """Delete both sides of a partnership."""
    result = service.delete_relationship(partner_id)
    return DeletePartnerResponse(
        message="Partner relationship deleted successfully", warnings=_warnings(result.warnings)
    )


@router.get("/api/health")
def health(service: RelationshipService = Depends(get_service)) -> dict:
    try:
        version = service.store.ping()
    except StorageError as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "error", "store": "down"}
    return {"status": "ok", "store": "up", "arango_version": version}

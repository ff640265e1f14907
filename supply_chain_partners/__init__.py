"""
Supply Chain Partners
Bidirectional business-partner relationships between registered supply-chain
companies, stored as mirrored per-party records.
"""

__version__ = "0.1.0"

from supply_chain_partners.models.relationships import (
    PartnerRelationship,
    RelationshipStatus,
    RelationshipType,
)
from supply_chain_partners.services.reconciliation import ReconciliationService
from supply_chain_partners.services.relationship_service import MutationResult, RelationshipService
from supply_chain_partners.store.company_directory import ArangoCompanyDirectory
from supply_chain_partners.store.relationship_store import ArangoRelationshipStore
from supply_chain_partners.utils.addresses import normalize_address
from supply_chain_partners.utils.logging import setup_logging

__all__ = [
    'PartnerRelationship',
    'RelationshipStatus',
    'RelationshipType',
    'RelationshipService',
    'MutationResult',
    'ReconciliationService',
    'ArangoRelationshipStore',
    'ArangoCompanyDirectory',
    'normalize_address',
    'setup_logging',
]

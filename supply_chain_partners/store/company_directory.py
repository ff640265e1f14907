import logging

from arango.exceptions import ArangoError

from supply_chain_partners.utils.addresses import normalize_address


class ArangoCompanyDirectory:
    """Read-only view of registered companies, used to cache display names on partner records."""

    def __init__(self, db, collection_name: str = "companies"):
        self.db = db
        self.collection_name = collection_name
        self.logger = logging.getLogger(__name__)

    def resolve_name(self, address: str) -> str | None:
        """Display name registered for ``address``, or None when unknown or unreachable."""
        aql = """
        FOR c IN @@coll
            FILTER c.wallet_address == @address OR c.walletAddress == @address
            LIMIT 1
            RETURN c
        """
        try:
            if not self.db.has_collection(self.collection_name):
                return None
            docs = list(
                self.db.aql.execute(
                    aql,
                    bind_vars={"@coll": self.collection_name, "address": normalize_address(address)},
                )
            )
        except ArangoError as e:
            self.logger.warning(f"Company lookup failed for {address}: {e}")
            return None
        if not docs:
            return None
        return docs[0].get("company_name") or docs[0].get("companyName")

#!/usr/bin/env python3
"""
CLI tool to find and repair partner pairs whose mirrored records disagree.

Usage:
  # Report every inconsistent pair
  python -m supply_chain_partners.scripts.reconcile

  # Only pairs involving one company
  python -m supply_chain_partners.scripts.reconcile --address 0xAbC...

  # Recreate missing mirrors and align drifted statuses
  python -m supply_chain_partners.scripts.reconcile --repair
"""

import argparse
import logging
import sys

from supply_chain_partners.config import get_settings
from supply_chain_partners.domain.errors import DomainError
from supply_chain_partners.services.reconciliation import ReconciliationIssue, ReconciliationService
from supply_chain_partners.store.arango import connect_database
from supply_chain_partners.store.company_directory import ArangoCompanyDirectory
from supply_chain_partners.store.relationship_store import ArangoRelationshipStore


def print_issues(issues: list[ReconciliationIssue], repair: bool) -> None:
    print("\n" + "=" * 72)
    print("PARTNER RECONCILIATION")
    print("=" * 72)
    if not issues:
        print("All mirrored records are consistent.")
        print("=" * 72 + "\n")
        return
    for issue in issues:
        state = ""
        if repair:
            state = "repaired" if issue.repaired else ("FAILED" if issue.error else "manual")
        print(
            f"  {issue.kind:22} {issue.self_address} -> {issue.company_address}"
            f"  (id={issue.relationship_id}) {state}"
        )
    print("-" * 72)
    print(f"  {len(issues)} issue(s)")
    print("=" * 72 + "\n")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Reconcile mirrored partner relationship records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--address", help="Only check pairs involving this company address")
    parser.add_argument(
        "--repair",
        action="store_true",
        help="Recreate missing mirrors and align mismatched statuses",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    settings = get_settings()
    try:
        print("Connecting to ArangoDB...")
        db = connect_database(settings)
        store = ArangoRelationshipStore(db, settings.partners_collection)
        directory = ArangoCompanyDirectory(db, settings.companies_collection)
        issues = ReconciliationService(store, directory).scan(address=args.address, repair=args.repair)
    except DomainError as e:
        logging.getLogger(__name__).error(f"Reconciliation failed: {e}")
        return 1

    print_issues(issues, args.repair)
    unresolved = [i for i in issues if not i.repaired]
    return 2 if unresolved else 0


if __name__ == "__main__":
    sys.exit(main())

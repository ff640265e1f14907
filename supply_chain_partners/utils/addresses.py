"""
Address canonicalization for wallet identifiers.
"""


def normalize_address(address: str) -> str:
    """Canonical, case-insensitive form of a wallet address."""
    return address.strip().lower()

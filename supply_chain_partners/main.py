"""
Entry point for running the Supply Chain Partners API.
"""

import os

import uvicorn

from supply_chain_partners.config import get_settings


def main():
    """Main entry point for the application."""
    settings = get_settings()
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "supply_chain_partners.api.app:app", host="0.0.0.0", port=port, reload=settings.debug
    )


if __name__ == "__main__":
    main()

"""
ArangoDB connection bootstrap shared by the relationship store and the company directory.
"""

import logging
import time

from arango import ArangoClient
from arango.database import StandardDatabase

from supply_chain_partners.config import AppSettings, get_settings
from supply_chain_partners.domain.errors import ServiceUnavailable

logger = logging.getLogger(__name__)


def connect_database(settings: AppSettings | None = None) -> StandardDatabase:
    """Connect to the configured database, creating it if missing, with retry logic."""
    settings = settings or get_settings()
    logger.info(f"Initializing ArangoDB connection to {settings.arango_host}")

    for attempt in range(settings.arango_max_retries):
        try:
            logger.debug(
                f"Attempting to connect to ArangoDB (attempt {attempt + 1}/{settings.arango_max_retries})"
            )
            client = ArangoClient(hosts=settings.arango_host)

            # Connect to _system first to check/create our database
            sys_db = client.db(
                "_system", username=settings.arango_username, password=settings.arango_password
            )
            if not sys_db.has_database(settings.arango_db_name):
                logger.info(f"Creating database: {settings.arango_db_name}")
                sys_db.create_database(
                    name=settings.arango_db_name,
                    users=[
                        {
                            "username": settings.arango_username,
                            "password": settings.arango_password,
                            "active": True,
                        }
                    ],
                )

            db = client.db(
                settings.arango_db_name,
                username=settings.arango_username,
                password=settings.arango_password,
            )
            version = db.version()
            logger.info(f"Successfully connected to ArangoDB version {version}")
            return db

        except Exception as e:
            if attempt < settings.arango_max_retries - 1:
                wait_time = settings.arango_retry_delay * (attempt + 1)
                logger.warning(
                    f"Failed to connect to ArangoDB (attempt {attempt + 1}/{settings.arango_max_retries}): {e}. "
                    f"Retrying in {wait_time} seconds..."
                )
                time.sleep(wait_time)
            else:
                logger.error(
                    f"Failed to connect to ArangoDB after {settings.arango_max_retries} attempts. "
                    f"Please ensure ArangoDB is running and accessible at {settings.arango_host}. "
                    f"Error: {e}"
                )
                raise ServiceUnavailable(
                    f"Could not connect to ArangoDB at {settings.arango_host}."
                ) from e

    # arango_max_retries is validated to be >= 1
    raise ServiceUnavailable(f"Could not connect to ArangoDB at {settings.arango_host}.")

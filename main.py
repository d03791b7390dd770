#!/usr/bin/env python3
"""Breed Match: Single entry point.

Creates the database schema, syncs the breed catalog from The Dog API (or
a local CSV seed file), and launches the FastAPI server.

Usage:
    python main.py
    python main.py --skip-sync
    python main.py --seed-file data/breeds.csv
    python main.py --port 8000
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger("breed-match")


def main() -> None:
    """Orchestrate the pipeline: database -> breed sync -> serve."""
    parser = argparse.ArgumentParser(description="Breed Match service")
    parser.add_argument(
        "--skip-sync",
        action="store_true",
        help="Skip breed catalog sync (use stored breeds)",
    )
    parser.add_argument(
        "--seed-file",
        type=str,
        default=None,
        help="CSV file to sync breeds from instead of The Dog API",
    )
    parser.add_argument("--port", type=int, default=None, help="Server port")
    parser.add_argument("--host", type=str, default=None, help="Server host")
    parser.add_argument("--database-url", type=str, default=None, help="Database URL")
    args = parser.parse_args()

    from src.config import get_config

    config = get_config()
    database_url = args.database_url or config.database_url

    # Step 1: Database
    logger.info("Step 1/3: Preparing database at %s", database_url)
    from src.storage.database import create_db_engine, create_session_factory
    from src.storage.repository import BreedRepository

    engine = create_db_engine(database_url)
    breeds = BreedRepository(create_session_factory(engine))

    # Step 2: Breed catalog
    if not args.skip_sync:
        logger.info("Step 2/3: Syncing breed catalog...")
        from src.data.breed_source import DogApiClient, load_breed_file
        from src.data.processor import sync_breeds
        from src.errors import ExternalUnavailable

        dog_api = DogApiClient(config.dog_api_url, config.dog_api_key, config.dog_api_timeout)
        seed_file = args.seed_file or config.breed_seed_file
        try:
            if seed_file:
                records = load_breed_file(Path(seed_file))
            else:
                records = dog_api.fetch_breeds()
        except (ExternalUnavailable, OSError, ValueError) as exc:
            logger.error("Breed sync failed: %s", exc)
            sys.exit(1)

        report = sync_breeds(
            records, breeds, resolve_image=dog_api.get_image_url, show_progress=True
        )
        logger.info(
            "Catalog: %d created, %d already present, %d failed",
            report.created,
            report.skipped,
            report.failed,
        )
    else:
        logger.info("Step 2/3: Skipping breed sync (--skip-sync)")
    engine.dispose()

    # Step 3: Launch FastAPI server
    host = args.host or config.host
    port = args.port or config.port
    logger.info("Step 3/3: Launching API on %s:%d", host, port)
    import uvicorn

    from src.api.app import create_app

    os.environ["DATABASE_URL"] = database_url
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()

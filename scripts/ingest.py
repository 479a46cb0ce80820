#!/usr/bin/env python3
"""
CLI script for ingesting the Taiwan Laws & Regulations Database into seed files.

Official source:
    - https://law.moj.gov.tw/api/swagger
    - Chinese law dataset:   https://law.moj.gov.tw/api/ch/law/json
    - Chinese order dataset: https://law.moj.gov.tw/api/ch/order/json

Usage:
    # Full corpus (every law and order with a pcode)
    python scripts/ingest.py

    # Only the curated key laws
    python scripts/ingest.py --targeted

    # Reuse previously extracted JSON instead of downloading again
    python scripts/ingest.py --skip-fetch
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add project root to path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir / "src"))

from dotenv import load_dotenv
load_dotenv(root_dir / ".env")

from twlaw.config import get_settings
from twlaw.errors import IngestionError
from twlaw.ingest import default_sources, run_ingestion
from twlaw.targets import KEY_TARGET_LAWS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Ingest Taiwan law and order datasets into per-act seed JSON files."
    )
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        help="Reuse cached extracted JSON when present instead of downloading",
    )
    parser.add_argument(
        "--targeted",
        action="store_true",
        help=f"Only ingest the {len(KEY_TARGET_LAWS)} curated key laws (default: full corpus)",
    )
    args = parser.parse_args()

    full_corpus = not args.targeted

    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info("Taiwanese Law - Real Data Ingestion")
    for source in default_sources(settings):
        logger.info(f"  Source ({source.label}): {source.url}")
    if args.skip_fetch:
        logger.info("  Mode: --skip-fetch")
    logger.info(f"  Scope: {'full-corpus' if full_corpus else f'targeted ({len(KEY_TARGET_LAWS)} key laws)'}")

    start_time = time.time()
    try:
        summary = run_ingestion(settings, skip_fetch=args.skip_fetch, full_corpus=full_corpus)
    except IngestionError as e:
        logger.error(f"Fatal ingestion error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Fatal ingestion error: {e}")
        sys.exit(1)

    summary.log()
    logger.info(f"  Time: {time.time() - start_time:.1f}s")


if __name__ == "__main__":
    main()

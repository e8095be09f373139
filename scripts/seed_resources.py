import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
import logging

from coworking_scheduler.db.engine import engine
from coworking_scheduler.db.writers.resources import insert_resources
from coworking_scheduler.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def load_resources(path: str) -> list[dict[str, object]]:
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of resources")
    return data


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update bookable resources.")
    parser.add_argument("path", help="JSON file with a list of resource definitions")
    parser.add_argument("--dry-run", action="store_true", help="Validate and log only")
    args = parser.parse_args()

    resources = load_resources(args.path)
    count = insert_resources(engine, resources, dry_run=args.dry_run)
    logger.info("Seeded %s resource(s) from %s", count, args.path)

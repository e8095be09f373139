import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import logging
from datetime import timedelta

from coworking_scheduler.config import PAYMENT_PENDING_TIMEOUT_MINUTES
from coworking_scheduler.db.engine import engine
from coworking_scheduler.db.store import SqlReservationStore
from coworking_scheduler.dependencies import get_event_publisher
from coworking_scheduler.logging_config import setup_logging
from coworking_scheduler.services.reservations import ReservationService
from coworking_scheduler.utils.datetime import utc_now

setup_logging()
logger = logging.getLogger(__name__)


def main(timeout_minutes: int) -> int:
    """
    Cancel card/PayPal reservations whose payment never settled.

    Meant to run from cron every few minutes; each run is a single pass.

    Returns:
        int: Number of reservations cancelled.
    """
    cutoff = utc_now() - timedelta(minutes=timeout_minutes)
    logger.info("Expiring payment_pending reservations created before %s", cutoff.isoformat())

    service = ReservationService(SqlReservationStore(engine), get_event_publisher())
    try:
        expired = service.expire_payment_pending(cutoff)
    except Exception:
        logger.exception("Payment expiry run failed")
        raise

    logger.info("Cancelled %s unpaid reservation(s)", len(expired))
    return len(expired)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cancel unpaid payment_pending reservations.")
    parser.add_argument(
        "--timeout-minutes",
        type=int,
        default=PAYMENT_PENDING_TIMEOUT_MINUTES,
        help="Age after which an unpaid reservation is cancelled",
    )
    args = parser.parse_args()
    main(args.timeout_minutes)

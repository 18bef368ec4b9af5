#!/usr/bin/env python
"""
Run subscription maintenance once, outside the API process.

Usage:
    python run_jobs.py                      # quota reset + both sweeps
    python run_jobs.py --check-only         # only notify expiring subscriptions
    python run_jobs.py --notify-days 7
"""

import argparse
import asyncio
import logging
import sys

from api.dependencies import get_container
from modules.subscriptions.scheduler import run_daily_maintenance

logger = logging.getLogger("run_jobs")


async def run(check_only: bool, notify_days: int) -> int:
    container = get_container()
    subscriptions = container.subscriptions

    if check_only:
        review = await subscriptions.review_subscriptions(check_only=True, notify_days=notify_days)
        logger.info(f"{len(review.expiring_soon)} subscriptions expiring within {notify_days} days")
        return 0

    report = await run_daily_maintenance(subscriptions, notify_days)
    failures = report.expired.notification_failures + report.expiring_soon.notification_failures
    for failure in failures:
        logger.warning(f"Notification not delivered to {failure.recipient}: {failure.error}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Run daily subscription maintenance once")
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only notify expiring subscriptions; do not downgrade or reset quotas",
    )
    parser.add_argument(
        "--notify-days",
        type=int,
        default=None,
        help="Expiring-soon threshold in days (default: EXPIRING_SOON_DAYS)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    notify_days = args.notify_days
    if notify_days is None:
        notify_days = get_container().settings.expiring_soon_days

    sys.exit(asyncio.run(run(args.check_only, notify_days)))


if __name__ == "__main__":
    main()

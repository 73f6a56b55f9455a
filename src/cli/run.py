import argparse
import asyncio
from datetime import date
import logging
import time
from typing import List, Optional

from core.profile import UserProfile
from services.config import load_config
from services.logging import setup_logging
from workflows.pipeline_factory import create_feed_pipeline
from delivery.file_delivery import FileDelivery
from delivery.base import DeliveryChannel


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a personalized civic impact feed")
    parser.add_argument("--config", help="Path to config.yml (default: resources/config.yml)")
    parser.add_argument("--location", help='Free-text location, e.g. "Austin, TX"')
    parser.add_argument("--income", type=float, help="Monthly income in dollars")
    parser.add_argument("--veteran", action="store_true", help="Profile is a veteran")
    parser.add_argument("--limit", type=int, help="Number of items to show")
    parser.add_argument("--no-enrich", action="store_true", help="Skip impact analysis")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> None:
    start_time = time.perf_counter()
    args = parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.LOG_LEVEL)
    logger = logging.getLogger(__name__)

    today = date.today().isoformat()

    # ----------------------------
    # Build the profile
    # ----------------------------
    profile_data = config.profile.model_dump()
    if args.location:
        profile_data["location"] = args.location
    if args.income is not None:
        profile_data["monthly_income"] = args.income
    if args.veteran:
        profile_data["is_veteran"] = True
    profile = UserProfile.from_dict(profile_data)

    logger.info(f"Starting civic feed run for {profile.name} ({profile.location})")

    # ----------------------------
    # Pipeline and delivery
    # ----------------------------
    pipeline = create_feed_pipeline(config, enrich=not args.no_enrich)
    deliveries = list[DeliveryChannel]([FileDelivery(config.OUTPUT_DIR)])

    page = await pipeline.get_personalized_feed(profile, limit=args.limit)
    representatives = await pipeline.get_representatives(profile)

    logger.info(
        f"Feed has {len(page.items)} of {page.total} items; "
        f"{len(representatives)} representatives found"
    )

    for delivery in deliveries:
        try:
            await delivery.deliver(
                profile_name=profile.name or "resident",
                feed_date=today,
                page=page,
                representatives=representatives,
            )
            logger.info(f"Delivered feed via {delivery.name}")
        except OSError as e:
            logger.error(f"Delivery failed: channel={delivery.name}, error={e}")

    logger.info("Feed run completed")
    end_time = time.perf_counter()
    logger.info(f"Total time: {end_time - start_time}")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()

import os
import asyncio
import csv
import sys
from typing import List

from loguru import logger

from venuefeed import FallbackSynthesizer, PaginationController, VenueRecord
from venuefeed.clients import HttpClient
from venuefeed.config import DEFAULT_BATCH_SIZE, LOG_LEVEL, OUTPUT_CSV
from venuefeed.models import CATEGORIES

DEFAULT_PAGES = 3
CSV_COLUMNS = ["page", "id", "name", "category", "address", "rating", "price_level", "open_now", "is_upcoming", "photo_url"]


def pad_page(
    synthesizer: FallbackSynthesizer,
    venues: List[VenueRecord],
    location: str,
    count: int,
) -> List[VenueRecord]:
    """
    Pad categories that came back empty or near-empty with synthetic venues.
    Each category is expected to hold roughly an even share of the page.
    """
    share = max(count // len(CATEGORIES), 1)
    padded = list(venues)
    for category in CATEGORIES:
        padded = synthesizer.top_up(padded, location, category, share)
    return padded


async def main(location: str, pages: int = DEFAULT_PAGES, count: int = DEFAULT_BATCH_SIZE):
    """
    Load `pages` successive pages for a location and write them to OUTPUT_CSV.

    - Each page excludes every id already shown, like a "load more" button.
    - Starved categories are padded with fallback venues in the output only.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    # Initialize output file
    output_path = OUTPUT_CSV
    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

    controller = PaginationController()
    synthesizer = FallbackSynthesizer()
    shown: List[str] = []

    try:
        for page in range(1, pages + 1):
            batch = await controller.get_next_venues(location, count, exclude_ids=shown)
            shown.extend(v.id for v in batch.venues)
            venues = pad_page(synthesizer, batch.venues, location, count)
            logger.info(f"Page {page}: {len(batch.venues)} venues ({len(venues) - len(batch.venues)} fallback)")

            with open(output_path, "a", newline="") as f:
                writer = csv.writer(f)
                for venue in venues:
                    row = venue.to_dict()
                    writer.writerow([page] + [row[c] for c in CSV_COLUMNS[1:]])

            if not batch.has_more:
                logger.info(f"No more venues for '{location}' after page {page}")
                break

        stats = controller.get_pool_stats(location)
        if stats is not None:
            logger.info(
                f"Pool for '{location}': size={stats.size}, cursor={stats.cursor_position}, "
                f"exhausted={stats.exhausted}"
            )
    finally:
        # Cleanup: close the shared HTTP session to prevent unclosed connector warnings
        http_client = HttpClient()
        await http_client.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python main.py <location> [pages] [page_size]")
        sys.exit(1)
    location_arg = sys.argv[1]
    pages_arg = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_PAGES
    count_arg = int(sys.argv[3]) if len(sys.argv) > 3 else DEFAULT_BATCH_SIZE
    asyncio.run(main(location_arg, pages_arg, count_arg))

"""
Main entry point and CLI for RealEst property discovery.

Runs one explore query against the configured listing store (or a JSON
fixture file) and prints a formatted result page.
"""

import asyncio
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional
from datetime import datetime

from discovery import db
from discovery.catalog import PropertyType, ListingType, SortKey, legal_values
from discovery.config import get_discovery_settings
from discovery.error_handling import QueryValidationError, StoreUnavailableError
from discovery.models import EnrichedListing, ExploreResponse
from discovery.services import ExploreService, ProfileSummaryCache, ResultAssembler
from discovery.store import InMemoryListingStore


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STORE_ERROR = 1
EXIT_INVALID_QUERY = 2


def format_listing(listing: EnrichedListing) -> str:
    """
    Format one enriched listing for console output.

    Args:
        listing: EnrichedListing to format

    Returns:
        Formatted multi-line string
    """
    lines = []
    lines.append(f"🏠 {listing.title}")
    lines.append(f"   ID: {listing.id}")

    frequency = listing.price_frequency.value if listing.price_frequency else ""
    price = f"₦{listing.price:,.0f}"
    if frequency and frequency != "sale":
        price += f" / {frequency}"
    lines.append(f"   Price: {price}")

    location = ", ".join(part for part in (listing.address, listing.lga, listing.state) if part)
    if location:
        lines.append(f"   Location: {location}")

    rooms = []
    if listing.bedrooms is not None:
        rooms.append(f"{listing.bedrooms} bed")
    if listing.bathrooms is not None:
        rooms.append(f"{listing.bathrooms} bath")
    if listing.has_bq:
        rooms.append("BQ")
    if rooms:
        lines.append(f"   Rooms: {' · '.join(rooms)}")

    if listing.distance_km is not None:
        lines.append(f"   Distance: {listing.distance_km:.1f} km")
    if listing.owner and listing.owner.full_name:
        lines.append(f"   Listed by: {listing.owner.full_name}")

    lines.append(
        f"   Listed {listing.days_listed} day(s) ago · "
        f"{listing.view_count} views · {listing.like_count} likes"
    )
    lines.append("")
    return "\n".join(lines) + "\n"


def format_results(response: ExploreResponse) -> str:
    """
    Format an explore response for console output.

    Args:
        response: ExploreResponse to format

    Returns:
        Formatted string representation of the page
    """
    if response.is_empty:
        return "No properties found matching your criteria.\n"

    pagination = response.pagination
    output = []
    output.append(f"\n{'='*60}")
    output.append(
        f"\n{pagination.total} propert{'y' if pagination.total == 1 else 'ies'} found "
        f"(page {pagination.page} of {pagination.total_pages})"
    )
    output.append(f"\n{'='*60}\n\n")

    for listing in response.data:
        output.append(format_listing(listing))

    nav = []
    if pagination.has_prev:
        nav.append(f"--page {pagination.page - 1} for previous")
    if pagination.has_next:
        nav.append(f"--page {pagination.page + 1} for next")
    if nav:
        output.append(f"   ({'; '.join(nav)})\n")

    output.append(f"{'='*60}\n")
    return "".join(output)


def build_raw_query(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed CLI arguments to explore query parameters"""
    raw: Dict[str, Any] = {
        "q": args.query,
        "state": args.state,
        "lga": args.lga,
        "property_type": args.property_type,
        "listing_type": args.listing_type,
        "min_price": args.min_price,
        "max_price": args.max_price,
        "bedrooms": args.bedrooms,
        "bathrooms": args.bathrooms,
        "nepa_status": args.nepa_status,
        "water_source": args.water_source,
        "internet_type": args.internet_type,
        "security_type": args.security_type,
        "latitude": args.latitude,
        "longitude": args.longitude,
        "radius_km": args.radius_km,
        "page": args.page,
        "per_page": args.per_page,
        "sort_by": args.sort_by,
    }
    if args.has_bq:
        raw["has_bq"] = True
    if args.verified_only:
        raw["verified_only"] = True
    return {key: value for key, value in raw.items() if value is not None}


async def run_explore(
    raw: Dict[str, Any],
    fixture: Optional[str] = None,
    verbose: bool = False
) -> int:
    """
    Execute one explore query and print the result page.

    Args:
        raw: Explore query parameters
        fixture: Optional JSON fixture to search instead of the database
        verbose: Enable verbose logging output

    Returns:
        Exit code (0 for success, 1 for store errors, 2 for invalid queries)
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    settings = get_discovery_settings()
    uses_database = fixture is None

    try:
        if uses_database:
            await db.init_db(settings.storage)
            from discovery.store.postgres import PostgresListingStore
            store = PostgresListingStore(db.get_pg_pool())
        else:
            store = InMemoryListingStore.from_fixture(fixture)

        assembler = ResultAssembler(
            store=store,
            profiles=store,
            profile_cache=ProfileSummaryCache(ttl_seconds=settings.cache.profile_ttl_seconds),
        )
        service = ExploreService(store, assembler, settings)

        logger.info(f"Search parameters: {raw}")
        start_time = datetime.now()

        response = await service.explore(raw)

        elapsed_time = (datetime.now() - start_time).total_seconds()
        print(format_results(response))
        logger.info(f"Search completed in {elapsed_time:.2f} seconds")
        print(f"✅ Search completed in {elapsed_time:.2f} seconds\n")
        return EXIT_OK

    except QueryValidationError as e:
        print("Error: invalid search parameters", file=sys.stderr)
        for error in e.errors:
            print(f"  --{error.field.replace('_', '-')}: {error.message}", file=sys.stderr)
        return EXIT_INVALID_QUERY

    except StoreUnavailableError as e:
        logger.error(f"Listing store unavailable: {e} (cause: {e.cause!r})")
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return EXIT_STORE_ERROR

    except KeyboardInterrupt:
        logger.info("Search interrupted by user")
        print("\n\n⚠️  Search interrupted by user", file=sys.stderr)
        return 130

    finally:
        if uses_database:
            await db.close_db()


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="discovery-explore",
        description="Search live property listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Duplexes in Lekki, cheapest first
  discovery-explore --state Lagos --lga Lekki --property-type duplex --sort-by price_asc

  # Within 8 km of a point
  discovery-explore --latitude 6.45 --longitude 3.47 --radius-km 8

  # Gated, borehole-served flats from a fixture file
  discovery-explore "flat" --water-source borehole --security-type gated_community --fixture listings.json
        """
    )

    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Free-text search over title, address and description"
    )

    location = parser.add_argument_group("location")
    location.add_argument("--state", default=None, help="State, e.g. Lagos")
    location.add_argument("--lga", default=None, help="Local government area, e.g. Lekki")
    location.add_argument("--latitude", type=float, default=None)
    location.add_argument("--longitude", type=float, default=None)
    location.add_argument("--radius-km", type=float, default=None, help="Search radius around the point")

    facets = parser.add_argument_group("facets")
    facets.add_argument("--property-type", choices=sorted(legal_values(PropertyType)), default=None)
    facets.add_argument("--listing-type", choices=sorted(legal_values(ListingType)), default=None)
    facets.add_argument("--min-price", type=float, default=None)
    facets.add_argument("--max-price", type=float, default=None)
    facets.add_argument("--bedrooms", type=int, default=None, help="Minimum bedrooms")
    facets.add_argument("--bathrooms", type=int, default=None, help="Minimum bathrooms")
    facets.add_argument("--has-bq", action="store_true", help="Only listings with a boys' quarters")
    facets.add_argument("--verified-only", action="store_true", help="Only verified listings")
    facets.add_argument("--nepa-status", default=None)
    facets.add_argument("--water-source", default=None)
    facets.add_argument("--internet-type", default=None)
    facets.add_argument(
        "--security-type",
        action="append",
        default=None,
        help="Security feature; repeat to match any of several"
    )

    paging = parser.add_argument_group("paging")
    paging.add_argument("--page", type=int, default=None)
    paging.add_argument("--per-page", type=int, default=None)
    paging.add_argument(
        "--sort-by",
        default=None,
        help=f"One of {', '.join(key.value for key in SortKey)} (or relevance)"
    )

    parser.add_argument(
        "--fixture",
        default=None,
        help="JSON fixture file to search instead of the database"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        return asyncio.run(
            run_explore(build_raw_query(args), fixture=args.fixture, verbose=args.verbose)
        )
    except Exception as e:
        logger.exception(f"Unexpected error in main: {str(e)}")
        print(f"❌ Unexpected error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Main entry point and CLI for Property Scout.

Provides a command-line interface for natural-language property searches
with "pick N" follow-ups, grounded questions, AI backend status and retrieval
index statistics.
"""

from dotenv import load_dotenv
load_dotenv()

import asyncio
import argparse
import logging
import sys
from typing import Optional

from property_scout.ai.gateway import AIGateway
from property_scout.assistant import AssistantReply, PropertyAssistant
from property_scout.config.settings import get_settings
from property_scout.error_handling.exceptions import UnsupportedCurrency
from property_scout.models import SearchRequest, UserLocation
from property_scout.query.ai_parser import AIQueryParser
from property_scout.rag.context_builder import RAGService
from property_scout.ranking.ranker import RelevanceRanker
from property_scout.search.orchestrator import SearchOrchestrator
from property_scout.search.picker import PickResult
from property_scout.search.results import RankedListing, SearchResponse
from property_scout.search.store import SearchStore
from property_scout.sources.diagnostics import SiteDiagnostics
from property_scout.sources.mock import MockListingSource


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Lisbon
DEFAULT_LAT = 38.7223
DEFAULT_LNG = -9.1393


def format_listing(listing: RankedListing) -> str:
    """
    Format a ranked listing for console output.

    Args:
        listing: RankedListing to format

    Returns:
        Formatted string representation of the listing
    """
    lines = [f"🏠 {listing.title}"]
    lines.append(f"   Price: {listing.display_price}")

    details = []
    if listing.property_type:
        details.append(listing.property_type)
    if listing.beds is not None:
        details.append(f"{listing.beds} bed")
    if listing.area_sqm:
        details.append(f"{listing.area_sqm:,.0f} m²")
    if details:
        lines.append(f"   Details: {', '.join(details)}")

    location = listing.location_label
    if listing.distance_km is not None:
        location += f" ({listing.distance_km} km away)"
    lines.append(f"   Location: {location}")
    lines.append(f"   Match: {listing.match_score}/100")
    lines.append(f"   Why: {listing.ai_reasoning}")
    lines.append(f"   URL: {listing.source_url}")
    lines.append("")

    return "\n".join(lines)


def format_results(response: SearchResponse) -> str:
    """
    Format a search response for console output.

    Args:
        response: SearchResponse to format

    Returns:
        Formatted string representation of all results
    """
    output = [f"\n{'='*60}"]
    output.append(response.note)
    price_range = response.applied_price_range
    output.append(
        f"Match: {response.match_type.value} | "
        f"Price: {price_range.min or 0:,.0f} - {'∞' if price_range.max is None else f'{price_range.max:,.0f}'} EUR | "
        f"Radius: {response.applied_radius_km:.0f} km"
    )
    if not response.ai_available:
        output.append("⚠️  AI unavailable: using keyword ranking")
    output.append(f"{'='*60}\n")

    for listing in response.listings:
        output.append(format_listing(listing))

    if response.blocked_sites:
        output.append("🔒 Sites needing your own session:")
        for site in response.blocked_sites:
            output.append(f"   {site.site_name}: {site.reason}")
        output.append("")

    return "\n".join(output)


def format_pick(result: PickResult) -> str:
    """
    Format a "pick N" selection for console output.

    Args:
        result: PickResult to format

    Returns:
        Formatted string with the explanation and the picked listings
    """
    output = [f"\n🎯 {result.explanation}", ""]
    for listing in result.listings:
        output.append(format_listing(listing))
    return "\n".join(output)


def format_reply(reply: AssistantReply) -> str:
    source = "AI" if reply.used_ai else "knowledge base"
    return f"\n💬 {reply.text}\n\n   (answered from: {source})\n"


async def run_search(
    query: str,
    lat: float,
    lng: float,
    currency: str,
    label: str,
    mock: bool = False,
    pick: Optional[str] = None,
    gateway: Optional[AIGateway] = None,
    rag: Optional[RAGService] = None
) -> int:
    """
    Execute one orchestrated search, optionally followed by a "pick N" request.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not query or not query.strip():
        logger.error("Search query cannot be empty")
        print("Error: Search query is required", file=sys.stderr)
        return 1

    settings = get_settings()
    if mock:
        settings.mock_data = True

    gateway = gateway or AIGateway(config=settings.ai_config, retry_config=settings.retry_config)
    rag = rag or RAGService(config=settings.rag_config)
    store = SearchStore()
    diagnostics = SiteDiagnostics()
    orchestrator = SearchOrchestrator(
        sources=[MockListingSource()],
        ranker=RelevanceRanker(gateway, settings.ranking_config),
        query_parser=AIQueryParser(gateway, settings.ai_config),
        rag=rag,
        diagnostics=diagnostics,
        store=store,
        settings=settings,
    )
    assistant = PropertyAssistant(rag, gateway, store)

    print(f"\n🔍 Searching for '{query}' near {label}...")
    picked = None
    try:
        response = await orchestrator.run_search(
            SearchRequest(query=query, user_location=UserLocation(label, lat, lng, currency))
        )
        if pick:
            picked = await assistant.pick(pick, response.search_id)
    except UnsupportedCurrency as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await gateway.close()
        await rag.embeddings.close()
        await diagnostics.close()

    print(format_results(response))
    if picked is not None:
        print(format_pick(picked))
    print(f"✅ Search completed in {response.search_time_ms / 1000:.2f} seconds\n")
    return 0


async def ask_question(
    question: str,
    conversation_id: Optional[str] = None,
    gateway: Optional[AIGateway] = None,
    rag: Optional[RAGService] = None
) -> int:
    """
    Answer a question about buying property, grounded in the knowledge base.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not question or not question.strip():
        logger.error("Question cannot be empty")
        print("Error: A question is required", file=sys.stderr)
        return 1

    settings = get_settings()
    gateway = gateway or AIGateway(config=settings.ai_config, retry_config=settings.retry_config)
    rag = rag or RAGService(config=settings.rag_config)
    try:
        reply = await PropertyAssistant(rag, gateway).answer(question, conversation_id)
    finally:
        await gateway.close()
        await rag.embeddings.close()

    print(format_reply(reply))
    return 0


async def show_backends() -> int:
    settings = get_settings()
    gateway = AIGateway(config=settings.ai_config, retry_config=settings.retry_config)
    try:
        statuses = await gateway.list_backends()
    finally:
        await gateway.close()

    for status in statuses:
        marker = "●" if status.available else "○"
        active = " (active)" if status.active else ""
        print(f"{marker} {status.label} [{status.name}] model={status.model}{active}")
        if not status.configured:
            print("    not configured")
        elif status.models and len(status.models) > 1:
            print(f"    models: {', '.join(status.models)}")
    return 0


async def show_rag_stats() -> int:
    rag = RAGService(config=get_settings().rag_config)
    try:
        stats = rag.get_stats()
    finally:
        await rag.embeddings.close()

    for key, value in stats.items():
        print(f"{key}: {value}")
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="property-scout",
        description="Natural-language property search for Portugal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search for cheap land near Lisbon
  property-scout search "land under 30000 near Lisbon"

  # Search from Porto with a budget in dollars
  property-scout search "apartment around $90k" --lat 41.1579 --lng -8.6291 --label Porto

  # Search, then pick the two closest results
  property-scout search "apartment in Lisbon" --pick "pick 2 closest to the center"

  # Ask about the buying process
  property-scout ask "Do I need a NIF to buy land?"

  # Show AI backend status
  property-scout backends
        """
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Run a property search")
    search.add_argument("query", help="Free-text query (e.g., 'T2 for rent in Lisbon under 1500')")
    search.add_argument("--lat", type=float, default=DEFAULT_LAT, help="Latitude of the search center")
    search.add_argument("--lng", type=float, default=DEFAULT_LNG, help="Longitude of the search center")
    search.add_argument("--currency", default="EUR", help="Currency for prices without a symbol (EUR, USD, GBP)")
    search.add_argument("--label", default="Lisbon", help="Name of the search center")
    search.add_argument("--mock", action="store_true", help="Offline mode: skip site diagnostics")
    search.add_argument("--pick", metavar="REQUEST", help="Follow-up pick from the results (e.g., 'pick 2 closest')")

    ask = subparsers.add_parser("ask", help="Ask a question about buying property in Portugal")
    ask.add_argument("question", help="Free-text question (e.g., 'How much is IMT on a 200k house?')")
    ask.add_argument("--conversation", help="Conversation id: recalls and stores earlier turns")

    subparsers.add_parser("backends", help="Show AI backend status")
    subparsers.add_parser("rag-stats", help="Show retrieval index statistics")

    return parser


def main() -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    if args.command == "search":
        coroutine = run_search(
            args.query, args.lat, args.lng, args.currency.upper(), args.label, args.mock, args.pick
        )
    elif args.command == "ask":
        coroutine = ask_question(args.question, args.conversation)
    elif args.command == "backends":
        coroutine = show_backends()
    else:
        coroutine = show_rag_stats()

    try:
        return asyncio.run(coroutine)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print("\n\n⚠️  Interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error in main: {str(e)}")
        print(f"❌ Unexpected error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

# =============================================================================
# main.py  -  Entry Point for the BuschGPT MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py          # MCP server on stdio (what MCP clients spawn)
#   uv run python main.py --ask    # type questions yourself, no MCP client
#
# WHAT HAPPENS:
#   1. Loads .env (STATWORX_AUTH_SERVER, STATWORX_CLIENT_ID, ...)
#   2. Validates settings; missing credentials stop the process right here
#   3. Builds ONE httpx client, ONE TokenManager and ONE QueryDispatcher
#   4. Either serves the buschgpt_query tool over stdio, or runs the
#      interactive ask loop against the same dispatcher
#
# WHY ONE OF EACH?
#   The TokenManager owns the process's only bearer token.  Constructing it
#   once here and injecting it everywhere is what makes a refresh triggered
#   by call N visible to call N+1.
# =============================================================================

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from core.config import Settings, load_settings
from core.dispatcher import QueryDispatcher
from core.errors import BuschGPTError, ConfigurationError
from core.http import create_http_client
from core.token_manager import TokenManager
from tools.mcp_server import create_server

logger = logging.getLogger("buschgpt")


def configure_logging(level: str = "INFO") -> None:
    """Send all logging to STDERR; stdout belongs to the MCP transport."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def build_dispatcher(settings: Settings, client) -> QueryDispatcher:
    """Wire a TokenManager and QueryDispatcher around a shared client."""
    token_manager = TokenManager(
        settings.credentials,
        client,
        refresh_margin=settings.token_refresh_margin,
    )
    return QueryDispatcher(token_manager, client, settings.chat_url)


async def serve(settings: Settings) -> None:
    """Run the MCP server on stdio until the client disconnects."""
    async with create_http_client(settings.http_timeout) as client:
        server = create_server(build_dispatcher(settings, client))
        logger.info("BuschGPT MCP server running on stdio")
        await server.run_async(transport="stdio")


async def ask(settings: Settings) -> None:
    """Interactive loop: read a question, print BuschGPT's answer."""
    print("=" * 70)
    print("  BUSCHGPT")
    print("  (Type 'quit' to exit)")
    print("=" * 70)

    async with create_http_client(settings.http_timeout) as client:
        dispatcher = build_dispatcher(settings, client)

        while True:
            try:
                question = input("\nYou: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break

            if question.lower() in ("quit", "exit", "q"):
                print("\nGoodbye!")
                break

            if not question:
                continue

            try:
                answer = await dispatcher.handle_query(question)
            except BuschGPTError as exc:
                print(f"\nError: {exc}")
                continue

            print(f"\nBuschGPT:\n\n{answer}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="BuschGPT MCP server")
    parser.add_argument(
        "--ask",
        action="store_true",
        help="ask questions interactively instead of serving MCP on stdio",
    )
    args = parser.parse_args(argv)

    # Must happen BEFORE load_settings(): .env only fills os.environ.
    load_dotenv()

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging()
        logger.error("%s", exc)
        return 1

    configure_logging(settings.log_level)

    if args.ask:
        asyncio.run(ask(settings))
    else:
        asyncio.run(serve(settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())

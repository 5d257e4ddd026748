# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (the buschgpt_query tool)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares the ONE MCP tool this server offers, buschgpt_query, and wires
#   it to a QueryDispatcher from core/.  The tool is a thin wrapper: it logs,
#   calls the dispatcher, and translates core errors into MCP tool errors.
#
# HOW IT WORKS (the flow):
#   1. The MCP client (the "tool host") calls "buschgpt_query" with {query}
#   2. FastMCP validates the arguments against the tool's signature
#      (missing or non-string query → invalid params, before we run at all)
#   3. The function below hands the query to QueryDispatcher.handle_query()
#   4. The answer text comes back to the client as a text result
#
# ERROR TRANSLATION:
#   Unknown tool names never reach us; FastMCP rejects them.  Everything
#   else becomes a ToolError:
#     - InvalidQueryError (e.g. empty string) → the validation message
#     - QueryError (auth or chat failure)     → "Failed to query BuschGPT: ..."
#   The host therefore sees a single "internal error" kind for auth and chat
#   failures and can only tell them apart by message text.
#
# RUNNING THIS SERVER:
#   python main.py               (stdio transport, for MCP clients)
#   python main.py --ask         (interactive, no MCP client needed)
# =============================================================================

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from core.dispatcher import QueryDispatcher
from core.errors import InvalidQueryError, QueryError

SERVER_NAME = "buschgpt-mcp-server"
SERVER_VERSION = "0.1.0"
TOOL_NAME = "buschgpt_query"

# The tool description is what the client's LLM reads to decide WHEN to call
# this tool.  Keep it concrete about what BuschGPT knows.
TOOL_DESCRIPTION = (
    "Query the BuschGPT service for technical information about Busch products. "
    "BuschGPT has access to technical manuals and specification sheets, and can help with "
    "product codes, weights, specifications, and technical documentation. "
    "Ideal for finding similar products, technical details, and product information."
)

# =============================================================================
# Logging helpers
# =============================================================================
# stdout IS the MCP transport.  Anything we print there corrupts the JSON-RPC
# stream, so all logging goes to stderr (see main.configure_logging).
#
# ANSI colors make tool calls easy to spot in a terminal:
#   CYAN for requests, YELLOW for status, GREEN for responses, RED for errors.
# Answers and tokens are never logged, only their size.
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, answer: str) -> str:
    """Log the size of the answer in GREEN, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response: {len(answer)} chars{_RESET}")
    return answer


def _log_error(tool_name: str, message: str) -> None:
    logger.warning(f"{_RED}  ✗ {tool_name} failed: {message}{_RESET}")


# =============================================================================
# Server factory
# =============================================================================
# The dispatcher is INJECTED rather than built at import time.  Building it
# needs credentials, and credentials are only validated once, at startup, by
# main.py.  Tests pass in a dispatcher backed by a mock transport.
# =============================================================================
def create_server(dispatcher: QueryDispatcher) -> FastMCP:
    """Build the FastMCP server exposing buschgpt_query."""
    mcp = FastMCP(SERVER_NAME, version=SERVER_VERSION)

    @mcp.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
    async def buschgpt_query(
        query: Annotated[str, Field(description="The question or query to send to BuschGPT")],
    ) -> str:
        _log_request(TOOL_NAME, query=query)

        try:
            answer = await dispatcher.handle_query(query)
        except InvalidQueryError as exc:
            _log_error(TOOL_NAME, str(exc))
            raise ToolError(str(exc)) from exc
        except QueryError as exc:
            _log_error(TOOL_NAME, str(exc))
            raise ToolError(f"Failed to query BuschGPT: {exc}") from exc

        _log_status("BuschGPT answered")
        return _log_response(TOOL_NAME, answer)

    return mcp

# =============================================================================
# core/dispatcher.py  -  Query → BuschGPT chat call → Answer
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Takes a caller's natural-language question, sends it to the BuschGPT
#   chat endpoint with a valid bearer token, and returns the answer text.
#
# HOW IT WORKS (the flow):
#   1. Reject empty / non-string queries before touching the network
#   2. Ask the TokenManager for a valid token (it refreshes if needed)
#   3. Build {"message": {role, content, streaming, createdAt}}
#   4. POST it with "Authorization: Bearer <token>"
#   5. Return the "content" field VERBATIM (no trimming, no reformatting)
#
# ONE ATTEMPT ONLY:
#   Exactly one token lookup and one chat call per handle_query().  A failed
#   chat call does NOT invalidate the token; the token was fine, the chat
#   service was not.
#
# ONE ERROR TAXONOMY:
#   Everything that goes wrong after validation comes out as QueryError.  An
#   AuthError from the token step is re-raised as a QueryError with the same
#   message and the AuthError attached as __cause__.
# =============================================================================

import logging
import time
from typing import Any, Callable

import httpx

from core.errors import AuthError, InvalidQueryError, QueryError
from core.http import describe_response, describe_transport_error, status_text
from core.models import ChatMessage, DownstreamFailure
from core.token_manager import TokenManager

logger = logging.getLogger(__name__)

INVALID_QUERY_MESSAGE = "Query parameter is required and must be a string"


class QueryDispatcher:
    """Forwards queries to the BuschGPT chat endpoint."""

    def __init__(
        self,
        token_manager: TokenManager,
        client: httpx.AsyncClient,
        chat_url: str,
        clock: Callable[[], float] = time.time,
    ):
        self._token_manager = token_manager
        self._client = client
        self._chat_url = chat_url
        self._clock = clock

    async def handle_query(self, query: Any) -> str:
        """Send one query to BuschGPT and return its answer text.

        Raises:
            InvalidQueryError: if query is empty or not a string.  No network
                call is made.
            QueryError: if the token could not be obtained or the chat call
                did not produce an answer.
        """
        if not isinstance(query, str) or not query:
            raise InvalidQueryError(INVALID_QUERY_MESSAGE)

        try:
            token = await self._token_manager.get_valid_token()
        except AuthError as exc:
            raise QueryError(str(exc), exc.failure) from exc

        payload = ChatMessage(content=query, createdAt=self._clock()).to_payload()
        headers = {
            "Content-Type": "application/json",
            "Authorization": token.authorization_header(),
        }

        try:
            response = await self._client.post(self._chat_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            failure = describe_transport_error(exc)
            logger.warning("Chat request failed: %s", failure)
            raise QueryError(f"BuschGPT request failed: {failure}", failure) from exc

        if response.status_code != 200:
            failure = describe_response(response)
            logger.warning("Chat request rejected: %s", failure)
            raise QueryError(f"BuschGPT request failed: {failure}", failure)

        return self._extract_content(response)

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as exc:
            failure = DownstreamFailure(
                status=response.status_code,
                message=f"{status_text(response)}: response is not valid JSON",
            )
            raise QueryError(f"BuschGPT request failed: {failure}", failure) from exc

        content = data.get("content") if isinstance(data, dict) else None
        if not content or not isinstance(content, str):
            failure = DownstreamFailure(
                status=response.status_code,
                message=f"{status_text(response)}: no content in response",
            )
            raise QueryError(f"BuschGPT request failed: {failure}", failure)
        return content

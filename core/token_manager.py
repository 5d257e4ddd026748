# =============================================================================
# core/token_manager.py  -  Bearer Token Lifecycle
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Owns the ONE bearer token the process uses to talk to the chat service.
#   It acquires the token lazily (on first use), decides when it is stale,
#   and replaces it with a fresh one from the OAuth2 issuer when needed.
#
# THE STATE MACHINE:
#
#     ┌─────────┐   issuer exchange OK    ┌─────────┐
#     │  Unset  │ ──────────────────────▶ │  Valid  │
#     └─────────┘                         └─────────┘
#          ▲          exp has passed           │
#          └───────────────────────────────────┘
#
#   get_valid_token() in Valid returns the held token with NO network call.
#   get_valid_token() in Unset performs exactly one issuer exchange.  If the
#   exchange fails, nothing is stored and AuthError propagates.
#
# EXPIRY IS READ FROM THE TOKEN ITSELF:
#   The issuer hands out JWTs.  We decode the payload WITHOUT verifying the
#   signature and read only the "exp" claim.  This is a trust boundary:
#     - the token came straight from the issuer over HTTPS, and
#     - the decoded claims are never used to authorize anything locally;
#       the chat service verifies the signature when we present the token.
#   Verifying here would need the issuer's signing keys, which we do not have.
#   A token that fails to decode, or has no "exp", is treated as EXPIRED.
#   We always fail toward re-acquisition, never toward using a token we
#   cannot reason about.
#
# CONCURRENCY:
#   The token is swapped as a whole frozen BearerToken, so no caller can see a
#   half-updated value.  At most one issuer exchange is in flight: the first
#   caller to find the token stale starts it as a task, and every caller that
#   arrives meanwhile awaits that same task.  They all get its token, or all
#   get its AuthError.
# =============================================================================

import asyncio
import logging
import math
import time
from typing import Callable, Optional

import httpx
import jwt

from core.errors import AuthError
from core.http import describe_response, describe_transport_error, status_text
from core.models import BearerToken, Credentials, DownstreamFailure

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def decode_expiry(token: str) -> Optional[float]:
    """Read the "exp" claim of a JWT without verifying its signature.

    Returns:
        The expiry as seconds since epoch, or None if the token cannot be
        decoded or carries no usable "exp" claim.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None

    exp = claims.get("exp") if isinstance(claims, dict) else None
    if exp is None or isinstance(exp, bool):
        return None
    try:
        value = float(exp)
    except (TypeError, ValueError):
        return None
    # "nan" and "inf" parse as floats but never compare as expired.
    return value if math.isfinite(value) else None


def is_token_expired(
    token: Optional[BearerToken],
    now: Optional[float] = None,
    margin: float = 0.0,
) -> bool:
    """True unless the token's expiry is strictly in the future.

    Args:
        token: The held token, or None.
        now: Current time in seconds since epoch (defaults to time.time()).
        margin: Seconds to treat as already expired before "exp".  Zero means
            the token is used right up to its expiry instant.
    """
    if token is None or token.expires_at is None:
        return True
    if not math.isfinite(token.expires_at):
        return True
    if now is None:
        now = time.time()
    return token.expires_at - margin <= now


class TokenManager:
    """Lazily acquires, caches and refreshes the issuer's bearer token."""

    def __init__(
        self,
        credentials: Credentials,
        client: httpx.AsyncClient,
        refresh_margin: float = 0.0,
        clock: Callable[[], float] = time.time,
    ):
        self._credentials = credentials
        self._client = client
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[BearerToken] = None
        self._refresh: Optional[asyncio.Future] = None

    @property
    def token(self) -> Optional[BearerToken]:
        """The currently held token, if any (possibly stale)."""
        return self._token

    def is_valid(self) -> bool:
        return not is_token_expired(self._token, self._clock(), self._refresh_margin)

    def invalidate(self) -> None:
        """Drop the held token so the next call performs an issuer exchange."""
        self._token = None

    async def get_valid_token(self) -> BearerToken:
        """Return a non-expired token, exchanging credentials if needed.

        Raises:
            AuthError: if the issuer exchange fails.
        """
        token = self._token
        if not is_token_expired(token, self._clock(), self._refresh_margin):
            return token

        if self._refresh is None:
            self._refresh = asyncio.ensure_future(self._refresh_token())
        # shield: one cancelled caller must not cancel the exchange for the rest.
        return await asyncio.shield(self._refresh)

    async def _refresh_token(self) -> BearerToken:
        try:
            token = await self._exchange()
            self._token = token
            return token
        finally:
            self._refresh = None

    async def _exchange(self) -> BearerToken:
        """Perform one client-credentials exchange with the issuer."""
        logger.info("Requesting access token from %s", self._credentials.issuer_url)
        try:
            response = await self._client.post(
                self._credentials.issuer_url,
                data=self._credentials.form_data(),
                headers=_FORM_HEADERS,
            )
        except httpx.HTTPError as exc:
            failure = describe_transport_error(exc)
            logger.warning("Token request failed: %s", failure)
            raise AuthError(f"Authentication request failed: {failure}", failure) from exc

        if response.status_code != 200:
            failure = describe_response(response)
            logger.warning("Token request rejected: %s", failure)
            raise AuthError(f"Authentication request failed: {failure}", failure)

        try:
            payload = response.json()
        except ValueError as exc:
            failure = DownstreamFailure(
                status=response.status_code,
                message=f"{status_text(response)}: response is not valid JSON",
            )
            raise AuthError(f"Authentication failed: {failure}", failure) from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token or not isinstance(access_token, str):
            failure = DownstreamFailure(
                status=response.status_code,
                message=f"{status_text(response)}: no access_token in response",
            )
            raise AuthError(f"Authentication failed: {failure}", failure)

        expires_at = decode_expiry(access_token)
        if expires_at is None:
            logger.warning(
                "Access token has no decodable expiry; it will be refreshed on next use"
            )
        else:
            logger.info("Access token acquired, expires in %.0fs", expires_at - self._clock())
        return BearerToken(value=access_token, expires_at=expires_at)

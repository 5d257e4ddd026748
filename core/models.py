# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the pipeline)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that flows
# through the authenticated request pipeline.  They carry almost no behavior.
#
# WHY FROZEN DATACLASSES?
#   - Credentials never change for the lifetime of the process.
#   - A BearerToken is replaced WHOLESALE on refresh, never edited in place.
#     Making it frozen turns "never partially updated" into something the
#     interpreter enforces instead of something we have to remember.
#
# SECRETS:
#   Neither the client secret nor the token value may appear in a repr().
#   Reprs end up in logs and tracebacks.
# =============================================================================

from dataclasses import asdict, dataclass, field
from typing import Optional


# -----------------------------------------------------------------------------
# Credentials - who we are when we talk to the token issuer
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Credentials:
    """OAuth2 client-credentials configuration for the token issuer."""

    issuer_url: str                    # Token endpoint, e.g. https://auth.example.com/token
    client_id: str
    client_secret: str = field(repr=False)

    def form_data(self) -> dict[str, str]:
        """Form body for the client-credentials grant."""
        return {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }


# -----------------------------------------------------------------------------
# BearerToken - the credential we present to the chat endpoint
# -----------------------------------------------------------------------------
# expires_at is DERIVED from the token's own "exp" claim at acquisition time.
# None means the token could not be decoded or carried no expiry; such a
# token is always considered stale.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class BearerToken:
    """An access token plus the expiry instant decoded from it."""

    value: str = field(repr=False)
    expires_at: Optional[float] = None  # Seconds since epoch

    def authorization_header(self) -> str:
        return f"Bearer {self.value}"


# -----------------------------------------------------------------------------
# ChatMessage - one user turn sent to the chat endpoint
# -----------------------------------------------------------------------------
@dataclass
class ChatMessage:
    """A single chat message in the downstream wire format."""

    content: str
    createdAt: float                   # Seconds since epoch, fractional
    role: str = "user"
    streaming: bool = False            # Streaming responses are not supported

    def to_payload(self) -> dict:
        """Request body: {"message": {...}}."""
        return {"message": asdict(self)}


# -----------------------------------------------------------------------------
# DownstreamFailure - what we could learn from a failed HTTP exchange
# -----------------------------------------------------------------------------
# Error bodies from the issuer and the chat service have no fixed schema.
# We keep only the status (None for transport failures) and whatever text we
# could extract.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class DownstreamFailure:
    """Status code plus best-effort diagnostic text."""

    status: Optional[int]
    message: str

    def __str__(self) -> str:
        return self.message

"""Authentication of inbound change notifications."""

from notesearch.webhooks.security import (
    extract_bearer_token,
    generate_signature,
    verify_signature,
)

__all__ = ["extract_bearer_token", "generate_signature", "verify_signature"]

"""Inbound change notifications from the record source."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from notesearch.errors import (
    InvalidChangeEventError,
    SearchEngineError,
    SearchEngineUnavailableError,
)
from notesearch.records.schemas import ChangeEvent
from notesearch.webhooks.security import extract_bearer_token, verify_signature

if TYPE_CHECKING:
    from notesearch.config import Settings
    from notesearch.search.sync import SyncEngine

logger = structlog.get_logger()

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class WebhookResponse(BaseModel):
    """Acknowledgement for a processed change notification."""

    success: bool
    message: str


def _failure(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    content: dict[str, object] = {"success": False, "error": error}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


@router.post("/notes", response_model=WebhookResponse)
async def note_changed(request: Request) -> WebhookResponse | JSONResponse:
    """Apply a signed note change notification to the search index.

    The signature is checked against the raw body before anything is
    parsed. Any non-2xx answer makes the record source redeliver.

    Args:
        request: FastAPI request carrying the raw notification body.

    Returns:
        200 on success; 401 on a missing or bad signature; 400 on a
        malformed payload; 500 if the index update failed; 503 if no
        signing secret is configured.
    """
    settings: Settings = request.app.state.settings
    sync_engine: SyncEngine = request.app.state.sync_engine

    if not settings.webhook_secret:
        logger.error("webhook_secret_missing")
        return _failure(503, "Webhook signing secret is not configured")

    raw_body = await request.body()
    signature = extract_bearer_token(request.headers.get("authorization"))

    if signature is None:
        logger.warning("webhook_rejected", reason="missing_authorization")
        return _failure(401, "Missing authorization header")

    if not verify_signature(raw_body, signature, settings.webhook_secret):
        logger.warning("webhook_rejected", reason="invalid_signature")
        return _failure(401, "Invalid signature")

    try:
        event = ChangeEvent.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning("webhook_payload_invalid", errors=e.error_count())
        return _failure(400, "Invalid payload", str(e))

    log = logger.bind(event_type=event.type.value, table=event.table)
    log.info("webhook_received")

    try:
        await sync_engine.apply_event(event)
    except InvalidChangeEventError as e:
        log.warning("webhook_event_rejected", error=str(e))
        return _failure(400, "Invalid payload", str(e))
    except (SearchEngineError, SearchEngineUnavailableError) as e:
        log.error("webhook_processing_failed", error=str(e))
        return _failure(500, "Failed to process webhook", str(e))
    except Exception as e:
        log.exception("webhook_processing_crashed")
        return _failure(500, "Failed to process webhook", str(e))

    return WebhookResponse(
        success=True,
        message=f"{event.type.value} event processed successfully",
    )

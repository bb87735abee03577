"""
Contest entry routes.

Endpoints:
- POST /entry - Submit a contest entry
- GET /api/admin/entries/{contest_id}/{entry_id}/schedules - Which deferred jobs exist
- POST /api/admin/entries/{contest_id}/{entry_id}/schedules - Re-register deferred jobs
"""

import hmac
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from contest.errors import EntryNotFound, InvalidInput
from contest.service import EntryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["entries"])


def get_entry_service(request: Request) -> EntryService:
    """The process-wide EntryService built in the app lifespan."""
    service = getattr(request.app.state, "entry_service", None)
    if service is None:
        raise HTTPException(503, "Service not ready")
    return service


def require_admin_token(request: Request) -> None:
    """Check the X-Admin-Token header against ADMIN_API_TOKEN."""
    settings = getattr(request.app.state, "settings", None)
    expected = settings.admin_api_token if settings else None
    if not expected:
        raise HTTPException(503, "Admin API disabled")

    provided = request.headers.get("x-admin-token", "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(401, "Invalid admin token")


@router.post("/entry")
async def create_entry(
    request: Request,
    service: EntryService = Depends(get_entry_service),
) -> dict[str, Any]:
    """
    Submit a contest entry.

    Body:
        contestId, drawAtIso, reminderAtIso?, locale?, consent?, email, phone,
        plus contest-specific profile fields (firstName, lastName, ...).

    Returns {"ok": true, "entryId": ...}. Errors are rendered by
    web_api.error_handlers (400 / 409 / 500).
    """
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("invalid body")

    result = await service.submit(body)
    if not result.confirmation_sent:
        logger.info(f"Entry {result.entry.entry_id} accepted without confirmation email")

    return {"ok": True, "entryId": result.entry.entry_id}


@router.get(
    "/api/admin/entries/{contest_id}/{entry_id}/schedules",
    dependencies=[Depends(require_admin_token)],
)
async def get_entry_schedules(
    contest_id: str,
    entry_id: str,
    service: EntryService = Depends(get_entry_service),
) -> dict[str, Any]:
    """Report whether the reminder and draw-day jobs are registered."""
    entry = await service.store.get_entry(contest_id, entry_id)
    if entry is None:
        raise EntryNotFound(contest_id, entry_id)
    pending = await service.scheduler.pending_status(entry_id)
    return {"entryId": entry_id, "pending": pending}


@router.post(
    "/api/admin/entries/{contest_id}/{entry_id}/schedules",
    dependencies=[Depends(require_admin_token)],
)
async def repair_entry_schedules(
    contest_id: str,
    entry_id: str,
    service: EntryService = Depends(get_entry_service),
) -> dict[str, Any]:
    """
    Re-register both deferred jobs for an admitted entry.

    Use after a SchedulingFailed response; never re-submit the entry itself.
    """
    schedules = await service.repair_schedules(contest_id, entry_id)
    return {"ok": True, "schedules": schedules}

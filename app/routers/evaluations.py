# app/routers/evaluations.py
"""
Course evaluations API router.

Endpoints:
- GET  /api/v1/evaluations                      list (newest first)
- POST /api/v1/evaluations                      create + analyze
- POST /api/v1/evaluations/generate_upload_url  issue a single-use upload URL
- POST /api/v1/evaluations/upload_file          receive raw bytes for a ticket
- GET  /api/v1/evaluations/blobs/{storage_id}   fetch an uploaded image
"""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from app.config import get_config
from app.correlation import get_request_id
from app.schemas.evaluations import CreateEvaluationRequest, format_evaluation
from app.services.evaluations import create_course_evaluation, list_course_evaluations
from auth.middleware import get_required_user
from auth.models import User
from persistence.blobs import (
    DEFAULT_CONTENT_TYPE,
    TicketError,
    issue_upload_ticket,
    redeem_upload_ticket,
    resolve_storage_reference,
    sign_blob_id,
    store_blob,
)

_logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(
    prefix="/api/v1/evaluations",
    tags=["evaluations"],
)


def _blob_url_builder(raw_request: Request) -> Callable[[str], str]:
    """Build absolute, fetchable URLs for internal blob IDs."""

    def build(blob_id: str) -> str:
        return str(raw_request.url_for("get_blob", storage_id=sign_blob_id(blob_id)))

    return build


# =============================================================================
# Evaluations
# =============================================================================


@router.get("")
async def list_evaluations(raw_request: Request, user: User = Depends(get_required_user)):
    """
    List the current user's evaluations, newest first.

    Every field is emitted in both camelCase and snake_case.
    """
    blob_url = _blob_url_builder(raw_request)
    records = list_course_evaluations(user)
    return [
        format_evaluation(record, [blob_url(blob_id) for blob_id in record.image_blob_ids])
        for record in records
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_evaluation(
    request: CreateEvaluationRequest,
    raw_request: Request,
    user: User = Depends(get_required_user),
):
    """
    Create an evaluation and return the populated analysis result.

    Response:
        201 with the result object, or 422 {"errors": [...]} with nothing stored
    """
    result, errors = await create_course_evaluation(
        user,
        request,
        blob_url=_blob_url_builder(raw_request),
        provider_name=get_config().analysis_provider,
    )

    if errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"errors": errors},
        )

    return JSONResponse(status_code=status.HTTP_201_CREATED, content=result)


# =============================================================================
# Two-phase Upload
# =============================================================================


@router.post("/generate_upload_url")
async def generate_upload_url(raw_request: Request, user: User = Depends(get_required_user)):
    """
    Issue a single-use upload URL.

    The body is a bare JSON string, not an object.
    """
    ticket = issue_upload_ticket(
        user.id,
        ttl_seconds=get_config().upload_ticket_ttl_seconds,
    )
    upload_url = raw_request.url_for("upload_file").include_query_params(ticket=ticket)
    return JSONResponse(content=str(upload_url))


@router.post("/upload_file", name="upload_file")
async def upload_file(raw_request: Request, ticket: str = ""):
    """
    Receive raw bytes for one object.

    The ticket is voided before the body is inspected, so a failed
    transfer still consumes it.

    Response:
        {"storageId": "..."}
    """
    request_id = get_request_id(raw_request) or "unknown"

    try:
        user_id = redeem_upload_ticket(ticket)
    except TicketError as e:
        _logger.warning(f"[{request_id}] Upload rejected: {e}")
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "Upload ticket is invalid, expired or already used"},
        )

    max_upload_bytes = get_config().max_upload_bytes
    too_large = JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={"error": f"File exceeds the {max_upload_bytes} byte upload limit"},
    )

    declared = raw_request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_upload_bytes:
        _logger.warning(f"[{request_id}] Upload rejected: declared {declared} bytes")
        return too_large

    body = await raw_request.body()
    if not body:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "No file provided"},
        )

    if len(body) > max_upload_bytes:
        return too_large

    content_type = raw_request.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    blob_id = store_blob(body, content_type=content_type, user_id=user_id)

    return {"storageId": sign_blob_id(blob_id)}


@router.get("/blobs/{storage_id}", name="get_blob")
async def get_blob(storage_id: str):
    """Serve the bytes behind a storage reference."""
    blob = resolve_storage_reference(storage_id)
    if blob is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "not_found"},
        )

    return Response(content=blob.data, media_type=blob.content_type)

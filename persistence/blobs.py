# persistence/blobs.py
"""
Blob storage for uploaded course images.

Two-phase upload:
1. issue_upload_ticket() hands out a signed, single-use ticket
2. redeem_upload_ticket() voids the ticket, then store_blob() persists bytes

Stored blobs are addressed from the outside only by signed storage
references (see sign_blob_id / resolve_storage_reference).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from persistence.db import get_db, init_db
from persistence.tokens import (
    PURPOSE_BLOB,
    PURPOSE_UPLOAD,
    TokenError,
    sign_token,
    verify_token,
)

_logger = logging.getLogger(__name__)

# Default ticket lifetime (5 minutes)
DEFAULT_TICKET_TTL_SECONDS = 300

DEFAULT_CONTENT_TYPE = "image/jpeg"


class TicketError(Exception):
    """Upload ticket is invalid, expired or already used."""
    pass


@dataclass(frozen=True)
class StoredBlob:
    """A persisted binary object."""
    id: str
    user_id: Optional[str]
    content_type: str
    byte_size: int
    data: bytes
    created_at: datetime


# =============================================================================
# Upload Tickets
# =============================================================================


def issue_upload_ticket(
    user_id: Optional[str],
    ttl_seconds: int = DEFAULT_TICKET_TTL_SECONDS,
) -> str:
    """
    Issue a single-use upload ticket.

    Args:
        user_id: Principal the upload is made on behalf of
        ttl_seconds: Ticket lifetime

    Returns:
        Signed ticket string
    """
    init_db()

    jti = uuid4().hex
    issued_at = datetime.utcnow()
    expires_at = issued_at + timedelta(seconds=ttl_seconds)

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO upload_tickets (jti, user_id, issued_at, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (jti, user_id, issued_at.isoformat(), expires_at.isoformat()),
        )

    _logger.debug(f"Issued upload ticket {jti}")
    return sign_token(
        {"jti": jti, "sub": user_id},
        PURPOSE_UPLOAD,
        expires_delta=timedelta(seconds=ttl_seconds),
    )


def redeem_upload_ticket(ticket: str) -> Optional[str]:
    """
    Void an upload ticket.

    The ticket is consumed even if the caller's transfer later fails.

    Returns:
        The user ID the ticket was issued to

    Raises:
        TicketError: If the ticket is invalid, expired or already used
    """
    init_db()

    try:
        claims = verify_token(ticket, PURPOSE_UPLOAD)
    except TokenError as e:
        raise TicketError(f"Upload ticket is invalid: {e}") from e

    jti = claims.get("jti")
    if not jti:
        raise TicketError("Upload ticket is invalid: missing jti")

    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE upload_tickets SET redeemed_at = ?
            WHERE jti = ? AND redeemed_at IS NULL
            """,
            (datetime.utcnow().isoformat(), jti),
        )
        if cursor.rowcount != 1:
            raise TicketError("Upload ticket has already been used")

    return claims.get("sub")


# =============================================================================
# Blobs
# =============================================================================


def store_blob(
    data: bytes,
    content_type: Optional[str] = None,
    user_id: Optional[str] = None,
) -> str:
    """
    Persist raw bytes.

    Returns:
        Internal blob ID (not exposed to clients; see sign_blob_id)
    """
    init_db()

    blob_id = str(uuid4())
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO blobs (id, user_id, content_type, byte_size, data, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                blob_id,
                user_id,
                content_type or DEFAULT_CONTENT_TYPE,
                len(data),
                data,
                datetime.utcnow().isoformat(),
            ),
        )

    _logger.info(f"Stored blob {blob_id} ({len(data)} bytes)")
    return blob_id


def get_blob(blob_id: str) -> Optional[StoredBlob]:
    """Get a blob by internal ID."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM blobs WHERE id = ?",
            (blob_id,),
        ).fetchone()

    if row is None:
        return None

    return StoredBlob(
        id=row["id"],
        user_id=row["user_id"],
        content_type=row["content_type"],
        byte_size=row["byte_size"],
        data=bytes(row["data"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def sign_blob_id(blob_id: str) -> str:
    """Create the storage reference handed to clients for a blob."""
    return sign_token({"blob": blob_id}, PURPOSE_BLOB)


def resolve_storage_reference(storage_id: str) -> Optional[StoredBlob]:
    """
    Resolve a signed storage reference to its blob.

    Returns None if the reference is forged or the blob is gone.
    """
    try:
        claims = verify_token(storage_id, PURPOSE_BLOB)
    except TokenError:
        return None

    blob_id = claims.get("blob")
    if not blob_id:
        return None

    return get_blob(blob_id)

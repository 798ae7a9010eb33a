# persistence/__init__.py
"""
Persistence layer.

Provides SQLite-backed storage for:
- Users and cookie sessions (used by the auth package)
- Course evaluations with ordered image attachments
- Uploaded blobs and their single-use upload tickets
"""

from persistence.db import get_db, init_db, close_db, configure_db
from persistence.evaluations import (
    EvaluationRecord,
    create_evaluation,
    get_evaluation,
    get_evaluations_by_user,
    set_evaluation_result,
)
from persistence.blobs import (
    TicketError,
    issue_upload_ticket,
    redeem_upload_ticket,
    resolve_storage_reference,
    sign_blob_id,
    store_blob,
)

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "configure_db",
    "EvaluationRecord",
    "create_evaluation",
    "get_evaluation",
    "get_evaluations_by_user",
    "set_evaluation_result",
    "TicketError",
    "issue_upload_ticket",
    "redeem_upload_ticket",
    "resolve_storage_reference",
    "sign_blob_id",
    "store_blob",
]

# persistence/evaluations.py
"""
Course evaluation storage.

Each evaluation keeps its attached images as an ordered list of blob IDs.
The order is the order in which the client produced the storage references;
external-side images come first, internal-side images after.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from persistence.db import get_db, init_db

_logger = logging.getLogger(__name__)


@dataclass
class EvaluationRecord:
    """
    Canonical evaluation record.

    Attributes:
        id: Auto-increment evaluation ID
        user_id: Owner
        input_type: text | single_image | multiple_images
        text_input: Submitted text (text kind only)
        external_courses_count: External-side contribution (advanced only)
        internal_courses_count: Internal-side contribution (advanced only)
        is_simple_mode: True for the single undivided input mode
        result: Analysis result (empty until populated)
        created_at: Creation timestamp
        image_blob_ids: Attached blob IDs in submission order
    """
    id: int
    user_id: str
    input_type: str
    text_input: Optional[str]
    external_courses_count: Optional[int]
    internal_courses_count: Optional[int]
    is_simple_mode: bool
    result: dict
    created_at: datetime
    image_blob_ids: list[str] = field(default_factory=list)


def create_evaluation(
    user_id: str,
    input_type: str,
    text_input: Optional[str],
    external_courses_count: Optional[int],
    internal_courses_count: Optional[int],
    is_simple_mode: bool,
    image_blob_ids: Sequence[str] = (),
) -> EvaluationRecord:
    """
    Save a new evaluation with an empty result.

    Args:
        user_id: Owner of the evaluation
        input_type: Input kind
        text_input: Optional submitted text
        external_courses_count: Optional external count
        internal_courses_count: Optional internal count
        is_simple_mode: Simple/advanced flag
        image_blob_ids: Blob IDs in submission order

    Returns:
        The stored EvaluationRecord
    """
    init_db()

    created_at = datetime.utcnow()

    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO course_evaluations
            (user_id, input_type, text_input, external_courses_count,
             internal_courses_count, is_simple_mode, result_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                input_type,
                text_input,
                external_courses_count,
                internal_courses_count,
                1 if is_simple_mode else 0,
                None,
                created_at.isoformat(),
                created_at.isoformat(),
            ),
        )
        eval_id = cursor.lastrowid

        conn.executemany(
            """
            INSERT INTO evaluation_images (evaluation_id, position, blob_id)
            VALUES (?, ?, ?)
            """,
            [(eval_id, position, blob_id) for position, blob_id in enumerate(image_blob_ids)],
        )

    _logger.debug(f"Saved evaluation {eval_id} with {len(image_blob_ids)} image(s)")

    return EvaluationRecord(
        id=eval_id,
        user_id=user_id,
        input_type=input_type,
        text_input=text_input,
        external_courses_count=external_courses_count,
        internal_courses_count=internal_courses_count,
        is_simple_mode=is_simple_mode,
        result={},
        created_at=created_at,
        image_blob_ids=list(image_blob_ids),
    )


def set_evaluation_result(eval_id: int, result: dict) -> bool:
    """
    Populate the result of an evaluation.

    Returns:
        True if updated, False if the evaluation does not exist
    """
    init_db()

    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE course_evaluations SET result_json = ?, updated_at = ?
            WHERE id = ?
            """,
            (json.dumps(result), datetime.utcnow().isoformat(), eval_id),
        )
        return cursor.rowcount > 0


def get_evaluation(eval_id: int) -> Optional[EvaluationRecord]:
    """Get an evaluation by ID."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM course_evaluations WHERE id = ?",
            (eval_id,),
        ).fetchone()

        if row is None:
            return None

        blob_ids = _image_blob_ids(conn, [row["id"]])

    return _row_to_record(row, blob_ids.get(row["id"], []))


def get_evaluations_by_user(
    user_id: str,
    limit: Optional[int] = None,
) -> list[EvaluationRecord]:
    """Get a user's evaluations, newest first."""
    init_db()

    query = """
        SELECT * FROM course_evaluations
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
    """
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
        blob_ids = _image_blob_ids(conn, [row["id"] for row in rows])

    return [_row_to_record(row, blob_ids.get(row["id"], [])) for row in rows]


def _image_blob_ids(conn, eval_ids: list[int]) -> dict[int, list[str]]:
    """Fetch ordered blob IDs for a set of evaluations."""
    if not eval_ids:
        return {}

    placeholders = ",".join("?" for _ in eval_ids)
    rows = conn.execute(
        f"""
        SELECT evaluation_id, blob_id FROM evaluation_images
        WHERE evaluation_id IN ({placeholders})
        ORDER BY evaluation_id, position
        """,
        eval_ids,
    ).fetchall()

    grouped: dict[int, list[str]] = {}
    for row in rows:
        grouped.setdefault(row["evaluation_id"], []).append(row["blob_id"])
    return grouped


def _row_to_record(row, image_blob_ids: list[str]) -> EvaluationRecord:
    """Convert a database row to an EvaluationRecord."""
    return EvaluationRecord(
        id=row["id"],
        user_id=row["user_id"],
        input_type=row["input_type"],
        text_input=row["text_input"],
        external_courses_count=row["external_courses_count"],
        internal_courses_count=row["internal_courses_count"],
        is_simple_mode=bool(row["is_simple_mode"]),
        result=json.loads(row["result_json"]) if row["result_json"] else {},
        created_at=datetime.fromisoformat(row["created_at"]),
        image_blob_ids=image_blob_ids,
    )

# app/schemas/evaluations.py
"""
Schemas for the course evaluations API.

Requests are accepted in either camelCase (current web client) or
snake_case (older clients). Responses are emitted in both spellings by
format_evaluation(), a view over the canonical EvaluationRecord.
"""
from __future__ import annotations

from datetime import timezone
from typing import List, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from persistence.evaluations import EvaluationRecord


# =============================================================================
# Constants
# =============================================================================

INPUT_TYPE_TEXT = "text"
INPUT_TYPE_SINGLE_IMAGE = "single_image"
INPUT_TYPE_MULTIPLE_IMAGES = "multiple_images"

INPUT_TYPES = (INPUT_TYPE_TEXT, INPUT_TYPE_SINGLE_IMAGE, INPUT_TYPE_MULTIPLE_IMAGES)
IMAGE_INPUT_TYPES = (INPUT_TYPE_SINGLE_IMAGE, INPUT_TYPE_MULTIPLE_IMAGES)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateEvaluationRequest(BaseModel):
    """
    Request schema for creating an evaluation.

    Every field is optional at the schema level; missing or inconsistent
    fields are reported as a field-error list by the evaluation service.
    """
    model_config = ConfigDict(extra="ignore")

    input_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("inputType", "input_type"),
    )
    text_input: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("textInput", "text_input"),
    )
    image_ids: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("imageIds", "image_ids"),
    )
    external_courses_count: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("externalCoursesCount", "external_courses_count"),
    )
    internal_courses_count: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("internalCoursesCount", "internal_courses_count"),
    )
    is_simple_mode: bool = Field(
        default=False,
        validation_alias=AliasChoices("isSimpleMode", "is_simple_mode"),
    )


# =============================================================================
# Response View
# =============================================================================

# canonical attribute -> (compact name, expanded name)
DUAL_KEYED_FIELDS = {
    "input_type": ("inputType", "input_type"),
    "text_input": ("textInput", "text_input"),
    "external_courses_count": ("externalCoursesCount", "external_courses_count"),
    "internal_courses_count": ("internalCoursesCount", "internal_courses_count"),
    "is_simple_mode": ("isSimpleMode", "is_simple_mode"),
}


def format_evaluation(record: EvaluationRecord, image_urls: Sequence[str]) -> dict:
    """
    Serialize an evaluation record for API responses.

    Both naming conventions are emitted for every field until all
    consumers have moved to the compact spelling.

    Args:
        record: Canonical evaluation record
        image_urls: Fetchable URLs for the record's images, in stored order

    Returns:
        JSON-serializable dict
    """
    # created_at is stored as naive UTC
    created_at = record.created_at.replace(tzinfo=timezone.utc)
    creation_time_ms = int(created_at.timestamp() * 1000)
    urls = list(image_urls)

    payload = {
        "id": record.id,
        "_id": str(record.id),
    }
    for attribute, (compact, expanded) in DUAL_KEYED_FIELDS.items():
        value = getattr(record, attribute)
        payload[compact] = value
        payload[expanded] = value

    payload["result"] = record.result or {}
    payload["imageUrls"] = urls
    payload["image_urls"] = list(urls)
    payload["_creationTime"] = creation_time_ms
    payload["creation_time"] = creation_time_ms
    return payload

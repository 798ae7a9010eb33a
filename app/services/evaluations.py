"""
Course evaluation service.

Validates create requests, persists the record with its ordered images,
runs the analysis collaborator and stores its result.
"""

import logging
from typing import Callable, List, Optional, Tuple

from app.providers import CourseMaterial, ProviderFactory
from app.schemas.evaluations import (
    IMAGE_INPUT_TYPES,
    INPUT_TYPE_MULTIPLE_IMAGES,
    INPUT_TYPE_SINGLE_IMAGE,
    INPUT_TYPE_TEXT,
    INPUT_TYPES,
    CreateEvaluationRequest,
)
from auth.models import User
from persistence.blobs import resolve_storage_reference
from persistence.evaluations import (
    EvaluationRecord,
    create_evaluation,
    get_evaluations_by_user,
    set_evaluation_result,
)

logger = logging.getLogger(__name__)

# Maps an internal blob ID to a fetchable URL
BlobUrlBuilder = Callable[[str], str]


def validate_evaluation_request(
    request: CreateEvaluationRequest,
    user_id: str,
) -> Tuple[List[str], List[str]]:
    """
    Validate a create request.

    Returns:
        (blob_ids, errors): resolved blob IDs in request order, and every
        applicable error message (empty when the request is valid)
    """
    errors: List[str] = []
    blob_ids: List[str] = []

    input_type = (request.input_type or "").strip()
    if not input_type:
        errors.append("Input type can't be blank")
    elif input_type not in INPUT_TYPES:
        errors.append("Input type is not included in the list")

    if input_type == INPUT_TYPE_MULTIPLE_IMAGES and request.is_simple_mode:
        errors.append("Input type multiple_images requires advanced mode")

    if input_type == INPUT_TYPE_TEXT and not (request.text_input or "").strip():
        errors.append("Text input can't be blank")

    image_ids = request.image_ids or []
    if input_type in IMAGE_INPUT_TYPES:
        if not image_ids:
            errors.append("Image ids can't be blank")
        elif request.is_simple_mode and input_type == INPUT_TYPE_SINGLE_IMAGE and len(image_ids) != 1:
            errors.append("Image ids must contain exactly one image")

    invalid_reference = False
    for storage_id in image_ids:
        blob = resolve_storage_reference(storage_id)
        if blob is None or (blob.user_id is not None and blob.user_id != user_id):
            invalid_reference = True
            continue
        blob_ids.append(blob.id)
    if invalid_reference:
        errors.append("Image ids contains an invalid storage reference")

    external = request.external_courses_count
    internal = request.internal_courses_count
    if external is not None and external < 0:
        errors.append("External courses count must be greater than or equal to 0")
    if internal is not None and internal < 0:
        errors.append("Internal courses count must be greater than or equal to 0")

    if (
        not request.is_simple_mode
        and input_type in IMAGE_INPUT_TYPES
        and image_ids
        and (external or 0) + (internal or 0) != len(image_ids)
    ):
        errors.append("Course counts must add up to the number of images")

    return blob_ids, errors


async def create_course_evaluation(
    user: User,
    request: CreateEvaluationRequest,
    blob_url: BlobUrlBuilder,
    provider_name: str = "placeholder",
) -> Tuple[Optional[dict], List[str]]:
    """
    Create an evaluation and populate its result.

    Args:
        user: Authenticated principal
        request: Parsed create request
        blob_url: Builds a fetchable URL for a blob ID
        provider_name: Analysis provider to use

    Returns:
        (result, []) on success
        (None, errors) on validation failure; nothing is persisted
    """
    blob_ids, errors = validate_evaluation_request(request, user.id)
    if errors:
        logger.info(f"Rejected evaluation for user {user.id}: {len(errors)} error(s)")
        return None, errors

    is_simple_mode = request.is_simple_mode
    text_input = request.text_input or None

    record = create_evaluation(
        user_id=user.id,
        input_type=request.input_type.strip(),
        text_input=text_input,
        external_courses_count=None if is_simple_mode else request.external_courses_count,
        internal_courses_count=None if is_simple_mode else request.internal_courses_count,
        is_simple_mode=is_simple_mode,
        image_blob_ids=blob_ids,
    )

    material = CourseMaterial(
        input_type=record.input_type,
        text_input=record.text_input,
        image_urls=[blob_url(blob_id) for blob_id in record.image_blob_ids],
        external_courses_count=record.external_courses_count,
        internal_courses_count=record.internal_courses_count,
        is_simple_mode=record.is_simple_mode,
    )

    provider = ProviderFactory.get_analysis_provider(provider_name)
    result = (await provider.analyze(material)).to_dict()
    set_evaluation_result(record.id, result)

    logger.info(
        f"Created evaluation {record.id} input_type={record.input_type} "
        f"images={len(record.image_blob_ids)} provider={provider.source_name}"
    )
    return result, []


def list_course_evaluations(user: User) -> List[EvaluationRecord]:
    """List a user's evaluations, newest first."""
    return get_evaluations_by_user(user.id)

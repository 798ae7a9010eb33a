"""
Services module for business logic.
"""

from app.services.evaluations import (
    create_course_evaluation,
    list_course_evaluations,
    validate_evaluation_request,
)

__all__ = [
    "create_course_evaluation",
    "list_course_evaluations",
    "validate_evaluation_request",
]

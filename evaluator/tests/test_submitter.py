# evaluator/tests/test_submitter.py
"""Tests for evaluation submission."""
import httpx
import pytest

from evaluator.errors import (
    AuthorizationFailure,
    NetworkFailure,
    SubmissionInProgressError,
    UploadFailure,
    ValidationFailure,
)
from evaluator.groups import GroupKey
from evaluator.modes import InputKind, Scope
from evaluator.session import EvaluatorSession, NoticeLevel
from evaluator.submitter import (
    EvaluationRequest,
    join_text_sections,
    normalize_result,
)


# =============================================================================
# Pure helpers
# =============================================================================


class TestPayload:
    def test_absent_values_are_omitted(self):
        payload = EvaluationRequest(input_type="text", is_simple_mode=True, text_input="hello").to_payload()
        assert payload == {"inputType": "text", "isSimpleMode": True, "textInput": "hello"}

    def test_zero_counts_are_sent(self):
        payload = EvaluationRequest(
            input_type="multiple_images",
            is_simple_mode=False,
            image_ids=["r1"],
            external_courses_count=0,
            internal_courses_count=1,
        ).to_payload()
        assert payload["externalCoursesCount"] == 0
        assert payload["internalCoursesCount"] == 1
        assert payload["imageIds"] == ["r1"]
        assert "textInput" not in payload


class TestTextSections:
    def test_both_sides(self):
        text = join_text_sections("  MATH 101  ", "MATH 150\n")
        assert text == "=== EXTERNAL COURSES ===\nMATH 101\n\n=== INTERNAL COURSES ===\nMATH 150"

    def test_blank_side_is_dropped(self):
        assert join_text_sections("", "CS 1") == "=== INTERNAL COURSES ===\nCS 1"


class TestNormalizeResult:
    def test_bare_result(self, placeholder_result):
        assert normalize_result(dict(placeholder_result)) == placeholder_result

    def test_wrapped_result(self, placeholder_result):
        assert normalize_result({"result": dict(placeholder_result)}) == placeholder_result

    def test_result_field_inside_bare_result_is_kept(self):
        body = {"conclusion": "Equivalent", "result": {"detail": "x"}}
        assert normalize_result(body) == body


# =============================================================================
# Local validation
# =============================================================================


class TestLocalValidation:
    """Blank input is rejected before any network call."""

    def test_advanced_text_both_blank(self, session, server):
        session.set_mode(Scope.ADVANCED, InputKind.TEXT)
        session.set_text(GroupKey.EXTERNAL, "   ")

        outcome = session.submit()

        assert isinstance(outcome.error, ValidationFailure)
        assert outcome.notice == "Please enter course descriptions for at least one group"
        assert server.requests == []

    @pytest.mark.parametrize("scope, kind, message", [
        (Scope.SIMPLE, InputKind.TEXT, "Please enter course descriptions"),
        (Scope.SIMPLE, InputKind.SINGLE_IMAGE, "Please select or paste an image"),
        (Scope.ADVANCED, InputKind.MULTIPLE_IMAGES, "Please select or paste images for at least one group"),
    ])
    def test_empty_input_messages(self, session, server, scope, kind, message):
        session.set_mode(scope, kind)

        outcome = session.submit()

        assert outcome.notice == message
        assert session.last_notice.level is NoticeLevel.ERROR
        assert server.requests == []


# =============================================================================
# Request assembly
# =============================================================================


class TestRequestAssembly:
    def test_simple_text(self, session, server):
        session.set_text(GroupKey.SIMPLE, "  Course A: ...  Course B: ...  ")

        outcome = session.submit()

        assert outcome.succeeded
        assert server.created == [{
            "inputType": "text",
            "isSimpleMode": True,
            "textInput": "Course A: ...  Course B: ...",
        }]

    def test_advanced_text_counts(self, session, server):
        session.set_mode(Scope.ADVANCED, InputKind.TEXT)
        session.set_text(GroupKey.EXTERNAL, "ENG 101")

        session.submit()

        payload = server.created[0]
        assert payload["textInput"] == "=== EXTERNAL COURSES ===\nENG 101"
        assert payload["externalCoursesCount"] == 1
        assert payload["internalCoursesCount"] == 0
        assert payload["isSimpleMode"] is False

    def test_advanced_images_external_then_internal(self, session, server, image_factory):
        session.set_mode(Scope.ADVANCED, InputKind.MULTIPLE_IMAGES)
        session.select_files(GroupKey.INTERNAL, [image_factory("int.png")])
        session.select_files(GroupKey.EXTERNAL, [image_factory("ext-1.png"), image_factory("ext-2.png")])

        session.submit()

        assert [u["data"] for u in server.uploads] == [b"ext-1.png", b"ext-2.png", b"int.png"]
        payload = server.created[0]
        assert payload["imageIds"] == ["ref-0", "ref-1", "ref-2"]
        assert payload["externalCoursesCount"] == 2
        assert payload["internalCoursesCount"] == 1

    def test_empty_side_is_not_uploaded(self, session, server, image_factory):
        session.set_mode(Scope.ADVANCED, InputKind.SINGLE_IMAGE)
        session.select_files(GroupKey.INTERNAL, [image_factory("int.png")])

        session.submit()

        assert server.tickets_issued == 1
        assert server.created[0]["externalCoursesCount"] == 0
        assert server.created[0]["internalCoursesCount"] == 1

    def test_simple_image_omits_counts(self, session, server, image_factory):
        session.set_mode(Scope.SIMPLE, InputKind.SINGLE_IMAGE)
        session.select_files(GroupKey.SIMPLE, [image_factory()])

        session.submit()

        payload = server.created[0]
        assert payload == {"inputType": "single_image", "isSimpleMode": True, "imageIds": ["ref-0"]}


# =============================================================================
# Outcomes
# =============================================================================


class TestSuccess:
    def test_success_sets_result_clears_input_and_refreshes(self, session, server, image_factory, placeholder_result):
        session.set_mode(Scope.SIMPLE, InputKind.SINGLE_IMAGE)
        session.select_files(GroupKey.SIMPLE, [image_factory()])

        outcome = session.submit()

        assert outcome.result == placeholder_result
        assert session.current_result == placeholder_result
        assert session.groups[GroupKey.SIMPLE].image_count == 0
        assert session.registry.outstanding_count == 0
        assert session.last_notice.message == "Evaluation completed!"
        assert server.count("GET", "/api/v1/evaluations") == 1
        assert len(session.history) == 1
        assert not session.is_submitting

    def test_wrapped_response_is_normalized(self, session, server, placeholder_result):
        server.create_body = {"result": dict(placeholder_result)}
        session.set_text(GroupKey.SIMPLE, "hello")

        outcome = session.submit()

        assert outcome.result == placeholder_result

    def test_history_failure_does_not_undo_success(self, session, server):
        server.list_status = 500
        session.set_text(GroupKey.SIMPLE, "hello")

        outcome = session.submit()

        assert outcome.succeeded
        assert session.history.last_error is not None


class TestFailure:
    """Failures produce one notice and leave staged input alone."""

    def test_server_validation_errors(self, session, server):
        server.create_status = 422
        server.create_body = {"errors": ["Input type can't be blank", "Text input can't be blank"]}
        session.set_text(GroupKey.SIMPLE, "hello")

        outcome = session.submit()

        assert isinstance(outcome.error, ValidationFailure)
        assert outcome.error.errors == ["Input type can't be blank", "Text input can't be blank"]
        assert outcome.notice == "Input type can't be blank, Text input can't be blank"
        assert session.groups[GroupKey.SIMPLE].text_input == "hello"
        assert session.current_result is None

    def test_upload_failure_keeps_staged_images(self, session, server, image_factory):
        server.fail_upload_at = 0
        session.set_mode(Scope.ADVANCED, InputKind.MULTIPLE_IMAGES)
        session.select_files(GroupKey.EXTERNAL, [image_factory("a.png"), image_factory("b.png")])

        outcome = session.submit()

        assert isinstance(outcome.error, UploadFailure)
        assert session.groups[GroupKey.EXTERNAL].image_count == 2
        assert session.registry.outstanding_count == 2
        assert server.count("POST", "/api/v1/evaluations") == 0
        assert len([n for n in session.notices if n.level is NoticeLevel.ERROR]) == 1

    def test_unauthenticated_requires_sign_in(self, session, server):
        server.create_status = 401
        server.create_body = {"detail": "Authentication required"}
        session.set_text(GroupKey.SIMPLE, "hello")

        outcome = session.submit()

        assert isinstance(outcome.error, AuthorizationFailure)
        assert session.requires_sign_in

    def test_network_failure_is_retryable(self, session, server):
        session.set_text(GroupKey.SIMPLE, "hello")
        server.network_down = True

        first = session.submit()
        assert isinstance(first.error, NetworkFailure)
        assert not session.is_submitting

        server.network_down = False
        assert session.submit().succeeded

    def test_undecodable_response_becomes_network_notice(self, server):
        def handler(request):
            if request.method == "POST" and request.url.path == "/api/v1/evaluations":
                return httpx.Response(201, headers={"Content-Encoding": "gzip"}, content=b"not gzip")
            return server.handler(request)

        transport = httpx.MockTransport(handler)
        with httpx.Client(transport=transport, base_url="http://testserver") as client:
            with EvaluatorSession(client) as session:
                session.set_text(GroupKey.SIMPLE, "hello")
                outcome = session.submit()

        assert isinstance(outcome.error, NetworkFailure)
        assert outcome.notice == "Network error, please try again"
        assert session.last_notice.level is NoticeLevel.ERROR
        assert session.current_result is None

    def test_second_submission_refused_while_in_flight(self, session, server):
        session.set_text(GroupKey.SIMPLE, "hello")
        session.is_submitting = True

        with pytest.raises(SubmissionInProgressError):
            session.submit()
        assert server.requests == []

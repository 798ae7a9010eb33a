# persistence/tests/test_persistence.py
"""Tests for persistence layer."""

import pytest

from persistence.db import get_db, get_db_path, init_db
from persistence.blobs import (
    TicketError,
    get_blob,
    issue_upload_ticket,
    redeem_upload_ticket,
    resolve_storage_reference,
    sign_blob_id,
    store_blob,
)
from persistence.evaluations import (
    create_evaluation,
    get_evaluation,
    get_evaluations_by_user,
    set_evaluation_result,
)
from persistence.tokens import (
    PURPOSE_BLOB,
    PURPOSE_UPLOAD,
    TokenError,
    sign_token,
    verify_token,
)


@pytest.fixture
def user_id():
    from auth.service import create_user

    return create_user("records@example.edu", "password123").id


def _save(user_id, **overrides):
    fields = dict(
        user_id=user_id,
        input_type="text",
        text_input="ENG 101 Composition",
        external_courses_count=None,
        internal_courses_count=None,
        is_simple_mode=True,
    )
    fields.update(overrides)
    return create_evaluation(**fields)


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_tables(self):
        init_db()
        with get_db() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }

        assert {
            "users",
            "sessions",
            "blobs",
            "upload_tickets",
            "course_evaluations",
            "evaluation_images",
        } <= tables

    def test_db_path_is_per_test(self, tmp_path):
        assert get_db_path().parent == tmp_path


# =============================================================================
# Tokens
# =============================================================================


class TestTokens:
    def test_sign_and_verify(self):
        token = sign_token({"blob": "abc"}, PURPOSE_BLOB)
        assert verify_token(token, PURPOSE_BLOB)["blob"] == "abc"

    def test_purpose_mismatch_rejected(self):
        token = sign_token({"blob": "abc"}, PURPOSE_BLOB)
        with pytest.raises(TokenError):
            verify_token(token, PURPOSE_UPLOAD)

    @pytest.mark.parametrize("token", ["", "not.a.jwt", "garbage"])
    def test_malformed_rejected(self, token):
        with pytest.raises(TokenError):
            verify_token(token, PURPOSE_BLOB)

    def test_other_secret_rejected(self, monkeypatch):
        token = sign_token({"blob": "abc"}, PURPOSE_BLOB)
        monkeypatch.setenv("COURSE_EVAL_SECRET_KEY", "a-different-secret")
        with pytest.raises(TokenError):
            verify_token(token, PURPOSE_BLOB)


# =============================================================================
# Upload Tickets
# =============================================================================


class TestUploadTickets:
    def test_redeem_returns_principal(self, user_id):
        ticket = issue_upload_ticket(user_id)
        assert redeem_upload_ticket(ticket) == user_id

    def test_ticket_is_single_use(self, user_id):
        ticket = issue_upload_ticket(user_id)
        redeem_upload_ticket(ticket)

        with pytest.raises(TicketError, match="already been used"):
            redeem_upload_ticket(ticket)

    def test_expired_ticket_rejected(self, user_id):
        ticket = issue_upload_ticket(user_id, ttl_seconds=-1)
        with pytest.raises(TicketError):
            redeem_upload_ticket(ticket)

    def test_forged_ticket_rejected(self):
        with pytest.raises(TicketError):
            redeem_upload_ticket("forged")

    def test_storage_reference_is_not_a_ticket(self):
        blob_id = store_blob(b"data", "image/png")
        with pytest.raises(TicketError):
            redeem_upload_ticket(sign_blob_id(blob_id))

    def test_tickets_are_distinct(self, user_id):
        first = issue_upload_ticket(user_id)
        second = issue_upload_ticket(user_id)

        assert first != second
        redeem_upload_ticket(first)
        assert redeem_upload_ticket(second) == user_id


# =============================================================================
# Blobs
# =============================================================================


class TestBlobs:
    def test_store_and_get(self, user_id):
        blob_id = store_blob(b"\x89PNG", "image/png", user_id=user_id)

        blob = get_blob(blob_id)
        assert blob.data == b"\x89PNG"
        assert blob.content_type == "image/png"
        assert blob.byte_size == 4
        assert blob.user_id == user_id

    def test_default_content_type(self):
        assert get_blob(store_blob(b"x")).content_type == "image/jpeg"

    def test_missing_blob(self):
        assert get_blob("missing") is None

    def test_resolve_signed_reference(self):
        blob_id = store_blob(b"bytes", "image/png")
        assert resolve_storage_reference(sign_blob_id(blob_id)).id == blob_id

    @pytest.mark.parametrize("reference", ["bogus", ""])
    def test_unresolvable_reference(self, reference):
        assert resolve_storage_reference(reference) is None

    def test_reference_to_missing_blob(self):
        assert resolve_storage_reference(sign_blob_id("gone")) is None


# =============================================================================
# Evaluations
# =============================================================================


class TestEvaluations:
    def test_create_and_get(self, user_id):
        record = _save(user_id)

        stored = get_evaluation(record.id)
        assert stored.user_id == user_id
        assert stored.input_type == "text"
        assert stored.text_input == "ENG 101 Composition"
        assert stored.is_simple_mode is True
        assert stored.result == {}
        assert stored.image_blob_ids == []

    def test_image_order_preserved(self, user_id):
        blob_ids = [store_blob(f"img-{i}".encode()) for i in range(4)]
        ordered = [blob_ids[2], blob_ids[0], blob_ids[3], blob_ids[1]]

        record = _save(
            user_id,
            input_type="multiple_images",
            text_input=None,
            external_courses_count=3,
            internal_courses_count=1,
            is_simple_mode=False,
            image_blob_ids=ordered,
        )

        stored = get_evaluation(record.id)
        assert stored.image_blob_ids == ordered
        assert (stored.external_courses_count, stored.internal_courses_count) == (3, 1)

    def test_set_result(self, user_id):
        record = _save(user_id)

        assert set_evaluation_result(record.id, {"conclusion": "Equivalent"}) is True
        assert get_evaluation(record.id).result == {"conclusion": "Equivalent"}
        assert set_evaluation_result(9999, {}) is False

    def test_missing_evaluation(self):
        assert get_evaluation(12345) is None

    def test_list_newest_first(self, user_id):
        for text in ("first", "second", "third"):
            _save(user_id, text_input=text)

        texts = [r.text_input for r in get_evaluations_by_user(user_id)]
        assert texts == ["third", "second", "first"]

    def test_list_limit(self, user_id):
        for text in ("first", "second", "third"):
            _save(user_id, text_input=text)

        assert [r.text_input for r in get_evaluations_by_user(user_id, limit=2)] == ["third", "second"]

    def test_list_only_own(self, user_id):
        from auth.service import create_user

        other = create_user("other@example.edu", "password123").id
        _save(user_id, text_input="mine")
        _save(other, text_input="theirs")

        assert [r.text_input for r in get_evaluations_by_user(user_id)] == ["mine"]
        assert [r.text_input for r in get_evaluations_by_user(other)] == ["theirs"]

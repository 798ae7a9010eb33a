# evaluator/tests/test_previews.py
"""Tests for preview handle bookkeeping."""
import pytest

from evaluator.previews import PreviewRevocationError, PreviewURLRegistry


class TestPreviewRegistry:
    """Create / revoke lifecycle."""

    def test_create_returns_unique_handles(self):
        registry = PreviewURLRegistry()
        handles = {registry.create() for _ in range(5)}
        assert len(handles) == 5
        assert registry.outstanding_count == 5

    def test_revoke_removes_handle(self):
        registry = PreviewURLRegistry()
        handle = registry.create("simple")
        registry.revoke(handle)
        assert not registry.is_outstanding(handle)
        assert registry.outstanding_count == 0
        assert registry.revoked_count == 1

    def test_double_revoke_raises(self):
        """Revoking the same handle twice is a defect."""
        registry = PreviewURLRegistry()
        handle = registry.create()
        registry.revoke(handle)
        with pytest.raises(PreviewRevocationError) as exc:
            registry.revoke(handle)
        assert exc.value.handle == handle
        assert registry.revoked_count == 1

    def test_unknown_handle_revoke_raises(self):
        registry = PreviewURLRegistry()
        with pytest.raises(PreviewRevocationError):
            registry.revoke("preview:never-created")


class TestRevokeAll:
    """Teardown sweep."""

    def test_revoke_all_returns_outstanding_count(self):
        registry = PreviewURLRegistry()
        kept = registry.create()
        registry.create()
        registry.create()
        registry.revoke(kept)

        assert registry.revoke_all() == 2
        assert registry.outstanding == []

    def test_revoke_all_on_empty_registry(self):
        registry = PreviewURLRegistry()
        assert registry.revoke_all() == 0
        assert registry.revoke_all() == 0

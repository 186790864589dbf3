"""Tests for the error taxonomy."""

import pytest

from artifact_repository.core.errors import (
    ArtifactNotFoundError,
    ArtifactStoreError,
    DuplicateEntryError,
    HashMismatchError,
    InvalidContentHashError,
    InvalidTenantError,
    InvariantViolationError,
    StagedUploadNotFoundError,
    StoreUnavailableError,
)


class TestErrorTaxonomy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error_cls",
        [
            StoreUnavailableError,
            InvariantViolationError,
            DuplicateEntryError,
            ArtifactNotFoundError,
            StagedUploadNotFoundError,
            InvalidTenantError,
            InvalidContentHashError,
        ],
    )
    def test_all_derive_from_base(self, error_cls: type) -> None:
        """Test every error can be caught as ArtifactStoreError."""
        assert issubclass(error_cls, ArtifactStoreError)

    def test_invariant_violation_keeps_object_ids(self) -> None:
        """Test the conflicting entries are attached to the error."""
        error = InvariantViolationError("two entries", object_ids=["a", "b"])
        assert error.object_ids == ["a", "b"]
        assert InvariantViolationError("two entries").object_ids == []

    def test_hash_mismatch_message(self) -> None:
        """Test HashMismatchError describes the differing digest."""
        error = HashMismatchError("sha1", "aaaa", "bbbb")
        assert isinstance(error, ArtifactStoreError)
        assert str(error) == "sha1 mismatch: expected aaaa, got bbbb"
        assert (error.algorithm, error.expected, error.actual) == ("sha1", "aaaa", "bbbb")

"""Unit tests for the domain error taxonomy."""

import pytest

from iam.domain.exceptions import (
    DomainError,
    FormatError,
    NotFoundError,
    StateError,
    ValidationError,
)


class TestAggregate:
    """Tests for DomainError.aggregate()."""

    def test_single_error_is_returned_unchanged(self):
        error = StateError("Role is already active")

        assert DomainError.aggregate([error]) is error
        assert error.violations == (error,)

    def test_combined_error_takes_class_of_first(self):
        errors = [
            FormatError("Invalid code"),
            NotFoundError("Parent not found"),
        ]

        combined = DomainError.aggregate(errors)

        assert type(combined) is FormatError
        assert combined.violations == tuple(errors)
        assert combined.messages == ["Invalid code", "Parent not found"]
        assert str(combined) == "Invalid code; Parent not found"

    def test_empty_list_is_rejected(self):
        with pytest.raises(ValueError):
            DomainError.aggregate([])


def test_validation_errors_are_value_errors():
    assert issubclass(FormatError, ValidationError)
    assert issubclass(ValidationError, ValueError)
    assert not issubclass(StateError, ValueError)

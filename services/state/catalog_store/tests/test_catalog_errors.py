"""Tests for Catalog Store exceptions and their shared error mapping."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from packages.catalog_shared.errors import ErrorCategory, codes
from services.state.catalog_store.errors import (
    BulkOperationError,
    ConflictingWrite,
    DeletePublishedGranule,
    RecordDoesNotExist,
    UnknownColumn,
    catalog_exception_to_error,
)


def test_record_does_not_exist_is_a_key_error_with_plain_text() -> None:
    exc = RecordDoesNotExist("granules", {"granule_id": "G1"})
    assert isinstance(exc, KeyError)
    assert str(exc) == "Record in granules with identifiers {'granule_id': 'G1'} does not exist."


def test_bulk_operation_error_joins_item_messages() -> None:
    exc = BulkOperationError([ValueError("a"), RuntimeError("b")], ["ok"])
    assert exc.errors[0].args == ("a",)
    assert exc.results == ("ok",)
    assert str(exc) == "2 bulk item(s) failed: a; b"


@pytest.mark.parametrize(
    ("exc", "category", "code"),
    [
        (
            RecordDoesNotExist("granules", {"cumulus_id": 1}),
            ErrorCategory.NOT_FOUND,
            codes.RECORD_NOT_FOUND,
        ),
        (UnknownColumn("files", "nope"), ErrorCategory.VALIDATION, codes.UNKNOWN_COLUMN),
        (
            DeletePublishedGranule("G1"),
            ErrorCategory.PRECONDITION,
            codes.PRECONDITION_FAILED,
        ),
        (
            ConflictingWrite("created_at regressed"),
            ErrorCategory.CONFLICT,
            codes.CONFLICTING_WRITE,
        ),
        (
            IntegrityError("INSERT", {}, Exception("duplicate key")),
            ErrorCategory.CONFLICT,
            codes.CONSTRAINT_VIOLATION,
        ),
        (
            OperationalError("SELECT 1", {}, Exception("connection refused")),
            ErrorCategory.DEPENDENCY,
            codes.DEPENDENCY_UNAVAILABLE,
        ),
        (ValueError("bad"), ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
    ],
)
def test_catalog_exception_to_error(exc, category, code) -> None:
    detail = catalog_exception_to_error(exc)
    assert detail.category == category
    assert detail.code == code
    assert detail.metadata["exception_type"] == type(exc).__name__


def test_store_outages_are_retryable() -> None:
    detail = catalog_exception_to_error(OperationalError("SELECT 1", {}, Exception("down")))
    assert detail.retryable is True
    assert catalog_exception_to_error(DeletePublishedGranule("G1")).retryable is False


def test_not_found_detail_names_the_table() -> None:
    detail = catalog_exception_to_error(RecordDoesNotExist("providers", {"name": "x"}))
    assert detail.metadata["table"] == "providers"
    assert "providers" in detail.message


def test_bulk_operation_error_output_summarizes_each_failure() -> None:
    exc = BulkOperationError(
        [DeletePublishedGranule("G1"), RecordDoesNotExist("granules", {"granule_id": "G2"})]
    )
    output = exc.to_output()

    assert output["name"] == "BulkOperationError"
    assert [error["code"] for error in output["errors"]] == [
        codes.PRECONDITION_FAILED,
        codes.RECORD_NOT_FOUND,
    ]
    assert output["errors"][1]["metadata"]["table"] == "granules"

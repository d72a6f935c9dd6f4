"""Tests covering the helper utilities that construct error responses."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from storefront.schemas.error import ErrorType, ValidationErrorDetail
from storefront.utils import error_responses
from storefront.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
)
from storefront.utils.request_context import clear_request_id, get_request_id, set_request_id


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    """Override ``_current_timestamp`` to yield the provided ``datetime``."""

    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


def test_build_validation_error_response_includes_context_metadata(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The helper should embed the request ID and a timezone-aware timestamp."""

    fixed_timestamp = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    token = set_request_id("req-123")
    try:
        errors = [
            ValidationErrorDetail(
                field="body.quantity",
                message="Input should be a valid integer",
                value="many",
            )
        ]

        response = build_validation_error_response(
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=422,
            path="/cart/items",
            errors=errors,
        )

        assert response.error_type is ErrorType.VALIDATION_ERROR
        assert response.request_id == "req-123"
        assert response.timestamp == fixed_timestamp
        assert response.errors == errors
    finally:
        clear_request_id(token)


def test_build_error_response_allows_request_id_override(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Explicit request identifiers should take precedence over context values."""

    fixed_timestamp = datetime(2024, 1, 2, 6, 30, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    token = set_request_id("context-id")
    try:
        response = build_error_response(
            error_type=ErrorType.REMOTE_ERROR,
            message="Wishlist service unavailable",
            detail="GET /rest/v1/wishlist returned 503",
            status_code=502,
            path="/wishlist/sync",
            request_id="override-id",
        )
    finally:
        clear_request_id(token)

    assert response.request_id == "override-id"
    assert response.timestamp == fixed_timestamp
    assert get_request_id() == ""

"""Tests for the exception hierarchy."""

import pytest

from keyservice.constants import Status
from keyservice.exceptions import (
    AuthorizationError,
    ConfigurationError,
    GenerationError,
    InputError,
    KeyServiceError,
    NotFoundError,
    StoreError,
)


@pytest.mark.parametrize(
    "exc, status",
    [
        (AuthorizationError("denied"), Status.INVALID_SERVICE_KEY),
        (NotFoundError("missing"), Status.NOT_FOUND),
        (StoreError("down"), Status.SYSTEM_ERROR),
        (GenerationError("no entropy"), Status.SYSTEM_ERROR),
        (ConfigurationError("bad"), Status.SYSTEM_ERROR),
    ],
)
def test_status_per_error(exc, status):
    assert isinstance(exc, KeyServiceError)
    assert exc.status == status


def test_input_error_carries_its_status():
    exc = InputError(Status.MISSING_COMPANY_ID)
    assert exc.status == Status.MISSING_COMPANY_ID
    assert str(exc) == "missing company id"


def test_input_error_status_is_per_instance():
    InputError(Status.MISSING_KEY)
    assert InputError(Status.MISSING_USER_ID).status == Status.MISSING_USER_ID
    assert KeyServiceError.status == Status.SYSTEM_ERROR

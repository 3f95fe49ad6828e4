"""Tests for the exception → HTTP status mapping."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from talebox.api import register_exception_handlers
from talebox.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateEntityException,
    EntityNotFoundException,
    ExternalServiceError,
    InvalidStateException,
    PlayerNotReadyError,
    ValidationException,
)


def client_raising(error: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise error

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationException("Unsupported playback rate: 3.0"), 422),
        (EntityNotFoundException("Book", "b-1"), 404),
        (DuplicateEntityException("BookLike", "u/b"), 409),
        (InvalidStateException("Screen already closed"), 400),
        (PlayerNotReadyError(), 409),
        (AuthenticationError("User must be logged in"), 401),
        (ExternalServiceError("Storage backend unavailable"), 502),
        (ConfigurationError("Storage backend URL not configured"), 503),
    ],
)
def test_domain_errors_map_to_status(error, status_code):
    response = client_raising(error).get("/boom")

    assert response.status_code == status_code
    assert response.json()["detail"]


def test_locked_database_is_retryable():
    error = OperationalError("UPDATE", {}, Exception("database is locked"))

    response = client_raising(error).get("/boom")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "2"


def test_other_database_errors_are_500():
    error = OperationalError("SELECT", {}, Exception("no such table: books"))

    response = client_raising(error).get("/boom")

    assert response.status_code == 500
    assert response.json() == {"detail": "Database error"}

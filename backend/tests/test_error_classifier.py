"""
Notewise Backend — Error Classifier Tests
===========================================

What we test:
    ✅ Status codes win over message text
    ✅ Message keywords when there is no usable status
    ✅ Built-in timeout/connection exception types
    ✅ Real google-api-core exceptions (what the Gemini SDK raises)
    ✅ Only timeout, network and quota are retryable
    ✅ to_generation_error picks the user-facing message by kind
"""

import asyncio
from types import SimpleNamespace

import pytest
from google.api_core import exceptions as google_exceptions

from notewise.exceptions import GenerationError, GenerationErrorKind as Kind
from notewise.services.error_classifier import (
    USER_MESSAGES,
    classify_error,
    is_retryable,
    to_generation_error,
)


class StatusError(Exception):
    def __init__(self, message: str = "", code=None, status_code=None, response=None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if response is not None:
            self.response = response


class TestStatusCodes:
    @pytest.mark.parametrize(
        "code, expected",
        [
            (401, Kind.CREDENTIAL_INVALID),
            (429, Kind.QUOTA_EXCEEDED),
            (408, Kind.TIMEOUT),
            (500, Kind.NETWORK_ERROR),
            (503, Kind.NETWORK_ERROR),
        ],
    )
    def test_code_attribute(self, code, expected):
        assert classify_error(StatusError("boom", code=code)) == expected

    def test_status_code_attribute(self):
        assert classify_error(StatusError("boom", status_code=429)) == Kind.QUOTA_EXCEEDED

    def test_response_status_code(self):
        error = StatusError("boom", response=SimpleNamespace(status_code=401))
        assert classify_error(error) == Kind.CREDENTIAL_INVALID

    def test_400_with_safety_wording_is_content_filtered(self):
        error = StatusError("Request blocked by safety settings", code=400)
        assert classify_error(error) == Kind.CONTENT_FILTERED

    def test_plain_400_is_unknown(self):
        assert classify_error(StatusError("bad request", code=400)) == Kind.UNKNOWN

    def test_status_beats_message(self):
        # Message says timeout, status says auth
        assert classify_error(StatusError("timeout", code=401)) == Kind.CREDENTIAL_INVALID

    def test_non_integer_code_falls_back_to_message(self):
        error = StatusError("RESOURCE_EXHAUSTED", code="RESOURCE_EXHAUSTED")
        assert classify_error(error) == Kind.QUOTA_EXCEEDED


class TestMessages:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Invalid API key provided", Kind.CREDENTIAL_INVALID),
            ("API_KEY_INVALID", Kind.CREDENTIAL_INVALID),
            ("Unauthorized", Kind.CREDENTIAL_INVALID),
            ("Quota exceeded for requests", Kind.QUOTA_EXCEEDED),
            ("rate limit reached", Kind.QUOTA_EXCEEDED),
            ("Request timed out", Kind.TIMEOUT),
            ("Deadline exceeded", Kind.TIMEOUT),
            ("Response was blocked", Kind.CONTENT_FILTERED),
            ("fetch failed", Kind.NETWORK_ERROR),
            ("Service unavailable", Kind.NETWORK_ERROR),
            ("something odd happened", Kind.UNKNOWN),
        ],
    )
    def test_keywords(self, message, expected):
        assert classify_error(Exception(message)) == expected


class TestExceptionTypes:
    def test_timeout_error(self):
        assert classify_error(TimeoutError()) == Kind.TIMEOUT

    def test_asyncio_timeout_error(self):
        assert classify_error(asyncio.TimeoutError()) == Kind.TIMEOUT

    def test_connection_error(self):
        assert classify_error(ConnectionResetError("peer reset")) == Kind.NETWORK_ERROR

    def test_generation_error_keeps_kind(self):
        error = GenerationError(kind=Kind.CONTENT_FILTERED)
        assert classify_error(error) == Kind.CONTENT_FILTERED

    def test_none_is_unknown(self):
        assert classify_error(None) == Kind.UNKNOWN


class TestGoogleApiCoreExceptions:
    def test_resource_exhausted(self):
        error = google_exceptions.ResourceExhausted("Quota exceeded")
        assert classify_error(error) == Kind.QUOTA_EXCEEDED

    def test_unauthenticated(self):
        error = google_exceptions.Unauthenticated("API key not valid")
        assert classify_error(error) == Kind.CREDENTIAL_INVALID

    def test_service_unavailable(self):
        error = google_exceptions.ServiceUnavailable("backend down")
        assert classify_error(error) == Kind.NETWORK_ERROR


class TestRetryability:
    @pytest.mark.parametrize("kind", [Kind.TIMEOUT, Kind.NETWORK_ERROR, Kind.QUOTA_EXCEEDED])
    def test_transient_kinds_are_retryable(self, kind):
        assert is_retryable(kind) is True

    @pytest.mark.parametrize("kind", [Kind.CREDENTIAL_INVALID, Kind.CONTENT_FILTERED, Kind.UNKNOWN])
    def test_permanent_kinds_are_not_retryable(self, kind):
        assert is_retryable(kind) is False


class TestToGenerationError:
    def test_wraps_with_kind_message(self):
        raw = StatusError("429 Too Many Requests", code=429)
        error = to_generation_error(raw)

        assert error.kind == Kind.QUOTA_EXCEEDED
        assert error.message == USER_MESSAGES[Kind.QUOTA_EXCEEDED]
        assert error.original is raw
        assert error.context["original_error"] == "StatusError"

    def test_generation_error_passes_through(self):
        error = GenerationError(kind=Kind.TIMEOUT, message="slow")
        assert to_generation_error(error) is error

    def test_every_kind_has_a_message(self):
        assert set(USER_MESSAGES) == set(Kind)

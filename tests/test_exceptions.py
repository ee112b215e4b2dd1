import pytest
import requests

from cvscanner.utils.exceptions import (
    EmbeddingError,
    InvalidUploadError,
    MissingCredentialError,
    MissingInputError,
    ResponseParseError,
    error_body,
    status_code_for,
)


class TestExceptions:
    """Test cases for exception mapping and log payloads"""

    @pytest.mark.parametrize("exc,status", [
        (MissingInputError(), 400),
        (InvalidUploadError("Only PDF files are supported."), 400),
        (MissingCredentialError(), 500),
        (EmbeddingError("Failed to get embedding: 503"), 500),
        (ResponseParseError(raw="nope"), 500),
    ])
    def test_status_code_for(self, exc, status):
        assert status_code_for(exc) == status

    def test_to_dict_carries_cause(self):
        cause = requests.Timeout("read timed out")
        exc = EmbeddingError("Failed to get embedding: read timed out", status_code=504, cause=cause)

        assert exc.to_dict() == {
            "error_type": "EmbeddingError",
            "error_code": "EMBEDDING_FAILURE",
            "message": "Failed to get embedding: read timed out",
            "details": {"service_name": "embedding", "status_code": 504},
            "cause": "read timed out",
        }

    def test_error_body_hides_details(self):
        exc = MissingCredentialError()
        assert error_body(exc) == {"error": "Gemini API key not configured. Add GEMINI_API_KEY to .env"}

    def test_parse_error_body_includes_raw(self):
        assert error_body(ResponseParseError(raw="Great match!")) == {
            "error": "Failed to parse AI response",
            "raw": "Great match!",
        }

"""
Custom Exception Classes for the CV Scanner API
"""
from typing import Dict, Any


class CVScannerBaseException(Exception):
    """Base exception for CV Scanner API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(CVScannerBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, error_code: str = "VALIDATION_ERROR", **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class MissingInputError(ValidationError):
    """Raised when a match request lacks CV data, job title or job description"""

    def __init__(self, message: str = "Missing required fields: cvData, jobTitle, jobDescription", **kwargs):
        super().__init__(message, error_code="MISSING_INPUT", **kwargs)


class InvalidUploadError(ValidationError):
    """Raised when an uploaded CV file is absent, not a PDF or too large"""

    def __init__(self, message: str, filename: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if filename:
            details['filename'] = filename
        super().__init__(message, error_code="INVALID_UPLOAD", details=details, **kwargs)


class ConfigurationError(CVScannerBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, error_code: str = "CONFIGURATION_ERROR", **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class MissingCredentialError(ConfigurationError):
    """Raised when the generative AI API key is not configured"""

    def __init__(self, message: str = "Gemini API key not configured. Add GEMINI_API_KEY to .env", **kwargs):
        super().__init__(message, config_key="GEMINI_API_KEY", error_code="MISSING_CREDENTIAL", **kwargs)


class ExternalServiceError(CVScannerBaseException):
    """Raised when external service calls fail"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, error_code: str = "EXTERNAL_SERVICE_ERROR", **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class EmbeddingError(ExternalServiceError):
    """Raised when an embedding vector cannot be obtained"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('service_name', "embedding")
        super().__init__(message, error_code="EMBEDDING_FAILURE", **kwargs)


class NarrativeServiceError(ExternalServiceError):
    """Raised when the text generation call for the match narrative fails"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('service_name', "generation")
        super().__init__(message, error_code="NARRATIVE_SERVICE_FAILURE", **kwargs)


class ExtractionServiceError(ExternalServiceError):
    """Raised when the PDF field extraction call fails"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('service_name', "extraction")
        super().__init__(message, error_code="EXTRACTION_SERVICE_FAILURE", **kwargs)


class ResponseParseError(CVScannerBaseException):
    """Raised when model output is not the JSON we asked for"""

    def __init__(self, message: str = "Failed to parse AI response", raw: str = "", **kwargs):
        self.raw = raw
        details = kwargs.pop('details', {})
        details['raw_length'] = len(raw or "")
        super().__init__(message, error_code="RESPONSE_PARSE_FAILURE", details=details, **kwargs)


# HTTP status mapping
STATUS_CODE_MAPPING = {
    ValidationError: 400,
    ConfigurationError: 500,
    ExternalServiceError: 500,
    ResponseParseError: 500,
}


def status_code_for(exc: CVScannerBaseException) -> int:
    """Map custom exceptions to HTTP status codes (nearest mapped base class wins)"""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODE_MAPPING:
            return STATUS_CODE_MAPPING[cls]
    return 500


def error_body(exc: CVScannerBaseException) -> Dict[str, Any]:
    """Build the client-facing error payload"""
    body = {"error": exc.message}
    if isinstance(exc, ResponseParseError):
        body["raw"] = exc.raw
    return body

from typing import Optional, Any

class ReimburziError(Exception):
    """
    Base exception for the Reimburzi application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(ReimburziError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class ValidationError(ReimburziError):
    """
    Raised when input validation fails (phone, period, email).
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class PersistenceError(ReimburziError):
    """
    Raised when a database write or read fails.
    """
    def __init__(self, message: str = "Database error", details: Optional[Any] = None):
        super().__init__(message, code="PERSISTENCE_ERROR", status_code=500, details=details)

class ExternalServiceError(ReimburziError):
    """
    Raised when an external service (Twilio, Vision, OpenAI) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None, code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(message, code=code, status_code=502, details=details)

class TextExtractionError(ExternalServiceError):
    def __init__(self, message: str = "Text extraction failed", details: Optional[Any] = None):
        super().__init__(message, details=details, code="TEXT_EXTRACTION_FAILED")

class ReceiptParseError(ExternalServiceError):
    def __init__(self, message: str = "Receipt parsing failed", details: Optional[Any] = None):
        super().__init__(message, details=details, code="RECEIPT_PARSE_FAILED")

class SummaryGenerationError(ExternalServiceError):
    def __init__(self, message: str = "Summary generation failed", details: Optional[Any] = None):
        super().__init__(message, details=details, code="SUMMARY_GENERATION_FAILED")

class MessageSendError(ExternalServiceError):
    """
    Raised when a WhatsApp message cannot be delivered to Twilio,
    including after rate-limit retries are exhausted.
    """
    def __init__(self, message: str = "Message send failed", details: Optional[Any] = None, rate_limited: bool = False):
        super().__init__(message, details=details, code="MESSAGE_SEND_FAILED")
        self.rate_limited = rate_limited

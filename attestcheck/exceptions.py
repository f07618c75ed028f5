"""
Custom exceptions for AttestCheck.

Provides a hierarchy of exceptions with error codes for consistent error handling.
"""
from typing import Optional, Dict, Any


class AttestCheckError(Exception):
    """
    Base exception for all AttestCheck errors.

    Attributes:
        error_code: Unique error code (e.g., ATT-101)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "ATT-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


# Request Validation Errors (ATT-1XX)
class AttestationValidationError(AttestCheckError):
    """Missing, malformed or invalid request parameters."""
    error_code = "ATT-100"
    http_status = 400

    def __init__(self, message: str = "Missing or invalid required parameters", errors: Optional[list] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


class InvalidAttestationTypeError(AttestCheckError):
    """Attestation type is not one of the recognized categories."""
    error_code = "ATT-101"
    http_status = 400

    def __init__(self, attestation_type: str, expected_types: list, **kwargs):
        message = "Invalid attestation type"
        super().__init__(
            message,
            details={"attestation_type": attestation_type, "expected_types": expected_types},
            **kwargs,
        )


class FileTooLargeError(AttestCheckError):
    """Decoded attestation exceeds maximum size limit."""
    error_code = "ATT-102"
    http_status = 413

    def __init__(self, size: int, max_size: int, **kwargs):
        message = f"File too large (max {max_size // (1024 * 1024)} MB)"
        super().__init__(message, details={"size": size, "max_size": max_size}, **kwargs)


# Analysis Store Errors (ATT-2XX)
class AnalysisNotFoundError(AttestCheckError):
    """Analysis record not found in the store."""
    error_code = "ATT-200"
    http_status = 404

    def __init__(self, analysis_id: str, **kwargs):
        message = f"Analysis {analysis_id} not found"
        super().__init__(message, details={"analysis_id": analysis_id}, **kwargs)


class PersistenceError(AttestCheckError):
    """Saving the attestation analysis failed."""
    error_code = "ATT-201"
    http_status = 500

    def __init__(self, message: str = "Failed to save attestation analysis", **kwargs):
        super().__init__(message, **kwargs)


class ConcurrentUpdateError(PersistenceError):
    """The analysis record kept changing underneath the merge."""
    error_code = "ATT-202"

    def __init__(self, analysis_id: str, attempts: int, **kwargs):
        message = "Failed to save attestation analysis (concurrent update)"
        super().__init__(message, details={"analysis_id": analysis_id, "attempts": attempts}, **kwargs)


# External Service Errors (ATT-9XX)
class ExtractionServiceError(AttestCheckError):
    """Extraction model call failed."""
    error_code = "ATT-900"
    http_status = 502

    def __init__(self, service_name: str, message: Optional[str] = None, **kwargs):
        msg = message or f"External service '{service_name}' is unavailable"
        super().__init__(msg, details={"service": service_name}, **kwargs)

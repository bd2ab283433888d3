"""
Custom Exception Classes for the JobAlign RAG service
"""
import functools
import time
from random import uniform
from typing import Dict, Any

from fastapi import HTTPException


class JobAlignBaseException(Exception):
    """Base exception for the JobAlign service"""

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
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(JobAlignBaseException):
    """Raised when request data or a document fails validation"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)[:200]
        kwargs.setdefault('error_code', "VALIDATION_ERROR")
        super().__init__(message, details=details, **kwargs)


class EmptyInputError(ValidationError):
    """Raised when a JD or document carries no usable content"""

    def __init__(self, message: str, field: str = None, **kwargs):
        kwargs.setdefault('error_code', "EMPTY_INPUT")
        super().__init__(message, field=field, **kwargs)


class ModelError(JobAlignBaseException):
    """Raised when the LLM returns nothing usable for a primary artifact"""

    def __init__(self, message: str, model_name: str = None, operation: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if model_name:
            details['model_name'] = model_name
        if operation:
            details['operation'] = operation
        super().__init__(message, error_code="MODEL_ERROR", details=details, **kwargs)


class ProcessingError(JobAlignBaseException):
    """Raised when résumé parsing or indexing fails"""

    def __init__(self, message: str, document_name: str = None, stage: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if document_name:
            details['document_name'] = document_name
        if stage:
            details['stage'] = stage
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


class ConfigurationError(JobAlignBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class RateLimitError(JobAlignBaseException):
    """Raised when a usage limit is exceeded"""

    def __init__(self, message: str, limit: int = None, used: int = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if limit:
            details['limit'] = limit
        if used is not None:
            details['used'] = used
        kwargs.setdefault('error_code', "RATE_LIMIT_ERROR")
        super().__init__(message, details=details, **kwargs)


class UsageExceededError(RateLimitError):
    """Raised by the caller once a session's token counter crosses its ceiling"""

    def __init__(self, message: str = "Session token limit exceeded. Please start a new session.", **kwargs):
        kwargs.setdefault('error_code', "USAGE_EXCEEDED")
        super().__init__(message, **kwargs)


class ExternalServiceError(JobAlignBaseException):
    """Raised when the text-generation or embedding service fails"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


class BusinessLogicError(JobAlignBaseException):
    """Raised when an operation is not allowed in the session's current state"""

    def __init__(self, message: str, rule: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if rule:
            details['business_rule'] = rule
        super().__init__(message, error_code="BUSINESS_LOGIC_ERROR", details=details, **kwargs)


STATUS_CODE_MAPPING = {
    ValidationError: 400,
    ConfigurationError: 400,
    BusinessLogicError: 409,
    ModelError: 500,
    ProcessingError: 500,
    ExternalServiceError: 502,
    RateLimitError: 429,
}


def status_code_for(exc: JobAlignBaseException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODE_MAPPING:
            return STATUS_CODE_MAPPING[exc_type]
    return 500


# HTTP Exception Mapping
def map_to_http_exception(exc: JobAlignBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""
    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }
    return HTTPException(status_code=status_code_for(exc), detail=detail)


class ExceptionContext:
    """Context manager for handling exceptions with additional context"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        # Let HTTPException and our own exceptions through untouched
        if isinstance(exc_val, (JobAlignBaseException, HTTPException)):
            if self.logger:
                self.logger.warning(f"Operation {self.operation} stopped: {exc_val}", extra=self.context)
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {str(exc_val)}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val

        raise ProcessingError(
            f"Processing error in {self.operation}: {str(exc_val)}",
            stage=self.operation,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val


def retry_with_logging(
    max_attempts: int = 3,
    backoff_factor: float = 1.0,
    exceptions: tuple = (Exception,),
    logger=None
):
    """Decorator to retry operations with exponential backoff and logging.

    ``max_attempts`` may also be a zero-argument callable, resolved on each call,
    so the attempt count can follow live settings.
    """

    def _attempts():
        return max_attempts() if callable(max_attempts) else max_attempts

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = _attempts()
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if logger:
                        logger.warning(f"Attempt {attempt + 1}/{attempts} failed for {func.__name__}: {str(e)}")
                    if attempt == attempts - 1:
                        if logger:
                            logger.error(f"All {attempts} attempts failed for {func.__name__}")
                        raise
                    time.sleep(backoff_factor * (2 ** attempt) + uniform(0, 1))

        return wrapper

    return decorator

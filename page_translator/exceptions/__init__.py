"""
Custom exceptions for the application.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid."""

    pass


class NotConfiguredError(ConfigurationError):
    """Raised when no translation backend with valid credentials is set up."""

    pass


class ValidationError(AppError):
    """Raised when validation fails."""

    pass


class NoTextDetectedError(AppError):
    """Raised when OCR finds no text on a page (e.g. wordless action pages)."""

    pass


class CollaboratorError(AppError):
    """Base for faults raised by external collaborators."""

    pass


class OcrFailure(CollaboratorError):
    """Raised when the OCR engine fails."""

    pass


class BackendFailure(CollaboratorError):
    """Raised when the translation backend fails."""

    pass


class RenderFailure(CollaboratorError):
    """Raised when the burn-in renderer fails."""

    pass


class PipelineFailure(AppError):
    """Raised when translation or burn-in fails after OCR succeeded."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CacheIoFailure(AppError):
    """Raised when cache storage operations fail."""

    pass

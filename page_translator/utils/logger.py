"""
Structured logging configuration.

Following Sandi Metz principles:
- Single Responsibility: Logging setup and configuration
- Small functions: Each setup step isolated
- Clear naming: Descriptive function names
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False)
        )
    )
    logging.basicConfig(
        handlers=[handler],
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def log_cache_hit(fingerprint: str, target_language: str, **kwargs: Any) -> None:
    """
    Log translation cache hit.

    Args:
        fingerprint: Cache fingerprint
        target_language: Requested target language
        **kwargs: Additional context
    """
    logger = get_logger("cache")
    logger.info(
        "cache_hit", fingerprint=fingerprint, target_language=target_language, **kwargs
    )


def log_cache_miss(fingerprint: str, target_language: str, **kwargs: Any) -> None:
    """
    Log translation cache miss.

    Args:
        fingerprint: Cache fingerprint
        target_language: Requested target language
        **kwargs: Additional context
    """
    logger = get_logger("cache")
    logger.info(
        "cache_miss", fingerprint=fingerprint, target_language=target_language, **kwargs
    )


def log_backend_call(provider: str, model: str, tokens: int, **kwargs: Any) -> None:
    """
    Log translation backend call.

    Args:
        provider: Backend provider name
        model: Model name
        tokens: Total tokens used
        **kwargs: Additional context
    """
    logger = get_logger("backend")
    logger.info("backend_call", provider=provider, model=model, tokens=tokens, **kwargs)


def log_stage(stage: str, progress: float, image_path: str, **kwargs: Any) -> None:
    """
    Log pipeline stage transition.

    Args:
        stage: Stage name
        progress: Fractional progress in [0, 1]
        image_path: Image being translated
        **kwargs: Additional context
    """
    logger = get_logger("pipeline")
    logger.debug(
        "pipeline_stage",
        stage=stage,
        progress=round(progress, 2),
        image_path=image_path,
        **kwargs
    )


def log_error(error: Exception, context: str, **kwargs: Any) -> None:
    """
    Log error with context.

    Args:
        error: Exception that occurred
        context: Error context
        **kwargs: Additional context
    """
    logger = get_logger("error")
    logger.error(
        "error_occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context,
        **kwargs
    )

"""Custom exceptions and error handling utilities for the image optimizer."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, TypeVar

from .logging_config import get_logger


class ImgproxyOptimizerError(Exception):
    """Base exception for all image optimizer errors."""


class ConfigurationError(ImgproxyOptimizerError):
    """Error raised for invalid configuration options."""


class TagParseError(ImgproxyOptimizerError):
    """Error raised when an <img> span cannot be tokenized."""


class RewriteError(ImgproxyOptimizerError):
    """Error raised when rewriting a document or a tag fails."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function with standardized error handling."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("imgproxy-optimizer")
        try:
            return func(*args, **kwargs)
        except ImgproxyOptimizerError:
            logger.error("Optimizer error", exc_info=True)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise RewriteError(str(exc)) from exc

    return wrapper  # type: ignore[return-value]

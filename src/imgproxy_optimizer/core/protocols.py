"""Protocol definitions for dependency injection and testability."""

from typing import Any, Iterable, Optional, Protocol, Union


class OptionStoreProtocol(Protocol):
    """Protocol for the persisted key/value settings store."""

    def get_option(self, name: str, default: Any = None) -> Any:
        """Return the stored value for ``name`` or ``default``."""
        ...


class UrlGeneratorProtocol(Protocol):
    """Protocol for signed proxy URL generation."""

    def is_configured(self) -> bool:
        """Whether URLs will actually be routed through the proxy."""
        ...

    def generate_url(
        self, image_url: str, width: int = 0, height: int = 0, resize_type: str = "fit"
    ) -> str:
        """Build a signed proxy URL for ``image_url``."""
        ...

    def generate_srcset(
        self,
        image_url: str,
        widths: Union[str, Iterable[Any]],
        original_width: Optional[int] = None,
    ) -> str:
        """Build a srcset string of proxy URLs."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...

"""Shared data models for the image optimizer."""

from typing import Any, Iterable, List, Literal, Optional, Tuple, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

OutputFormat = Literal["avif", "webp", "jpeg", "png"]

OUTPUT_FORMATS: Tuple[str, ...] = ("avif", "webp", "jpeg", "png")
DEFAULT_QUALITY = 65
DEFAULT_FORMAT = "avif"
DEFAULT_WIDTHS: Tuple[int, ...] = (320, 640, 768, 1024, 1280, 1920)
# Characters browsers strip from both ends of URL attributes
ASCII_WHITESPACE = " \t\n\f\r"


def parse_host(url: str) -> Optional[str]:
    """Return the lower-cased host of ``url``, or None when it has none."""
    if not url:
        return None
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def split_widths(value: Any) -> List[str]:
    """Split a comma-separated width string into raw entries."""
    if isinstance(value, str):
        return value.split(",")
    try:
        return list(value)
    except TypeError:
        raise ValueError(
            f"Expected a comma-separated string or a list of widths, got {type(value).__name__}"
        )


def parse_widths(widths: Union[str, Iterable[Any]]) -> List[int]:
    """Parse a width list, dropping entries that are not positive integers."""
    parsed = []
    for entry in split_widths(widths):
        try:
            width = int(str(entry).strip())
        except ValueError:
            continue
        if width > 0:
            parsed.append(width)
    return parsed


class ProxyConfig(BaseModel):
    """Immutable configuration snapshot for a single rewrite request."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    signing_key: str = ""
    signing_salt: str = ""
    quality: int = Field(default=DEFAULT_QUALITY, ge=1, le=100)
    output_format: OutputFormat = DEFAULT_FORMAT
    responsive_widths: Tuple[int, ...] = DEFAULT_WIDTHS
    use_base64_encoding: bool = True
    allowed_source_domains: Tuple[str, ...] = ()
    enabled: bool = True
    site_url: str = ""

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> str:
        return str(value or "").strip().rstrip("/")

    @field_validator("signing_key", "signing_salt", "site_url", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("responsive_widths", mode="before")
    @classmethod
    def _parse_widths(cls, value: Any) -> Tuple[int, ...]:
        if value is None:
            return DEFAULT_WIDTHS
        return tuple(parse_widths(value))

    @field_validator("allowed_source_domains", mode="before")
    @classmethod
    def _parse_domains(cls, value: Any) -> Tuple[str, ...]:
        if not value:
            return ()
        if isinstance(value, str):
            value = value.splitlines()
        return tuple(d.strip() for d in value if d and d.strip())

    def is_configured(self) -> bool:
        """True when base URL, key and salt are all present."""
        return bool(self.base_url and self.signing_key and self.signing_salt)

    @property
    def proxy_host(self) -> Optional[str]:
        return parse_host(self.base_url)

    @property
    def site_host(self) -> Optional[str]:
        return parse_host(self.site_url)


class PreloadEntry(BaseModel):
    """A priority image to be announced with a preload hint."""

    url: str
    width: int = 0
    height: int = 0
    source_url: str = ""

    @property
    def srcset_source(self) -> str:
        """URL the preload srcset is generated from."""
        return self.source_url or self.url


class RewriteResult(BaseModel):
    """Outcome of rewriting a single HTML document."""

    html: str
    success: bool = False
    error: str = ""
    preloads: List[PreloadEntry] = Field(default_factory=list)
    rewritten_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    processing_time: float = 0.0

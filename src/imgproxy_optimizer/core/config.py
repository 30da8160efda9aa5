"""Builds ProxyConfig snapshots from the external settings store."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .logging_config import get_logger
from .models import (
    DEFAULT_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_WIDTHS,
    OUTPUT_FORMATS,
    ProxyConfig,
)
from .protocols import OptionStoreProtocol

OPTION_PREFIX = "imgproxy_optimizer_"
ENV_PREFIX = "IMGPROXY_OPTIMIZER_"

# setting name -> ProxyConfig field
SETTINGS: Dict[str, str] = {
    "url": "base_url",
    "key": "signing_key",
    "salt": "signing_salt",
    "quality": "quality",
    "format": "output_format",
    "widths": "responsive_widths",
    "allowed_sources": "allowed_source_domains",
    "enabled": "enabled",
    "use_base64": "use_base64_encoding",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

OptionSource = Union[Mapping[str, Any], OptionStoreProtocol]


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a stored option as a boolean."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def sanitize_quality(value: Any) -> int:
    """Coerce quality to an int clamped into [1, 100]."""
    try:
        quality = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_QUALITY
    return max(1, min(100, quality))


def sanitize_format(value: Any) -> str:
    fmt = str(value or "").strip().lower()
    if fmt not in OUTPUT_FORMATS:
        if fmt:
            get_logger("imgproxy-optimizer").warning(
                f"Unknown output format '{fmt}', falling back to {DEFAULT_FORMAT}"
            )
        return DEFAULT_FORMAT
    return fmt


def build_config(settings: Mapping[str, Any], site_url: str = "") -> ProxyConfig:
    """
    Build a ProxyConfig from raw setting values keyed by short name.

    Missing settings take the plugin defaults. Raises ConfigurationError
    when a value cannot be turned into a valid snapshot.
    """
    values: Dict[str, Any] = {
        "base_url": settings.get("url") or "",
        "signing_key": settings.get("key") or "",
        "signing_salt": settings.get("salt") or "",
        "quality": sanitize_quality(settings.get("quality", DEFAULT_QUALITY)),
        "output_format": sanitize_format(settings.get("format", DEFAULT_FORMAT)),
        "responsive_widths": settings.get("widths") or ",".join(
            str(w) for w in DEFAULT_WIDTHS
        ),
        "allowed_source_domains": settings.get("allowed_sources") or "",
        "enabled": parse_bool(settings.get("enabled"), True),
        "use_base64_encoding": parse_bool(settings.get("use_base64"), True),
        "site_url": site_url or settings.get("site_url") or "",
    }
    try:
        return ProxyConfig(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid image optimizer configuration: {exc}") from exc


def _read_option(store: OptionSource, name: str) -> Any:
    if isinstance(store, Mapping):
        return store.get(name)
    return store.get_option(name, None)


def load_config_from_options(store: OptionSource, site_url: str = "") -> ProxyConfig:
    """Load configuration from a key/value option store."""
    settings = {}
    for setting in SETTINGS:
        value = _read_option(store, OPTION_PREFIX + setting)
        if value is not None:
            settings[setting] = value
    return build_config(settings, site_url=site_url)


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> ProxyConfig:
    """Load configuration from IMGPROXY_OPTIMIZER_* environment variables."""
    if environ is None:
        environ = os.environ
    settings = {}
    for setting in list(SETTINGS) + ["site_url"]:
        value = environ.get(ENV_PREFIX + setting.upper())
        if value is not None:
            settings[setting] = value
    if "allowed_sources" in settings:
        # Environment values cannot hold newlines comfortably
        settings["allowed_sources"] = settings["allowed_sources"].replace(",", "\n")
    return build_config(settings)


def load_config_from_file(path: Union[str, Path], site_url: str = "") -> ProxyConfig:
    """Load configuration from a JSON object in option-store shape."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read options file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Options file {path} must contain a JSON object")
    return load_config_from_options(data, site_url=site_url)

"""Signed imgproxy URL generation."""

import base64
import hashlib
import hmac
from typing import Any, Iterable, Optional, Union
from urllib.parse import urlsplit

from .models import ProxyConfig, parse_widths
from .protocols import LoggerProtocol

DEFAULT_FILENAME = "image"


def urlsafe_b64(data: bytes) -> str:
    """Base64 with the URL-safe alphabet and no padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def source_filename(image_url: str) -> str:
    """Extension-stripped last path segment of ``image_url``."""
    try:
        path = urlsplit(image_url).path
    except ValueError:
        return DEFAULT_FILENAME
    segment = path.rsplit("/", 1)[-1]
    if "." in segment:
        segment = segment.rsplit(".", 1)[0]
    return segment or DEFAULT_FILENAME


class SignedUrlGenerator:
    """Builds HMAC-signed imgproxy URLs from a configuration snapshot.

    The generator is a pure function of its config: no network access, no
    state between calls. When base URL, key or salt are missing every
    generated URL is the source URL itself.
    """

    def __init__(self, config: ProxyConfig, logger: Optional[LoggerProtocol] = None):
        self._config = config
        self._logger = logger
        self._key = self._decode_hex(config.signing_key, "key")
        self._salt = self._decode_hex(config.signing_salt, "salt")

    @property
    def config(self) -> ProxyConfig:
        return self._config

    def _decode_hex(self, value: str, label: str) -> bytes:
        if not value:
            return b""
        try:
            return bytes.fromhex(value)
        except ValueError:
            if self._logger:
                self._logger.warning(f"Signing {label} is not valid hex; URLs will be unsigned")
            return b""

    def is_configured(self) -> bool:
        return self._config.is_configured()

    def processing_options(self, width: int, height: int, resize_type: str) -> str:
        """Path segment carrying the resize parameters, zeros included."""
        options = [
            f"rt:{resize_type}",
            f"w:{int(width)}",
            f"h:{int(height)}",
            f"q:{int(self._config.quality)}",
            f"f:{self._config.output_format}",
        ]
        return "/" + "/".join(options)

    def build_path(
        self, image_url: str, width: int = 0, height: int = 0, resize_type: str = "fit"
    ) -> str:
        """Unsigned path for ``image_url``."""
        options = self.processing_options(width, height, resize_type)
        if self._config.use_base64_encoding:
            encoded_url = urlsafe_b64(image_url.encode("utf-8"))
            filename = source_filename(image_url)
            return f"{options}/{encoded_url}/{filename}.{self._config.output_format}"

        # imgproxy decodes %20 before verifying, so sign the encoded form
        encoded_url = image_url.replace(" ", "%20")
        return f"{options}/plain/{encoded_url}"

    def generate_signature(self, path: str) -> str:
        """HMAC-SHA256 over salt + path, URL-safe base64 encoded."""
        if not self._key or not self._salt:
            return ""
        digest = hmac.new(self._key, self._salt + path.encode("utf-8"), hashlib.sha256).digest()
        return urlsafe_b64(digest)

    def generate_url(
        self, image_url: str, width: int = 0, height: int = 0, resize_type: str = "fit"
    ) -> str:
        """Signed proxy URL for ``image_url``, or ``image_url`` if unconfigured."""
        if not self.is_configured():
            return image_url

        path = self.build_path(image_url, width, height, resize_type)
        signature = self.generate_signature(path)
        return f"{self._config.base_url}/{signature}{path}"

    def generate_srcset(
        self,
        image_url: str,
        widths: Union[str, Iterable[Any]],
        original_width: Optional[int] = None,
    ) -> str:
        """
        Build a srcset of proxy URLs, one candidate per width.

        Widths larger than ``original_width`` (when known) are dropped so
        images are never upscaled past their declared size.
        """
        candidates = []
        for width in parse_widths(widths):
            if original_width and width > original_width:
                continue
            url = self.generate_url(image_url, width, 0, "fit")
            candidates.append(f"{url} {width}w")
        return ", ".join(candidates)

    def get_preload_url(self, image_url: str, width: int = 0, height: int = 0) -> str:
        return self.generate_url(image_url, width, height, "fit")

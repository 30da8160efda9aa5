"""Core utilities and shared components for the image optimizer."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    ImgproxyOptimizerError,
    ConfigurationError,
    TagParseError,
    RewriteError,
    with_error_handling,
)
from .models import PreloadEntry, ProxyConfig, RewriteResult
from .config import (
    load_config_from_env,
    load_config_from_file,
    load_config_from_options,
)
from .url_generator import SignedUrlGenerator
from .tags import ImageCandidate, ImageTag, find_image_tags
from .domains import DomainPolicy
from .services import (
    DocumentProcessor,
    ImageTagRewriter,
    PreloadHintRenderer,
    RewriteContext,
)
from .factories import LoggerFactory, OptimizerFactory

__all__ = [
    "ProxyConfig",
    "PreloadEntry",
    "RewriteResult",
    "load_config_from_env",
    "load_config_from_file",
    "load_config_from_options",
    "SignedUrlGenerator",
    "ImageTag",
    "ImageCandidate",
    "find_image_tags",
    "DomainPolicy",
    "ImageTagRewriter",
    "PreloadHintRenderer",
    "DocumentProcessor",
    "RewriteContext",
    "LoggerFactory",
    "OptimizerFactory",
    "setup_logger",
    "get_logger",
    "ImgproxyOptimizerError",
    "ConfigurationError",
    "TagParseError",
    "RewriteError",
    "with_error_handling",
]

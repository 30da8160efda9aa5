"""Factory classes for creating configured service instances."""

from typing import Optional

from .models import ProxyConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol
from .domains import DomainPolicy
from .url_generator import SignedUrlGenerator
from .services import DocumentProcessor, ImageTagRewriter, PreloadHintRenderer


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "imgproxy-optimizer", level: Optional[str] = None) -> LoggerProtocol:
        """Create a configured structured logger."""
        return StructuredLogger(name, level)


class OptimizerFactory:
    """Factory for wiring the rewrite pipeline around one config snapshot."""

    @staticmethod
    def create_url_generator(
        config: ProxyConfig, logger: Optional[LoggerProtocol] = None
    ) -> SignedUrlGenerator:
        return SignedUrlGenerator(config, logger)

    @staticmethod
    def create_rewriter(
        config: ProxyConfig,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> ImageTagRewriter:
        """Create a tag rewriter with its own URL generator."""
        if logger is None:
            logger = LoggerFactory.create_logger()
        url_generator = SignedUrlGenerator(config, logger)
        return ImageTagRewriter(
            config,
            url_generator,
            logger,
            policy=DomainPolicy.from_config(config),
            metrics_collector=metrics_collector,
        )

    @staticmethod
    def create_processor(
        config: ProxyConfig,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        inject_hints: bool = True,
    ) -> DocumentProcessor:
        """Create a fully configured document processor."""
        if logger is None:
            logger = LoggerFactory.create_logger()

        url_generator = SignedUrlGenerator(config, logger)
        rewriter = ImageTagRewriter(
            config,
            url_generator,
            logger,
            policy=DomainPolicy.from_config(config),
            metrics_collector=metrics_collector,
        )
        renderer = PreloadHintRenderer(config, url_generator)

        return DocumentProcessor(
            config=config,
            rewriter=rewriter,
            renderer=renderer,
            url_generator=url_generator,
            logger=logger,
            inject_hints=inject_hints,
        )

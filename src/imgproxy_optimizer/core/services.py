"""Image tag rewriting, preload hints and the per-document pipeline."""

import html
import re
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .domains import DomainPolicy
from .error_handling import TagErrorCollector
from .models import PreloadEntry, ProxyConfig, RewriteResult
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .protocols import LoggerProtocol, UrlGeneratorProtocol
from .tags import ImageCandidate, ImageTag, find_image_tags

PRELOAD_WIDTHS = (320, 640, 1024)

_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)


def sizes_for(width: int) -> str:
    return f"(max-width: {width}px) 100vw, {width}px"


@dataclass
class RewriteContext:
    """State belonging to a single document request.

    A fresh context is created for every document so nothing collected for
    one response can leak into another.
    """

    correlation_id: str = field(default_factory=lambda: f"doc_{uuid.uuid4().hex[:12]}")
    start_time: float = field(default_factory=time.time)
    preloads: List[PreloadEntry] = field(default_factory=list)
    log_context: Optional[LogContext] = None

    def __post_init__(self):
        if self.log_context is None:
            self.log_context = LogContext(
                correlation_id=self.correlation_id,
                operation="rewrite_html",
                component="image_tag_rewriter",
            )

    def add_preload(self, entry: PreloadEntry) -> None:
        self.preloads.append(entry)


class ImageTagRewriter:
    """Routes eligible <img> tags in an HTML document through the proxy."""

    def __init__(
        self,
        config: ProxyConfig,
        url_generator: UrlGeneratorProtocol,
        logger: LoggerProtocol,
        policy: Optional[DomainPolicy] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config
        self._url_generator = url_generator
        self._logger = logger
        self._policy = policy or DomainPolicy.from_config(config)
        self._metrics_collector = metrics_collector

    def rewrite(self, document: str, context: Optional[RewriteContext] = None) -> RewriteResult:
        """
        Rewrite every eligible <img> tag in ``document``.

        Never raises. On failure the result carries the original document
        and ``success=False``; priority images found during the failed pass
        are not added to ``context``.
        """
        context = context or RewriteContext()
        log_context = context.log_context
        start_time = time.time()
        preloads: List[PreloadEntry] = []
        counts = {"rewritten": 0, "skipped": 0}

        try:
            with TagErrorCollector("Image rewrite", self._logger) as collector:
                output = self._rewrite_document(document, preloads, counts, collector)
        except Exception as e:  # noqa: BLE001
            end_time = time.time()
            self._logger.error(
                "Image rewrite failed, returning original document",
                log_context.with_metadata(error=str(e)),
            )
            self._record(start_time, end_time, False, str(e), counts)
            return RewriteResult(
                html=document,
                success=False,
                error=str(e),
                processing_time=end_time - start_time,
            )

        for entry in preloads:
            context.add_preload(entry)
        end_time = time.time()
        self._record(start_time, end_time, True, None, counts)
        self._logger.debug(
            "Rewrote document",
            log_context,
            rewritten=counts["rewritten"],
            skipped=counts["skipped"],
            failed=collector.error_count,
        )
        return RewriteResult(
            html=output,
            success=True,
            preloads=list(preloads),
            rewritten_count=counts["rewritten"],
            skipped_count=counts["skipped"],
            failed_count=collector.error_count,
            processing_time=end_time - start_time,
        )

    def _record(self, start_time, end_time, success, error_message, counts) -> None:
        if not self._metrics_collector:
            return
        self._metrics_collector.record_metric(
            PerformanceMetrics(
                operation="rewrite_html",
                start_time=start_time,
                end_time=end_time,
                success=success,
                error_message=error_message,
                metadata={
                    "rewritten_count": counts["rewritten"],
                    "skipped_count": counts["skipped"],
                },
            )
        )

    def _rewrite_document(self, document, preloads, counts, collector) -> str:
        parts = []
        last = 0
        for match in find_image_tags(document):
            original = match.group(0)
            parts.append(document[last:match.start()])
            last = match.end()
            try:
                replacement = self.rewrite_tag(original, preloads)
            except Exception as e:  # noqa: BLE001
                collector.add_error(e, original)
                parts.append(original)
                continue
            if replacement is None:
                counts["skipped"] += 1
                parts.append(original)
            else:
                counts["rewritten"] += 1
                parts.append(replacement)
        parts.append(document[last:])
        return "".join(parts)

    def rewrite_tag(self, tag_text: str, preloads: List[PreloadEntry]) -> Optional[str]:
        """Rewrite a single <img> tag; None means the tag is left as is."""
        candidate = ImageCandidate.from_tag(ImageTag.parse(tag_text))
        if not self._policy.is_eligible(candidate.source_url):
            return None

        tag = candidate.tag
        self.apply(candidate)

        if candidate.is_priority:
            preloads.append(
                PreloadEntry(
                    url=tag.get("src"),
                    width=candidate.width,
                    height=candidate.height,
                    source_url=candidate.source_url,
                )
            )
        return tag.serialize()

    def apply(self, candidate: ImageCandidate) -> None:
        """Mutate the candidate's attributes: src, srcset, sizes, loading."""
        tag = candidate.tag
        width = candidate.width
        # Height stays 0 so the proxy keeps the aspect ratio
        tag.set("src", self._url_generator.generate_url(candidate.source_url, width, 0, "fit"))

        if width > 0:
            srcset = self._url_generator.generate_srcset(
                candidate.source_url, self._config.responsive_widths, width
            )
            if srcset:
                tag.set("srcset", srcset)
                if not tag.has("sizes"):
                    tag.set("sizes", sizes_for(width))

        if not tag.has("loading"):
            tag.set("loading", "eager" if candidate.is_priority else "lazy")


class PreloadHintRenderer:
    """Renders the <head> hints for a rewritten document."""

    def __init__(self, config: ProxyConfig, url_generator: UrlGeneratorProtocol):
        self._config = config
        self._url_generator = url_generator

    def render_dns_prefetch(self) -> str:
        host = self._config.proxy_host
        if not host:
            return ""
        return f'<link rel="dns-prefetch" href="//{html.escape(host)}">\n'

    def preload_srcset(self, entry: PreloadEntry) -> str:
        widths = [w for w in PRELOAD_WIDTHS if w <= entry.width] or [entry.width]
        return self._url_generator.generate_srcset(entry.srcset_source, widths, entry.width)

    def render_preload_links(self, entries: List[PreloadEntry]) -> str:
        lines = []
        for entry in entries:
            link = f'<link rel="preload" as="image" href="{html.escape(entry.url)}"'
            if entry.width > 0:
                link += f' imagesrcset="{html.escape(self.preload_srcset(entry))}"'
                link += f' imagesizes="{sizes_for(entry.width)}"'
            lines.append(link + ">\n")
        return "".join(lines)

    def render_head_hints(self, context: RewriteContext) -> str:
        return self.render_dns_prefetch() + self.render_preload_links(context.preloads)

    @staticmethod
    def inject_head_hints(document: str, hints: str) -> str:
        """Insert ``hints`` right before the first </head>, if there is one."""
        if not hints:
            return document
        match = _HEAD_CLOSE.search(document)
        if not match:
            return document
        return document[: match.start()] + hints + document[match.start():]


class DocumentProcessor:
    """Runs the full per-response pipeline: gate, rewrite, head hints."""

    def __init__(
        self,
        config: ProxyConfig,
        rewriter: ImageTagRewriter,
        renderer: PreloadHintRenderer,
        url_generator: UrlGeneratorProtocol,
        logger: LoggerProtocol,
        inject_hints: bool = True,
    ):
        self._config = config
        self._rewriter = rewriter
        self._renderer = renderer
        self._url_generator = url_generator
        self._logger = logger
        self._inject_hints = inject_hints

    def process(self, document: str, context: Optional[RewriteContext] = None) -> RewriteResult:
        """Process one outgoing HTML document."""
        context = context or RewriteContext()

        if not self._config.enabled or not self._url_generator.is_configured():
            self._logger.debug("Image optimization disabled or unconfigured", context.log_context)
            return RewriteResult(html=document, success=True)

        result = self._rewriter.rewrite(document, context)
        if result.success and self._inject_hints:
            hints = self._renderer.render_head_hints(context)
            result.html = self._renderer.inject_head_hints(result.html, hints)
        return result

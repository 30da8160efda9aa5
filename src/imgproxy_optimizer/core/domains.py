"""Source URL eligibility checks: proxy host, data URIs and the allow-list."""

import re
from typing import Iterable, List, Optional, Pattern, Tuple, Union

from .models import ASCII_WHITESPACE, ProxyConfig, parse_host

_ABSOLUTE_URL = re.compile(r"^(?:https?:)?//", re.IGNORECASE)


def is_absolute_url(url: str) -> bool:
    """http(s) or scheme-relative URLs carry a host; everything else is site-relative."""
    return bool(_ABSOLUTE_URL.match(url))


def is_data_url(url: str) -> bool:
    return url.startswith("data:")


def compile_pattern(pattern: str) -> Optional[Pattern[str]]:
    """Allow-list entry as a regex, or None for an exact-match entry.

    Every ``*`` becomes ``.*`` and the rest is matched literally against the
    whole host, so ``*.example.com`` also matches ``a.b.example.com``.
    """
    if "*" not in pattern:
        return None
    return re.compile(re.escape(pattern).replace(r"\*", ".*"), re.IGNORECASE)


class DomainPolicy:
    """Decides which image sources may be routed through the proxy."""

    def __init__(
        self,
        proxy_base_url: str = "",
        site_url: str = "",
        allowed_domains: Union[str, Iterable[str]] = (),
    ):
        self._proxy_host = parse_host(proxy_base_url)
        self._site_host = parse_host(site_url)
        if isinstance(allowed_domains, str):
            allowed_domains = allowed_domains.splitlines()
        self._rules: List[Tuple[str, Optional[Pattern[str]]]] = [
            (entry.strip(), compile_pattern(entry.strip()))
            for entry in allowed_domains
            if entry and entry.strip()
        ]

    @classmethod
    def from_config(cls, config: ProxyConfig) -> "DomainPolicy":
        return cls(
            proxy_base_url=config.base_url,
            site_url=config.site_url,
            allowed_domains=config.allowed_source_domains,
        )

    @property
    def has_allow_list(self) -> bool:
        return bool(self._rules)

    def is_proxy_url(self, url: str) -> bool:
        """True when ``url`` already points at the proxy host."""
        if not self._proxy_host:
            return False
        host = parse_host(url)
        return host is not None and host == self._proxy_host

    def host_allowed(self, host: str) -> bool:
        for entry, pattern in self._rules:
            if pattern is not None:
                if pattern.fullmatch(host):
                    return True
            elif host.lower() == entry.lower():
                return True
        return False

    def is_allowed_source(self, url: str) -> bool:
        """Apply the same-site / allow-list policy to ``url``."""
        url = url.strip(ASCII_WHITESPACE)
        if is_data_url(url):
            return False
        if not is_absolute_url(url):
            return True

        host = parse_host(url)
        if not host:
            return False
        if not self._rules:
            return self._site_host is not None and host == self._site_host
        return self.host_allowed(host)

    def is_eligible(self, src: str) -> bool:
        """Full eligibility gate for an <img> src, evaluated in order."""
        src = src.strip(ASCII_WHITESPACE)
        if not src:
            return False
        if self.is_proxy_url(src):
            return False
        if is_data_url(src):
            return False
        return self.is_allowed_source(src)

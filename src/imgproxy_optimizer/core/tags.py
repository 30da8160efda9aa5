"""Tokenizer for <img> spans inside otherwise untouched HTML.

Only the text of matched ``<img ...>`` tags is ever rebuilt. Attributes that
are not modified are re-emitted exactly as they appeared in the source, so
a rewritten tag differs from the original only where values changed.
"""

import html
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .exceptions import TagParseError
from .models import ASCII_WHITESPACE

IMG_TAG_PATTERN = re.compile(
    r"""<img(?=[\s/>])(?P<attrs>(?:[^>"']|"[^"]*"|'[^']*')*)>""",
    re.IGNORECASE,
)

ATTRIBUTE_PATTERN = re.compile(
    r"""
    (?P<name>[^\s"'<>/=]+)
    (?:
        \s*=\s*
        (?:
            "(?P<dq>[^"]*)"
          | '(?P<sq>[^']*)'
          | (?P<bare>[^\s"'=<>`]+)
        )
    )?
    """,
    re.VERBOSE,
)

_LEADING_INT = re.compile(r"\s*\+?(\d+)")


def parse_dimension(value: Optional[str]) -> int:
    """Leading integer of a width/height attribute; absent or non-numeric is 0."""
    if not value:
        return 0
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


@dataclass
class Attribute:
    name: str
    value: Optional[str]
    raw: str = ""
    prefix: str = " "
    modified: bool = False
    quote: Optional[str] = None

    def render(self, default_quote: str = '"') -> str:
        if not self.modified:
            return self.prefix + self.raw
        if not self.value:
            return f"{self.prefix}{self.name}"
        quote = self.quote or default_quote
        return f"{self.prefix}{self.name}={quote}{html.escape(self.value, quote=True)}{quote}"


@dataclass
class ImageTag:
    """An <img> element as an ordered, case-insensitive attribute mapping."""

    head: str = "<img"
    attributes: List[Attribute] = field(default_factory=list)
    trailer: str = ""
    _index: Dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def parse(cls, text: str) -> "ImageTag":
        """Parse the full text of one ``<img ...>`` tag."""
        match = IMG_TAG_PATTERN.fullmatch(text)
        if not match:
            raise TagParseError(f"Not an <img> tag: {text[:40]!r}")
        tag = cls(head=text[:4])
        attrs = match.group("attrs")

        pos = 0
        pending = ""
        while pos < len(attrs):
            char = attrs[pos]
            if char.isspace() or char in "/=\"'":
                pending += char
                pos += 1
                continue
            attr_match = ATTRIBUTE_PATTERN.match(attrs, pos)
            if not attr_match or attr_match.end() == pos:
                raise TagParseError(f"Unparseable attribute at offset {pos}")
            tag._append(attr_match, pending)
            pending = ""
            pos = attr_match.end()
        tag.trailer = pending
        return tag

    def _append(self, match: "re.Match[str]", prefix: str) -> None:
        value = None
        quote = None
        for group, mark in (("dq", '"'), ("sq", "'"), ("bare", None)):
            if match.group(group) is not None:
                value = html.unescape(match.group(group))
                quote = mark
                break
        name = match.group("name")
        self.attributes.append(
            Attribute(name=name, value=value, raw=match.group(0), prefix=prefix, quote=quote)
        )
        # First occurrence wins, as in browsers
        self._index.setdefault(name.lower(), len(self.attributes) - 1)

    def has(self, name: str) -> bool:
        return name.lower() in self._index

    def get(self, name: str, default: str = "") -> str:
        index = self._index.get(name.lower())
        if index is None:
            return default
        value = self.attributes[index].value
        return value if value is not None else ""

    def set(self, name: str, value: str) -> None:
        """Overwrite an attribute in place, or append it if new."""
        index = self._index.get(name.lower())
        if index is not None:
            attribute = self.attributes[index]
            attribute.value = value
            attribute.modified = True
            if not attribute.prefix:
                attribute.prefix = " "
            return
        self.attributes.append(Attribute(name=name, value=value, modified=True))
        self._index[name.lower()] = len(self.attributes) - 1

    @property
    def modified(self) -> bool:
        return any(a.modified for a in self.attributes)

    @property
    def quote_style(self) -> str:
        """Quote of the first quoted attribute, used for new values."""
        for attribute in self.attributes:
            if attribute.quote:
                return attribute.quote
        return '"'

    def serialize(self) -> str:
        quote = self.quote_style
        parts = [self.head]
        parts.extend(a.render(quote) for a in self.attributes)
        trailer = self.trailer
        if self.attributes and self.attributes[-1].modified and trailer and not trailer[0].isspace():
            trailer = " " + trailer
        parts.append(trailer)
        parts.append(">")
        return "".join(parts)


@dataclass
class ImageCandidate:
    """An eligible <img> with the values derived from its attributes."""

    tag: ImageTag
    source_url: str
    width: int = 0
    height: int = 0
    is_priority: bool = False

    @classmethod
    def from_tag(cls, tag: ImageTag) -> "ImageCandidate":
        return cls(
            tag=tag,
            source_url=tag.get("src").strip(ASCII_WHITESPACE),
            width=parse_dimension(tag.get("width")),
            height=parse_dimension(tag.get("height")),
            is_priority=is_priority_tag(tag),
        )


def is_priority_tag(tag: ImageTag) -> bool:
    if tag.get("fetchpriority") == "high":
        return True
    if tag.get("loading") == "eager":
        return True
    css_class = tag.get("class")
    return "priority" in css_class or "hero" in css_class


def find_image_tags(document: str) -> Iterator["re.Match[str]"]:
    """Iterate over every <img> span in ``document``, left to right."""
    return IMG_TAG_PATTERN.finditer(document)

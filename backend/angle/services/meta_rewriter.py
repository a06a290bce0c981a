"""
Angle Backend — Meta Tag Rewriter
==================================

What:  Rewrites the `content` attribute of a fixed set of <meta> tags and the
       <title> element in the static SPA shell.
How:   Scans `<meta ...>` tags with a regex, reads each tag's attributes, and
       for recognised `property`/`name` values replaces only the characters of
       the content value. Everything else in the document is copied through
       byte for byte. Missing tags are not inserted.
Who:   Used by PageRenderer for home, category and episode pages.

Recognised selectors:
    property: og:type, og:url, og:title, og:description, og:image,
              og:image:width, og:image:height
    name:     twitter:card, twitter:url, twitter:title, twitter:description,
              twitter:image
"""

import html
import re
from typing import Dict, Mapping, Optional, Tuple

OG_KEYS = (
    "og:type",
    "og:url",
    "og:title",
    "og:description",
    "og:image",
    "og:image:width",
    "og:image:height",
)

TWITTER_KEYS = (
    "twitter:card",
    "twitter:url",
    "twitter:title",
    "twitter:description",
    "twitter:image",
)

# key → attribute that identifies the tag
SELECTORS: Dict[str, str] = {
    **{key: "property" for key in OG_KEYS},
    **{key: "name" for key in TWITTER_KEYS},
}

_META_TAG_RE = re.compile(r"""<meta\b(?:[^>"']|"[^"]*"|'[^']*')*>""", re.IGNORECASE)
_ATTR_RE = re.compile(r"""([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_TITLE_RE = re.compile(r"(<title\b[^>]*>)(.*?)(</title>)", re.IGNORECASE | re.DOTALL)


def escape_html(value: str) -> str:
    """Escapes &, <, >, " and ' for use in text and attribute values."""
    return html.escape(value, quote=True)


def _parse_tag(tag: str) -> Tuple[Optional[str], Optional[Tuple[int, int]]]:
    """
    The recognised selector key of a <meta> tag and the span of its
    `content` value inside the tag. Either may be None.
    """
    attrs: Dict[str, str] = {}
    content_span: Optional[Tuple[int, int]] = None
    for match in _ATTR_RE.finditer(tag):
        name = match.group(1).lower()
        group = 2 if match.group(2) is not None else 3
        if name in attrs:
            continue
        attrs[name] = match.group(group)
        if name == "content":
            content_span = match.span(group)

    for attr in ("property", "name"):
        key = attrs.get(attr)
        if key is not None and SELECTORS.get(key) == attr:
            return key, content_span
    return None, content_span


class MetaTagRewriter:
    """
    Applies meta values to an HTML document.

    Example:
        rewriter = MetaTagRewriter()
        html = rewriter.rewrite(shell, {"og:title": "Health Stories | Angle"},
                                title="Health Stories | Angle")
    """

    def rewrite(
        self,
        document: str,
        values: Mapping[str, str],
        title: Optional[str] = None,
    ) -> str:
        unknown = set(values) - set(SELECTORS)
        if unknown:
            raise ValueError(f"Unsupported meta keys: {sorted(unknown)}")

        escaped = {key: escape_html(str(value)) for key, value in values.items()}

        def replace_tag(match: "re.Match[str]") -> str:
            tag = match.group(0)
            key, span = _parse_tag(tag)
            if key is None or key not in escaped or span is None:
                return tag
            start, end = span
            return tag[:start] + escaped[key] + tag[end:]

        document = _META_TAG_RE.sub(replace_tag, document)

        if title is not None:
            document = _TITLE_RE.sub(
                lambda m: f"{m.group(1)}{escape_html(title)}{m.group(3)}",
                document,
                count=1,
            )
        return document

    @staticmethod
    def read(document: str) -> Tuple[Dict[str, str], Optional[str]]:
        """
        Current values of the recognised tags and the <title> text.

        Values are returned as they appear in the document (still escaped).
        """
        found: Dict[str, str] = {}
        for match in _META_TAG_RE.finditer(document):
            tag = match.group(0)
            key, span = _parse_tag(tag)
            if key is None or key in found or span is None:
                continue
            found[key] = tag[span[0]:span[1]]
        title_match = _TITLE_RE.search(document)
        return found, title_match.group(2) if title_match else None


meta_rewriter = MetaTagRewriter()

"""Allowlist sanitizer for stored legacy editor HTML.

Legacy rows are arbitrary HTML as far as the display is concerned. Before
anything renders them, every element outside ``ALLOWED_TAGS`` is unwrapped
(its text kept), script-like elements are dropped with their content, and
only ``ALLOWED_ATTR`` plus ``data-*`` attributes survive. ``href`` and
``src`` must use a safe URL scheme or be relative.
"""

import logging
import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

logger = logging.getLogger("pulse_markup.sanitize")

ALLOWED_TAGS = frozenset({
    "p", "br", "strong", "em", "u", "s", "del", "code", "pre",
    "blockquote", "ul", "ol", "li", "a", "img", "span", "div",
    "h1", "h2", "h3", "h4", "h5", "h6", "hr", "command", "sup", "sub",
})

ALLOWED_ATTR = frozenset({
    "href", "src", "alt", "class", "target", "rel",
    "data-type", "data-mention-type", "data-mention-id", "data-mention-name",
    "data-emoji-name", "data-emoji-id",
})

# Removed together with everything inside them
DROP_WITH_CONTENT = frozenset({
    "script", "style", "template", "noscript", "iframe", "frame", "frameset",
    "object", "embed", "applet", "svg", "math", "title", "head", "textarea", "select",
})

SAFE_URL_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "mailto", "tel", "callto", "sms", "cid", "xmpp"})

_URL_ATTRS = ("href", "src")
_SCHEME_RE = re.compile(r'^([a-z][a-z0-9+.\-]*):')
# Browsers ignore these inside a scheme ("java\tscript:")
_URL_NOISE_RE = re.compile(r'[\x00-\x20\x7f]+')


def is_safe_url(value: str, tag: str = "a") -> bool:
    """True for relative URLs and URLs with an allowed scheme."""
    compact = _URL_NOISE_RE.sub("", value).lower()
    match = _SCHEME_RE.match(compact)
    if not match:
        return True
    scheme = match.group(1)
    if scheme == "data":
        return tag == "img" and compact.startswith("data:image/")
    return scheme in SAFE_URL_SCHEMES


def _clean_attrs(el: Tag) -> None:
    for name in list(el.attrs):
        key = name.lower()
        if key not in ALLOWED_ATTR and not key.startswith("data-"):
            del el.attrs[name]
            continue
        if key in _URL_ATTRS:
            value = el.attrs[name]
            if isinstance(value, list):
                value = " ".join(value)
            if not is_safe_url(value, el.name):
                logger.debug(f"Dropped unsafe {key} on <{el.name}>")
                del el.attrs[name]


def _clean_children(node: Tag) -> None:
    for child in list(node.children):
        if isinstance(child, PreformattedString):
            # Comments, doctypes, CDATA
            child.extract()
            continue
        if isinstance(child, NavigableString) or not isinstance(child, Tag):
            continue

        tag = child.name.lower()
        if tag in DROP_WITH_CONTENT:
            logger.debug(f"Dropped <{tag}> element")
            child.decompose()
            continue

        _clean_children(child)
        if tag not in ALLOWED_TAGS:
            child.unwrap()
            continue
        _clean_attrs(child)


def sanitize_tree(html: str) -> BeautifulSoup:
    """Parse ``html`` and return the sanitized document tree."""
    soup = BeautifulSoup(html or "", "html.parser")
    _clean_children(soup)
    return soup


def sanitize_html(html: str) -> str:
    """Sanitized HTML string; safe to hand to a browser."""
    return str(sanitize_tree(html))

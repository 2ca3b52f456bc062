"""
HTML to plain text conversion.

Dependencies: re, html (stdlib)
System role: Page text extraction for fetched tool results
"""

import html
import re

_LAYOUT_BLOCKS = ("script", "style", "nav", "footer", "header")
_BLOCK_RES = [re.compile(rf"<{tag}[^>]*>.*?</{tag}>", re.IGNORECASE | re.DOTALL) for tag in _LAYOUT_BLOCKS]
_TAG_RE = re.compile(r"<[^>]+>")
_MULTI_SPACE_RE = re.compile(r"\s{3,}")


def strip_tags(fragment: str) -> str:
    """Drop tags and unescape entities in a small HTML fragment."""
    return html.unescape(_TAG_RE.sub("", fragment)).strip()


def html_to_text(document: str) -> str:
    """
    Plain text of an HTML page.

    Layout blocks (script, style, nav, footer, header) are removed first,
    then tags; runs of three or more whitespace characters become a newline.
    """
    text = document
    for block_re in _BLOCK_RES:
        text = block_re.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    text = _MULTI_SPACE_RE.sub("\n", text)
    return text.strip()

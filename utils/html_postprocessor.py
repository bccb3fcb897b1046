"""Normalize article bodies into the HTML subset Kontent rich-text elements accept."""
from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

# Kontent stores an empty rich-text element as a single empty paragraph.
EMPTY_RICH_TEXT = "<p><br></p>"

_BLOCK_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "table", "figure"}
_INLINE_TAGS = {"a", "strong", "b", "em", "i", "sup", "sub", "code", "br"}
_NESTED_TAGS = {"li", "tbody", "tr", "td", "th", "img", "figcaption"}
_ALLOWED_TAGS = _BLOCK_TAGS | _INLINE_TAGS | _NESTED_TAGS
_ALLOWED_ATTRS = {
    "a": {"href", "title", "target"},
    "img": {"src", "alt"},
}
_DROP_WITH_CONTENT = ["script", "style", "noscript", "iframe"]

_paragraph_break_re = re.compile(r"\n\s*\n")


def _node_html(node) -> str:
    if isinstance(node, NavigableString):
        return node.output_ready(formatter="minimal")
    return str(node)


def _paragraphs(run: List[object]) -> List[str]:
    """Wrap a run of inline nodes in <p>, splitting plain text on blank lines."""
    text = "".join(_node_html(n) for n in run).strip()
    if not text:
        return []
    return [f"<p>{chunk.strip()}</p>" for chunk in _paragraph_break_re.split(text) if chunk.strip()]


def to_rich_text(content: str) -> str:
    """
    Convert free-form article HTML or plain text into Kontent rich text.
    - script/style/comments are removed
    - unsupported tags are unwrapped (their text is kept)
    - attributes are reduced to a small allow-list
    - top-level inline content is grouped into <p> paragraphs
    """
    if not content or not content.strip():
        return EMPTY_RICH_TEXT

    soup = BeautifulSoup(content, "html.parser")

    for tag in soup.find_all(_DROP_WITH_CONTENT):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.name not in _ALLOWED_TAGS:
            tag.unwrap()
            continue
        allowed = _ALLOWED_ATTRS.get(tag.name, set())
        tag.attrs = {k: v for k, v in tag.attrs.items() if k in allowed}

    out: List[str] = []
    run: List[object] = []
    for node in list(soup.contents):
        if isinstance(node, Tag) and node.name in _BLOCK_TAGS:
            out.extend(_paragraphs(run))
            run = []
            out.append(str(node))
        else:
            run.append(node)
    out.extend(_paragraphs(run))

    return "".join(out) or EMPTY_RICH_TEXT


__all__ = ["EMPTY_RICH_TEXT", "to_rich_text"]

from __future__ import annotations

import markdown
import nh3
from markdown.extensions import Extension

SAFE_URL_SCHEMES = frozenset({"http", "https", "mailto"})


class EscapeRawHtml(Extension):
    """Treat raw HTML in a note body as text instead of passing it through."""

    def extendMarkdown(self, md):  # noqa: N802 - Python-Markdown API
        md.preprocessors.deregister("html_block", strict=False)
        md.inlinePatterns.deregister("html", strict=False)


def render_markdown(text: str | None) -> str:
    """Render a note body to HTML.

    Public notes are shown to anyone, so embedded markup comes out escaped and
    the result is sanitized: links and images keep only ``http``, ``https``
    and ``mailto`` URLs (relative ones pass). Code blocks, tables and
    footnotes from ``extra`` are supported.
    """
    if not text:
        return ""
    html = markdown.markdown(
        text,
        extensions=["extra", "sane_lists", EscapeRawHtml()],
        output_format="html",
    )
    return nh3.clean(html, url_schemes=set(SAFE_URL_SCHEMES))
